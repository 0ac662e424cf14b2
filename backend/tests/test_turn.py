import pytest

from conftest import ScriptedRoller
from app.services.games.errors import (
    FaceAlreadyCommitted,
    FaceNotInCurrentRoll,
    InvalidState,
    InvariantError,
    MalformedIntent,
)
from app.services.games.turn import (
    AWAITING_COMMITMENT,
    AWAITING_ROLL,
    FACES,
    RESOLVED,
    DiceRoller,
    TurnState,
    parse_face,
)


def test_fresh_turn():
    turn = TurnState.fresh()
    assert turn.dice_available == 8
    assert turn.phase == AWAITING_ROLL
    assert turn.score == 0
    assert not turn.has_worm
    assert turn.last_roll == []
    assert turn.committed_faces == []


def test_commit_worms_scores_five_each():
    turn = TurnState.fresh()
    outcome = turn.roll(ScriptedRoller(['1', '1', '5', 'worm', 'worm', '2', '3', '3']))
    assert not outcome.bust
    assert outcome.counts['worm'] == 2
    assert set(outcome.eligible) == {'1', '2', '3', '5', 'worm'}
    assert turn.phase == AWAITING_COMMITMENT

    commitment = turn.commit('worm')
    assert (commitment.count, commitment.points) == (2, 10)
    assert turn.score == 10
    assert turn.has_worm
    assert turn.dice_available == 6
    assert turn.last_roll == []
    assert turn.phase == AWAITING_ROLL
    turn.check()


def test_second_roll_without_commit_is_rejected():
    turn = TurnState.fresh()
    roller = ScriptedRoller(['1'] * 8, ['2'] * 8)
    turn.roll(roller)
    with pytest.raises(InvalidState):
        turn.roll(roller)
    assert turn.last_roll == ['1'] * 8
    assert len(roller.rolls) == 1


def test_roll_with_no_dice_left():
    turn = TurnState.fresh()
    turn.roll(ScriptedRoller(['3'] * 8))
    turn.commit('3')
    assert turn.dice_available == 0
    with pytest.raises(InvalidState):
        turn.roll(ScriptedRoller())


def test_face_already_committed():
    turn = TurnState.fresh()
    roller = ScriptedRoller(['4', '4', '4', '1', '1', '1', '1', '1'], ['4', '2', '2', '2', '2'])
    turn.roll(roller)
    turn.commit('4')
    turn.roll(roller)
    with pytest.raises(FaceAlreadyCommitted):
        turn.commit('4')
    assert turn.score == 12


def test_face_not_in_current_roll():
    turn = TurnState.fresh()
    turn.roll(ScriptedRoller(['1', '1', '2', '2', '3', '3', '4', '4']))
    with pytest.raises(FaceNotInCurrentRoll):
        turn.commit('worm')
    turn.commit('4')
    # the roll is spent once a face is taken
    with pytest.raises(FaceNotInCurrentRoll):
        turn.commit('3')


def test_bust_consumes_nothing():
    turn = TurnState.fresh()
    roller = ScriptedRoller(
        ['worm', 'worm', 'worm', '5', '5', '1', '2', '3'],
        ['5', '5', '1', '2', '3'],
        ['worm', '5', 'worm'],
    )
    turn.roll(roller)
    turn.commit('worm')
    turn.roll(roller)
    turn.commit('5')
    assert (turn.score, turn.dice_available) == (25, 3)

    outcome = turn.roll(roller)
    assert outcome.bust
    assert outcome.eligible == []
    assert turn.score == 25
    assert turn.dice_available == 3
    turn.check()
    assert turn.phase == RESOLVED


def test_dice_accounting_check():
    turn = TurnState.fresh()
    turn.roll(ScriptedRoller(['2', '2', '2', '1', '1', '1', '1', '1']))
    turn.commit('2')
    turn.check()
    turn.dice_available = 7
    with pytest.raises(InvariantError):
        turn.check()


@pytest.mark.parametrize('raw,face', [('worm', 'worm'), ('WORM', 'worm'), (3, '3'), (' 5 ', '5')])
def test_parse_face(raw, face):
    assert parse_face(raw) == face


@pytest.mark.parametrize('raw', [None, '', '6', 0, 'dragon'])
def test_parse_face_rejects_unknown(raw):
    with pytest.raises(MalformedIntent):
        parse_face(raw)


def test_unknown_face_on_commit():
    turn = TurnState.fresh()
    turn.roll(ScriptedRoller(['1'] * 8))
    with pytest.raises(MalformedIntent):
        turn.commit('6')


def test_seeded_roller_is_replayable():
    first = DiceRoller(seed=42).roll(8)
    second = DiceRoller(seed=42).roll(8)
    assert first == second
    assert len(first) == 8
    assert all(face in FACES for face in first)
