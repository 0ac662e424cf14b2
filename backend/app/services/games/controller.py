import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from . import engine
from .errors import (
    INTERNAL_ERROR,
    InvalidState,
    MatchError,
    MatchNotActive,
    NotEnoughPlayers,
    NotYourTurn,
    StaleIntent,
)
from .tiles import Tile, TileSupply, check_conservation, worm_total
from .turn import AWAITING_ROLL, DICE_PER_TURN, RESOLVED, DiceRoller, TurnState, parse_face

logger = logging.getLogger(__name__)

WAITING = 'waiting'
IN_PROGRESS = 'in_progress'
FINISHED = 'finished'


@dataclass
class MatchResult:
    ok: bool
    event: Optional[str] = None
    reason: Optional[str] = None
    message: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    snapshot: Optional[Dict[str, Any]] = None

    @classmethod
    def failure(cls, reason: str, message: str) -> 'MatchResult':
        return cls(ok=False, reason=reason, message=message)

    def to_error(self):
        return {'reason': self.reason, 'message': self.message}


class MatchController:
    """One game instance: tiles, stacks, whose turn it is and the live turn.

    Not thread-safe on its own; callers serialize access per match (the
    session directory holds a per-room lock around every call).
    """

    def __init__(self, match_id: str, roller: Optional[DiceRoller] = None,
                 min_players: int = 2, dice_count: int = DICE_PER_TURN,
                 names: Optional[Callable[[str], str]] = None):
        self.match_id = match_id
        self.roller = roller or DiceRoller()
        self.min_players = min_players
        self.dice_count = dice_count
        self.names = names or (lambda pid: pid)
        self.phase = WAITING
        self.supply = TileSupply([])
        self.stacks: Dict[str, List[Tile]] = {}
        self.participant_order: List[str] = []
        self.current_index = 0
        self.turn = TurnState(dice_total=dice_count, dice_available=dice_count)
        self.sequence = 0

    # ---- state helpers used by the engine ----

    @property
    def current_player_id(self) -> Optional[str]:
        if not self.participant_order:
            return None
        return self.participant_order[self.current_index]

    def advance_turn(self) -> None:
        self.current_index = (self.current_index + 1) % len(self.participant_order)
        self.turn = TurnState.fresh(self.dice_count)

    def finish(self) -> None:
        self.phase = FINISHED
        self.turn.phase = RESOLVED

    # ---- lifecycle ----

    def start_match(self, participant_order: List[str]) -> MatchResult:
        if self.phase != WAITING:
            raise RuntimeError(f'match {self.match_id} already started')
        if len(participant_order) < self.min_players:
            return MatchResult.failure(
                NotEnoughPlayers.reason, f'Need at least {self.min_players} players'
            )
        self.participant_order = list(participant_order)
        self.stacks = {pid: [] for pid in self.participant_order}
        self.supply = TileSupply()
        self.current_index = 0
        self.turn = TurnState.fresh(self.dice_count)
        self.phase = IN_PROGRESS
        self.sequence += 1
        logger.info(f"[start] match={self.match_id} players={len(self.participant_order)}")
        return self._success('game_started')

    # ---- intents ----

    def roll_dice(self, player_id: str, expected_sequence: Optional[int] = None) -> MatchResult:
        return self._run(player_id, expected_sequence, self._roll)

    def commit_face(self, player_id: str, face, expected_sequence: Optional[int] = None) -> MatchResult:
        # Malformed face symbols propagate to the transport layer.
        face = parse_face(face)
        return self._run(player_id, expected_sequence, lambda: self._commit(face))

    def stop_turn(self, player_id: str, expected_sequence: Optional[int] = None) -> MatchResult:
        return self._run(player_id, expected_sequence, self._stop)

    def claim_tile(self, player_id: str, face_value: int, expected_sequence: Optional[int] = None) -> MatchResult:
        return self._run(player_id, expected_sequence, lambda: self._claim(face_value))

    def _roll(self):
        outcome = self.turn.roll(self.roller)
        if not outcome.bust:
            return 'dice_rolled', {'roll': outcome.to_dict()}
        player_id = self.current_player_id
        logger.info(f"[bust] match={self.match_id} player={player_id} roll={outcome.faces}")
        resolution = engine.resolve_turn(self)
        return 'turn_bust', {
            'roll': outcome.to_dict(),
            'player_id': player_id,
            'resolution': resolution.to_dict(),
            'game_over': resolution.game_over,
        }

    def _commit(self, face: str):
        commitment = self.turn.commit(face)
        data = commitment.to_dict()
        data['player_id'] = self.current_player_id
        return 'face_selected', data

    def _stop(self):
        if self.turn.phase != AWAITING_ROLL:
            raise InvalidState('select a face from the current roll before stopping')
        resolution = engine.resolve_turn(self)
        return 'turn_ended', {'resolution': resolution.to_dict(), 'game_over': resolution.game_over}

    def _claim(self, face_value: int):
        if self.turn.phase != AWAITING_ROLL:
            raise InvalidState('select a face from the current roll before claiming')
        plan = engine.plan_acquisition(
            self.supply, self.stacks, self.participant_order, self.current_player_id, self.turn
        )
        engine.validate_claim(plan, face_value)
        resolution = engine.resolve_turn(self, plan)
        return 'turn_ended', {'resolution': resolution.to_dict(), 'game_over': resolution.game_over}

    def _run(self, player_id: str, expected_sequence: Optional[int], op) -> MatchResult:
        saved = self._save()
        try:
            if self.phase != IN_PROGRESS:
                raise MatchNotActive('Game is not in progress')
            if player_id != self.current_player_id:
                raise NotYourTurn('Not your turn')
            if expected_sequence is not None and expected_sequence != self.sequence:
                raise StaleIntent(f'stale intent: expected {self.sequence}, got {expected_sequence}')
            event, data = op()
            self.check_invariants()
        except MatchError as exc:
            self._restore(saved)
            return MatchResult.failure(exc.reason, exc.message)
        except Exception:
            logger.exception(f"[internal-error] match={self.match_id} player={player_id}")
            self._restore(saved)
            return MatchResult.failure(INTERNAL_ERROR, 'Server error')
        self.sequence += 1
        return self._success(event, data)

    # ---- results ----

    def compute_winner(self) -> Dict[str, Any]:
        if self.phase != FINISHED:
            raise MatchNotActive('winner is only known once the match is finished')
        winner_id = None
        best = -1
        for pid in self.participant_order:
            total = worm_total(self.stacks[pid])
            if total > best:
                winner_id, best = pid, total
        return {'id': winner_id, 'name': self.names(winner_id), 'worm_total': best}

    def final_scores(self) -> List[Dict[str, Any]]:
        return [
            {'id': pid, 'name': self.names(pid), 'worm_total': worm_total(self.stacks[pid])}
            for pid in self.participant_order
        ]

    def check_invariants(self) -> None:
        if self.phase == WAITING:
            return
        check_conservation(self.supply, self.stacks)
        self.turn.check()

    def snapshot(self) -> Dict[str, Any]:
        return {
            'match_id': self.match_id,
            'phase': self.phase,
            'sequence': self.sequence,
            'tiles': self.supply.to_list(),
            'player_stacks': {
                pid: [t.to_dict() for t in self.stacks[pid]] for pid in self.participant_order
            },
            'current_player_id': self.current_player_id if self.phase == IN_PROGRESS else None,
            'turn_state': self.turn.to_dict(),
            'players': [{'id': pid, 'name': self.names(pid)} for pid in self.participant_order],
        }

    def _success(self, event: str, data: Optional[Dict[str, Any]] = None) -> MatchResult:
        return MatchResult(ok=True, event=event, data=data or {}, snapshot=self.snapshot())

    def _save(self):
        return copy.deepcopy((self.supply, self.stacks, self.current_index, self.turn, self.phase))

    def _restore(self, saved) -> None:
        self.supply, self.stacks, self.current_index, self.turn, self.phase = saved
