import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import (
    FaceAlreadyCommitted,
    FaceNotInCurrentRoll,
    InvalidState,
    InvariantError,
    MalformedIntent,
)

WORM = 'worm'
FACES = ('1', '2', '3', '4', '5', WORM)
DICE_PER_TURN = 8

# Turn phases
IDLE = 'idle'
AWAITING_ROLL = 'awaiting_roll'
AWAITING_COMMITMENT = 'awaiting_commitment'
RESOLVED = 'resolved'


def face_value(face: str) -> int:
    if face == WORM:
        return 5
    return int(face)


def parse_face(raw) -> str:
    """Normalize a face symbol coming off the wire; ints 1..5 are accepted."""
    face = str(raw).strip().lower() if raw is not None else ''
    if face not in FACES:
        raise MalformedIntent(f'unknown face: {raw!r}')
    return face


class DiceRoller:
    """Uniform six-faced dice backed by a ``random.Random`` instance.

    Pass a seed (or your own ``Random``) to get a replayable sequence.
    """

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self.rng = rng if rng is not None else random.Random(seed)

    def roll(self, count: int) -> List[str]:
        return [self.rng.choice(FACES) for _ in range(count)]


@dataclass
class RollOutcome:
    faces: List[str]
    counts: Dict[str, int]
    eligible: List[str]
    bust: bool

    def to_dict(self):
        return {
            'dice_results': list(self.faces),
            'face_counts': dict(self.counts),
            'available_faces': list(self.eligible),
            'bust': self.bust,
        }


@dataclass
class Commitment:
    face: str
    count: int
    points: int

    def to_dict(self):
        return {'face': self.face, 'count': self.count, 'value': self.points}


@dataclass
class TurnState:
    dice_total: int = DICE_PER_TURN
    dice_available: int = DICE_PER_TURN
    last_roll: List[str] = field(default_factory=list)
    committed_faces: List[str] = field(default_factory=list)
    committed_counts: Dict[str, int] = field(default_factory=dict)
    score: int = 0
    has_worm: bool = False
    phase: str = IDLE

    @classmethod
    def fresh(cls, dice_total: int = DICE_PER_TURN) -> 'TurnState':
        return cls(dice_total=dice_total, dice_available=dice_total, phase=AWAITING_ROLL)

    def roll(self, roller: DiceRoller) -> RollOutcome:
        if self.phase != AWAITING_ROLL:
            raise InvalidState(f'cannot roll while {self.phase}')
        if self.dice_available <= 0:
            raise InvalidState('no dice available')

        faces = roller.roll(self.dice_available)
        counts = Counter(faces)
        eligible = [f for f in FACES if counts.get(f) and f not in self.committed_faces]
        outcome = RollOutcome(
            faces=faces,
            counts={f: counts[f] for f in FACES if counts.get(f)},
            eligible=eligible,
            bust=not eligible,
        )
        if outcome.bust:
            # Wasted roll: nothing consumed, score untouched.
            self.phase = RESOLVED
        else:
            self.last_roll = faces
            self.phase = AWAITING_COMMITMENT
        return outcome

    def commit(self, face: str) -> Commitment:
        if face not in FACES:
            raise MalformedIntent(f'unknown face: {face!r}')
        if face in self.committed_faces:
            raise FaceAlreadyCommitted(f'face {face} already selected this turn')
        if self.phase != AWAITING_COMMITMENT or face not in self.last_roll:
            raise FaceNotInCurrentRoll(f'face {face} not in current roll')

        count = self.last_roll.count(face)
        points = face_value(face) * count
        self.score += points
        self.dice_available -= count
        self.committed_faces.append(face)
        self.committed_counts[face] = count
        if face == WORM:
            self.has_worm = True
        self.last_roll = []
        self.phase = AWAITING_ROLL
        return Commitment(face=face, count=count, points=points)

    @property
    def qualifies(self) -> bool:
        return self.has_worm and self.score >= 21

    def check(self) -> None:
        consumed = sum(self.committed_counts.values())
        if not 0 <= self.dice_available <= self.dice_total or self.dice_available + consumed != self.dice_total:
            raise InvariantError(
                f'dice accounting broken: available={self.dice_available} consumed={consumed}'
            )

    def to_dict(self):
        return {
            'available_dice': self.dice_available,
            'rolled_dice': list(self.last_roll),
            'selected_faces': list(self.committed_faces),
            'face_counts': dict(Counter(self.last_roll)),
            'current_score': self.score,
            'has_worm': self.has_worm,
            'phase': self.phase,
        }
