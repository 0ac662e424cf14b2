"""Turn resolution rules.

Resolution runs exactly once per turn, when the active participant stops,
busts or makes an explicit claim:

1. no worm committed -> forfeit the top tile of the actor's stack
2. score below 21 -> same forfeiture
3. otherwise acquire, in order of precedence:
   a. the supply tile equal to the score
   b. another participant's top tile equal to the score (steal)
   c. the highest supply tile below the score
   d. nothing applies -> forfeit
4. empty supply after resolving -> match over, no rotation
5. otherwise hand the dice to the next participant with a fresh turn
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import IllegalClaim
from .tiles import Tile, TileSupply
from .turn import TurnState

logger = logging.getLogger(__name__)

MIN_CLAIM_SCORE = 21

CLAIMED = 'claimed'
STOLEN = 'stolen'
FALLBACK = 'fallback'
FORFEITED = 'forfeited'
NOTHING = 'nothing'  # forfeiture with an empty stack


@dataclass
class Plan:
    kind: str
    tile: Optional[Tile] = None
    victim_id: Optional[str] = None


@dataclass
class Resolution:
    player_id: str
    kind: str
    score: int
    tile: Optional[Tile] = None
    victim_id: Optional[str] = None
    game_over: bool = False

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'kind': self.kind,
            'score': self.score,
            'tile': self.tile.to_dict() if self.tile else None,
            'victim_id': self.victim_id,
            'game_over': self.game_over,
        }


def _steal_order(order: List[str], actor_id: str) -> List[str]:
    idx = order.index(actor_id)
    return order[idx + 1:] + order[:idx]


def plan_acquisition(supply: TileSupply, stacks: Dict[str, List[Tile]],
                     order: List[str], actor_id: str, turn: TurnState) -> Plan:
    """Work out which branch resolution would take, without touching state."""
    if not turn.has_worm or turn.score < MIN_CLAIM_SCORE:
        return Plan(FORFEITED)
    score = turn.score

    tile = supply.peek_exact(score)
    if tile is not None:
        return Plan(CLAIMED, tile)

    for pid in _steal_order(order, actor_id):
        stack = stacks.get(pid) or []
        if stack and stack[-1].face_value == score:
            return Plan(STOLEN, stack[-1], pid)

    tile = supply.peek_highest_below(score)
    if tile is not None:
        return Plan(FALLBACK, tile)
    return Plan(FORFEITED)


def _forfeit(supply: TileSupply, stack: List[Tile]) -> Optional[Tile]:
    if not stack:
        return None
    tile = stack.pop()
    supply.return_tile(tile)
    return tile


def apply_plan(plan: Plan, supply: TileSupply, stacks: Dict[str, List[Tile]],
               actor_id: str, score: int) -> Resolution:
    stack = stacks[actor_id]
    if plan.kind == CLAIMED:
        tile = supply.take_exact(plan.tile.face_value)
        stack.append(tile)
        return Resolution(actor_id, CLAIMED, score, tile)
    if plan.kind == STOLEN:
        victim_stack = stacks[plan.victim_id]
        tile = victim_stack.pop()
        stack.append(tile)
        return Resolution(actor_id, STOLEN, score, tile, plan.victim_id)
    if plan.kind == FALLBACK:
        tile = supply.take_highest_below(score)
        stack.append(tile)
        return Resolution(actor_id, FALLBACK, score, tile)

    lost = _forfeit(supply, stack)
    return Resolution(actor_id, FORFEITED if lost else NOTHING, score, lost)


def validate_claim(plan: Plan, face_value: int) -> None:
    """The explicit-claim intent must name the tile precedence would select."""
    if plan.kind == FORFEITED:
        raise IllegalClaim('turn does not qualify for a tile')
    if plan.tile.face_value != face_value:
        raise IllegalClaim(
            f'cannot claim {face_value}: rules select {plan.tile.face_value} ({plan.kind})'
        )


def resolve_turn(match, plan: Optional[Plan] = None) -> Resolution:
    """Resolve the active turn of ``match`` and rotate or finish.

    ``match`` is a MatchController; only its supply, stacks, order, index and
    turn are touched here.
    """
    actor_id = match.current_player_id
    turn = match.turn
    if plan is None:
        plan = plan_acquisition(match.supply, match.stacks, match.participant_order, actor_id, turn)
    resolution = apply_plan(plan, match.supply, match.stacks, actor_id, turn.score)
    logger.info(
        f"[resolve] match={match.match_id} player={actor_id} kind={resolution.kind} "
        f"score={turn.score} tile={resolution.tile.face_value if resolution.tile else None} "
        f"victim={resolution.victim_id}"
    )

    if match.supply.is_empty():
        resolution.game_over = True
        match.finish()
        return resolution

    match.advance_turn()
    return resolution
