from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

from .errors import InvariantError

MIN_TILE = 21
MAX_TILE = 36


def worms_for(face_value: int) -> int:
    """Worm count printed on the tile: 21-24 -> 1, 25-28 -> 2, 29-32 -> 3, 33-36 -> 4."""
    if not MIN_TILE <= face_value <= MAX_TILE:
        raise ValueError(f'tile value out of range: {face_value}')
    return (face_value - MIN_TILE) // 4 + 1


@dataclass(frozen=True, order=True)
class Tile:
    face_value: int
    worm_count: int

    @classmethod
    def of(cls, face_value: int) -> 'Tile':
        return cls(face_value, worms_for(face_value))

    def to_dict(self):
        return {'number': self.face_value, 'worms': self.worm_count}


def full_tile_set() -> List[Tile]:
    return [Tile.of(v) for v in range(MIN_TILE, MAX_TILE + 1)]


class TileSupply:
    """Claimable tiles in the middle of the table, sorted ascending by value."""

    def __init__(self, tiles: Optional[Iterable[Tile]] = None):
        self._tiles: List[Tile] = sorted(full_tile_set() if tiles is None else tiles)

    def __len__(self) -> int:
        return len(self._tiles)

    def __iter__(self) -> Iterator[Tile]:
        return iter(self._tiles)

    def values(self) -> List[int]:
        return [t.face_value for t in self._tiles]

    def is_empty(self) -> bool:
        return not self._tiles

    def peek_exact(self, value: int) -> Optional[Tile]:
        for tile in self._tiles:
            if tile.face_value == value:
                return tile
        return None

    def peek_highest_below(self, value: int) -> Optional[Tile]:
        best = None
        for tile in self._tiles:
            if tile.face_value >= value:
                break
            best = tile
        return best

    def take_exact(self, value: int) -> Optional[Tile]:
        tile = self.peek_exact(value)
        if tile is not None:
            self._tiles.remove(tile)
        return tile

    def take_highest_below(self, value: int) -> Optional[Tile]:
        tile = self.peek_highest_below(value)
        if tile is not None:
            self._tiles.remove(tile)
        return tile

    def return_tile(self, tile: Tile) -> None:
        if self.peek_exact(tile.face_value) is not None:
            raise InvariantError(f'tile {tile.face_value} already in supply')
        self._tiles.append(tile)
        self._tiles.sort()

    def to_list(self):
        return [t.to_dict() for t in self._tiles]


def worm_total(stack: Iterable[Tile]) -> int:
    return sum(t.worm_count for t in stack)


def check_conservation(supply: TileSupply, stacks: Dict[str, List[Tile]]) -> None:
    """Raise InvariantError unless supply + stacks hold every tile exactly once."""
    seen = list(supply)
    for stack in stacks.values():
        seen.extend(stack)
    if sorted(seen) != full_tile_set():
        held = {pid: [t.face_value for t in s] for pid, s in stacks.items()}
        raise InvariantError(f'tile conservation broken: supply={supply.values()} stacks={held}')
