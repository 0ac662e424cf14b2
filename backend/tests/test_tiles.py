import pytest

from app.services.games.errors import InvariantError
from app.services.games.tiles import (
    Tile,
    TileSupply,
    check_conservation,
    full_tile_set,
    worm_total,
    worms_for,
)


@pytest.mark.parametrize('value,worms', [(21, 1), (24, 1), (25, 2), (28, 2), (29, 3), (32, 3), (33, 4), (36, 4)])
def test_worm_count_follows_face_value(value, worms):
    assert worms_for(value) == worms
    assert Tile.of(value).worm_count == worms


def test_tile_value_out_of_range():
    with pytest.raises(ValueError):
        Tile.of(37)


def test_full_supply_is_sixteen_sorted_tiles():
    supply = TileSupply()
    assert len(supply) == 16
    assert supply.values() == list(range(21, 37))
    assert sum(t.worm_count for t in supply) == 40


def test_take_exact():
    supply = TileSupply()
    tile = supply.take_exact(24)
    assert tile == Tile.of(24)
    assert 24 not in supply.values()
    assert supply.take_exact(24) is None
    assert len(supply) == 15


def test_take_highest_below_skips_gaps():
    supply = TileSupply([Tile.of(v) for v in (21, 22, 24, 30)])
    assert supply.take_highest_below(26) == Tile.of(24)
    assert supply.take_highest_below(22) == Tile.of(21)
    assert supply.take_highest_below(21) is None
    assert supply.values() == [22, 30]


def test_returned_tile_is_resorted():
    supply = TileSupply()
    taken = [supply.take_exact(v) for v in (25, 30, 22)]
    stack = list(taken)
    # forfeit the top tile and put it straight back
    supply.return_tile(stack.pop())
    assert supply.values() == sorted(supply.values())
    assert 22 in supply.values()
    supply.return_tile(stack.pop())
    supply.return_tile(stack.pop())
    assert supply.values() == list(range(21, 37))


def test_returning_a_duplicate_breaks_invariant():
    supply = TileSupply()
    with pytest.raises(InvariantError):
        supply.return_tile(Tile.of(21))


def test_is_empty():
    supply = TileSupply([Tile.of(21)])
    assert not supply.is_empty()
    supply.take_exact(21)
    assert supply.is_empty()


def test_conservation_check():
    supply = TileSupply()
    stacks = {'ann': [supply.take_exact(30)], 'bob': [supply.take_exact(21), supply.take_exact(36)]}
    check_conservation(supply, stacks)

    stacks['bob'].append(Tile.of(30))
    with pytest.raises(InvariantError):
        check_conservation(supply, stacks)

    stacks['bob'].pop()
    stacks['ann'].pop()
    with pytest.raises(InvariantError):
        check_conservation(supply, stacks)


def test_worm_total():
    assert worm_total([Tile.of(21), Tile.of(29), Tile.of(36)]) == 8
    assert worm_total([]) == 0
    assert len(full_tile_set()) == 16
