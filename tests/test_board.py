import random
from collections import Counter

import pytest

from memory_game.board import ICONS, Board, board_size, check_match, create_board, shuffle
from memory_game.models import Tile


def test_board_size_for_default_icons():
    size = board_size(len(ICONS))
    assert (size.rows, size.cols, size.total_tiles) == (4, 4, 16)


def test_board_size_rounds_up_to_square():
    assert board_size(12).total_tiles == 25
    assert board_size(3).total_tiles == 9
    assert board_size(3).rows == 3 and board_size(3).cols == 3


def test_create_board_integrity(rng):
    tiles = create_board(ICONS, rng=rng)
    assert len(tiles) == 16
    assert [t.id for t in tiles] == list(range(16))
    assert Counter(t.icon for t in tiles) == Counter({icon: 2 for icon in ICONS})
    assert not any(t.is_flipped or t.is_matched for t in tiles)


def test_create_board_leaves_grid_cells_empty_when_not_square():
    # 3 icons -> 3x3 grid of 9 cells, but only 6 tiles exist
    tiles = create_board(["A", "B", "C"], rng=random.Random(3))
    assert board_size(3).total_tiles == 9
    assert len(tiles) == 6
    assert Counter(t.icon for t in tiles) == Counter({"A": 2, "B": 2, "C": 2})


def test_create_board_uses_injected_shuffle():
    tiles = create_board(["A", "B"], shuffler=lambda pool: list(reversed(pool)))
    assert [t.icon for t in tiles] == ["B", "A", "B", "A"]
    assert [t.id for t in tiles] == [0, 1, 2, 3]


def test_create_board_is_deterministic_for_a_seed():
    a = create_board(ICONS, rng=random.Random(42))
    b = create_board(ICONS, rng=random.Random(42))
    assert [t.icon for t in a] == [t.icon for t in b]


class _AlwaysZero:
    def randint(self, lo, hi):
        return 0


def test_shuffle_swaps_from_the_end():
    assert shuffle(["a", "b", "c"], _AlwaysZero()) == ["b", "c", "a"]


def test_shuffle_is_a_permutation():
    items = list(range(16))
    first = shuffle(list(items), random.Random(1))
    second = shuffle(list(items), random.Random(2))
    assert sorted(first) == items
    assert sorted(second) == items
    assert first != second


def test_check_match_is_symmetric(rng):
    tiles = create_board(ICONS, rng=rng)
    for a in tiles:
        for b in tiles:
            assert check_match(a, b) == check_match(b, a)
    assert check_match(Tile(0, "A"), Tile(1, "A"))
    assert not check_match(Tile(0, "A"), Tile(1, "B"))


def _board(*icons):
    return Board([Tile(i, icon) for i, icon in enumerate(icons)])


def test_flip_and_match():
    b = _board("A", "A", "B", "B")

    v1 = b.flip_up(0)
    v2 = b.flip_up(1)
    assert v1 == "A" and v2 == "A"

    b.mark_matched(0, 1)
    assert b.peek(0).is_matched is True
    assert b.peek(1).is_matched is True
    assert b.all_matched() is False


def test_cannot_flip_matched():
    b = _board("X", "X")
    b.flip_up(0)
    b.flip_up(1)
    b.mark_matched(0, 1)
    with pytest.raises(ValueError):
        b.flip_up(0)
    with pytest.raises(ValueError):
        b.flip_down(1)
    assert b.all_matched() is True


def test_cannot_match_different_icons():
    b = _board("A", "B")
    b.flip_up(0)
    b.flip_up(1)
    with pytest.raises(ValueError):
        b.mark_matched(0, 1)


def test_invalid_index():
    b = _board("A", "A")
    with pytest.raises(ValueError):
        b.peek(2)
    with pytest.raises(ValueError):
        b.flip_up(-1)


def test_empty_board_is_not_won():
    assert Board([]).all_matched() is False


def test_face_down_icons_are_hidden():
    b = _board("A", "A")
    b.flip_up(0)
    rows = b.to_list(reveal=False)
    assert rows[0]["icon"] == "A"
    assert rows[1]["icon"] is None


def test_size_reports_grid():
    tiles = create_board(ICONS, rng=random.Random(9))
    assert Board(tiles, rows=4, cols=4).size() == (4, 4)
    # defaults to the square grid that fits the tiles
    assert Board(tiles).size() == (4, 4)
    assert _board("A", "A", "B", "B", "C", "C").size() == (3, 3)
    assert Board([]).size() == (0, 0)


def test_grid_must_hold_every_tile():
    with pytest.raises(ValueError):
        Board([Tile(i, "A") for i in range(5)], rows=2, cols=2)
