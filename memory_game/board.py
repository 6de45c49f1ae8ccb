# memory_game/board.py
from __future__ import annotations
import math
import random
from dataclasses import dataclass
from threading import RLock
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from .models import Tile

T = TypeVar("T")

# Each icon appears twice; the grid is sized from the icon count.
ICONS: List[str] = ["🍎", "🚀", "🎵", "🐶", "🌟", "🎲", "🎮", "🍕"]


@dataclass(frozen=True)
class BoardSize:
    rows: int
    cols: int
    total_tiles: int


def board_size(icon_count: int) -> BoardSize:
    """
    Smallest square grid holding two tiles per icon.

    8 icons -> 4x4, 12 icons -> 5x5. total_tiles is the number of grid
    cells (side * side), which can be larger than icon_count * 2.
    """
    side = math.ceil(math.sqrt(icon_count * 2))
    return BoardSize(rows=side, cols=side, total_tiles=side * side)


def shuffle(items: List[T], rng: Optional[random.Random] = None) -> List[T]:
    """Fisher-Yates shuffle in place; returns the same list."""
    rng = rng or random
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def create_board(
    icons: Sequence[str] = ICONS,
    rng: Optional[random.Random] = None,
    shuffler: Optional[Callable[[List[str]], List[str]]] = None,
) -> List[Tile]:
    """
    Build a fresh face-down board.

    The pool is every icon twice, cut to the grid's cell count. When the grid
    has more cells than the pool (2n not a perfect square) the board simply
    has fewer tiles than cells; the extra cells stay empty.
    """
    size = board_size(len(icons))
    pool = list(icons) + list(icons)
    selected = pool[: size.total_tiles]

    if shuffler is not None:
        selected = list(shuffler(selected))
    else:
        shuffle(selected, rng)

    return [Tile(id=i, icon=icon) for i, icon in enumerate(selected)]


def check_match(a: Tile, b: Tile) -> bool:
    return a.icon == b.icon


class Board:
    """
    Mutable Board ADT over a flat tile list.

    Rep:
      - tiles[i].id == i
      - matched => face up
    Safety:
      - guarded by an internal lock; deferred resolutions run on timer threads
    """

    def __init__(self, tiles: List[Tile], rows: Optional[int] = None, cols: Optional[int] = None):
        if rows is None or cols is None:
            grid = board_size(math.ceil(len(tiles) / 2))
            rows, cols = grid.rows, grid.cols
        if rows < 0 or cols < 0:
            raise ValueError("rows/cols must not be negative")
        if len(tiles) > rows * cols:
            raise ValueError("more tiles than grid cells")

        self._tiles = tiles
        self._rows = rows
        self._cols = cols
        self._lock = RLock()
        self._check_rep()

    def _check_rep(self) -> None:
        for i, tile in enumerate(self._tiles):
            assert tile.id == i
            if tile.is_matched:
                assert tile.is_flipped is True

    def __len__(self) -> int:
        return len(self._tiles)

    def size(self) -> Tuple[int, int]:
        return (self._rows, self._cols)

    def peek(self, index: int) -> Tile:
        with self._lock:
            self._validate_index(index)
            return self._tiles[index]

    def flip_up(self, index: int) -> str:
        """Flip a tile face up and return its icon."""
        with self._lock:
            self._validate_index(index)
            tile = self._tiles[index]
            if tile.is_matched:
                raise ValueError("cannot flip a matched tile")
            if tile.is_flipped:
                raise ValueError("already face up")
            tile.is_flipped = True
            self._check_rep()
            return tile.icon

    def flip_down(self, index: int) -> None:
        with self._lock:
            self._validate_index(index)
            tile = self._tiles[index]
            if tile.is_matched:
                raise ValueError("cannot flip down a matched tile")
            tile.is_flipped = False
            self._check_rep()

    def mark_matched(self, first: int, second: int) -> None:
        """Mark two face-up tiles as permanently matched."""
        with self._lock:
            self._validate_index(first)
            self._validate_index(second)
            a, b = self._tiles[first], self._tiles[second]
            if not a.is_flipped or not b.is_flipped:
                raise ValueError("both must be face up to match")
            if not check_match(a, b):
                raise ValueError("icons do not match")
            a.is_matched = True
            b.is_matched = True
            self._check_rep()

    def all_matched(self) -> bool:
        with self._lock:
            return bool(self._tiles) and all(t.is_matched for t in self._tiles)

    def to_list(self, reveal: bool = True) -> List[dict]:
        with self._lock:
            return [t.to_dict(reveal=reveal) for t in self._tiles]

    def _validate_index(self, index: int) -> None:
        if not (0 <= index < len(self._tiles)):
            raise ValueError("invalid tile index")
