"""
Shared type definitions for the pearlgrid puzzle.

A decoded level is a static Grid of classified cells. Runtime state (where
the pawns stand, which collectibles are gathered) is owned by the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class Direction(Enum):
    """Cardinal direction for pawn moves."""

    UP = "u"  # decreasing row
    DOWN = "d"  # increasing row
    LEFT = "l"  # decreasing col
    RIGHT = "r"  # increasing col

    @property
    def delta(self) -> tuple[int, int]:
        return _DELTAS[self]

    @property
    def opposite(self) -> Direction:
        return _OPPOSITES[self]


_DELTAS = {
    Direction.UP: (-1, 0),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
}

_OPPOSITES = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


class PawnColor(Enum):
    """The two pawns every level is built around."""

    GREEN = "g"
    ORANGE = "o"


@dataclass(frozen=True)
class Position:
    """A (row, col) coordinate on the board."""

    row: int
    col: int

    def step(self, direction: Direction) -> Position:
        d_row, d_col = direction.delta
        return Position(self.row + d_row, self.col + d_col)


# =============================================================================
# Cell Kinds
# =============================================================================


@dataclass(frozen=True)
class Empty:
    """A free cell."""

    letter: str = ""


@dataclass(frozen=True)
class Wall:
    """A fixed blocking cell (walls, corners, shells)."""

    letter: str = "Z"


@dataclass(frozen=True)
class MovableObstacle:
    """A stone. Blocks pawns like a wall."""

    letter: str = "X"


@dataclass(frozen=True)
class Pawn:
    """The level-initial position of a pawn."""

    color: PawnColor
    letter: str = "p"


@dataclass(frozen=True)
class Collectible:
    """A perl that a pawn can collect by standing on it."""

    letter: str = "C"


CellKind = Empty | Wall | MovableObstacle | Pawn | Collectible


# Letter alphabet used by level descriptors. The many wall letters only differ
# in artwork (corners, rotations, shell halves), which is not our concern.
WALL_LETTERS = "ZQWERTYUIASDFGHJKzxcvqwertyuiasdfghjkbnmlBNoO"
OBSTACLE_LETTERS = "XV"
PAWN_LETTERS = {"p": PawnColor.GREEN, "P": PawnColor.ORANGE}
COLLECTIBLE_LETTERS = "C"


def classify(letter: str) -> CellKind | None:
    """
    Map a descriptor letter to its cell kind.

    Returns None for letters outside the alphabet; the caller decides how
    to report that.
    """
    if letter in PAWN_LETTERS:
        return Pawn(PAWN_LETTERS[letter], letter)
    if letter in COLLECTIBLE_LETTERS:
        return Collectible(letter)
    if letter in OBSTACLE_LETTERS:
        return MovableObstacle(letter)
    if letter in WALL_LETTERS:
        return Wall(letter)
    return None


# =============================================================================
# Grid
# =============================================================================


@dataclass(frozen=True)
class Grid:
    """A 2D grid of classified cells, stored row-major."""

    cells: tuple[tuple[CellKind, ...], ...]

    @property
    def rows(self) -> int:
        return len(self.cells)

    @property
    def cols(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.row < self.rows and 0 <= pos.col < self.cols

    def cell_at(self, pos: Position) -> CellKind:
        if not self.in_bounds(pos):
            raise IndexError(f"Position {pos} outside {self.rows}x{self.cols} grid")
        return self.cells[pos.row][pos.col]

    def positions(self) -> Iterator[Position]:
        for r in range(self.rows):
            for c in range(self.cols):
                yield Position(r, c)

    def pawn_start(self, color: PawnColor) -> Position | None:
        """Find the level-initial position of a pawn, or None if absent."""
        for pos in self.positions():
            cell = self.cell_at(pos)
            if isinstance(cell, Pawn) and cell.color == color:
                return pos
        return None

    def collectible_positions(self) -> list[Position]:
        return [pos for pos in self.positions() if isinstance(self.cell_at(pos), Collectible)]
