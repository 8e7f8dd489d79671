"""
Level descriptor parsing for pearlgrid.

A descriptor is a single line of four whitespace-separated fields:

    "<rows> <columns> <row0>/<row1>/.../<rowN> <goal>"

e.g. "5 5 ZZZZZ/Z3Z/Z1CpZ/Z3Z/ZZZZZ 1".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from cell_types import (
    Empty,
    Grid,
    CellKind,
    Pawn,
    PawnColor,
    Position,
    classify,
)

__all__ = [
    "DecodeError",
    "MalformedHeader",
    "RowCountMismatch",
    "RowWidthMismatch",
    "InvalidCharacter",
    "DuplicatePawn",
    "LevelMode",
    "LevelDescriptor",
    "decode_level",
    "encode_level",
]

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================


class DecodeError(ValueError):
    """Base class for descriptors that cannot be turned into a level."""


class MalformedHeader(DecodeError):
    """Header fields missing, extra, or not non-negative integers."""


class RowCountMismatch(DecodeError):
    """The grid body does not have as many rows as the header declares."""


class RowWidthMismatch(DecodeError):
    """A row expands to a different number of cells than the header declares."""


class InvalidCharacter(DecodeError):
    """A row contains a character outside the level alphabet."""

    def __init__(self, message: str, char: str, row: int, index: int) -> None:
        super().__init__(message)
        self.char = char
        self.row = row
        self.index = index


class DuplicatePawn(DecodeError):
    """More than one pawn of the same color appears in the grid."""


# =============================================================================
# Level Descriptor
# =============================================================================


class LevelMode(Enum):
    """Where a level came from."""

    TUTORIAL = "tutorial"
    CHALLENGE = "challenge"
    MULTIPLAYER = "multiplayer"


@dataclass(frozen=True)
class LevelDescriptor:
    """A decoded level."""

    rows: int
    columns: int
    required_collectibles: int
    grid: Grid
    level_id: int = 0
    mode: LevelMode = LevelMode.TUTORIAL
    descriptor: str = ""


def _parse_header_int(field_name: str, value: str, descriptor: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise MalformedHeader(
            f"Invalid {field_name} in level descriptor: '{value}'\n"
            f"  Descriptor: \"{descriptor}\"\n"
            f"  Expected a non-negative integer"
        )
    return int(value)


def _expand_row(row_str: str, row_idx: int, columns: int) -> tuple[CellKind, ...]:
    """Expand one run-length encoded row into classified cells."""
    cells: list[CellKind] = []

    for char_idx, char in enumerate(row_str):
        if char in "0123456789":
            cells.extend(Empty() for _ in range(int(char)))
            continue

        cell = classify(char) if char.isalpha() else None
        if cell is None:
            raise InvalidCharacter(
                f"Invalid character '{char}' in level descriptor\n"
                f"  Row {row_idx}: \"{row_str}\"\n"
                f"  Position: character {char_idx}\n"
                f"  Valid characters: digits (0-9), level letters",
                char=char,
                row=row_idx,
                index=char_idx,
            )
        cells.append(cell)

    if len(cells) != columns:
        raise RowWidthMismatch(
            f"Row {row_idx} expands to {len(cells)} cells, expected {columns}\n"
            f"  Row {row_idx}: \"{row_str}\""
        )

    return tuple(cells)


def _check_pawns(rows: list[tuple[CellKind, ...]]) -> None:
    seen: dict[PawnColor, Position] = {}
    for r, row in enumerate(rows):
        for c, cell in enumerate(row):
            if not isinstance(cell, Pawn):
                continue
            if cell.color in seen:
                first = seen[cell.color]
                raise DuplicatePawn(
                    f"More than one {cell.color.name.lower()} pawn in level\n"
                    f"  First at row {first.row}, column {first.col}\n"
                    f"  Again at row {r}, column {c}"
                )
            seen[cell.color] = Position(r, c)

    for color in PawnColor:
        if color not in seen:
            logger.warning("Level has no %s pawn", color.name.lower())


def decode_level(
    descriptor: str,
    level_id: int = 0,
    mode: LevelMode = LevelMode.TUTORIAL,
) -> LevelDescriptor:
    """
    Parse a level descriptor into a classified grid.

    Row format:
    - A digit d expands to d Empty cells (run-length encoded gaps)
    - Letters map through the level alphabet (see cell_types.classify)

    Args:
        descriptor: The descriptor string
        level_id: Identifier of the level in its catalog
        mode: Where the level came from

    Returns:
        The decoded LevelDescriptor

    Raises:
        MalformedHeader: Wrong number of fields, or a non-integer count
        RowCountMismatch: Body row count differs from the header
        InvalidCharacter: A character outside the alphabet
        RowWidthMismatch: A row expands to the wrong width
        DuplicatePawn: Two pawns of the same color
    """
    fields = descriptor.split()
    if len(fields) != 4:
        raise MalformedHeader(
            f"Level descriptor has {len(fields)} fields, expected 4\n"
            f"  Descriptor: \"{descriptor}\"\n"
            f"  Expected format: '<rows> <columns> <row>/<row>/... <goal>'"
        )

    rows_field, cols_field, body, goal_field = fields
    num_rows = _parse_header_int("row count", rows_field, descriptor)
    num_cols = _parse_header_int("column count", cols_field, descriptor)
    goal = _parse_header_int("collectible goal", goal_field, descriptor)

    if num_rows == 0 or num_cols == 0:
        raise MalformedHeader(
            f"Level must have at least one row and column, got {num_rows}x{num_cols}\n"
            f"  Descriptor: \"{descriptor}\""
        )

    row_strings = body.split("/")
    if len(row_strings) != num_rows:
        raise RowCountMismatch(
            f"Level body has {len(row_strings)} rows, header declares {num_rows}\n"
            f"  Body: \"{body}\""
        )

    rows = [_expand_row(row_str, i, num_cols) for i, row_str in enumerate(row_strings)]
    _check_pawns(rows)

    logger.info("Decoded level %d: %dx%d, goal=%d", level_id, num_rows, num_cols, goal)
    return LevelDescriptor(
        rows=num_rows,
        columns=num_cols,
        required_collectibles=goal,
        grid=Grid(tuple(rows)),
        level_id=level_id,
        mode=mode,
        descriptor=descriptor,
    )


def encode_level(level: LevelDescriptor) -> str:
    """
    Serialize a level back to descriptor form.

    Runs of Empty cells are written as digits (at most 9 per digit), so the
    output is canonical even if the input split a run across digits.
    """
    row_strings: list[str] = []
    for row in level.grid.cells:
        parts: list[str] = []
        gap = 0
        for cell in row:
            if isinstance(cell, Empty):
                gap += 1
                if gap == 9:
                    parts.append("9")
                    gap = 0
                continue
            if gap:
                parts.append(str(gap))
                gap = 0
            parts.append(cell.letter)
        if gap:
            parts.append(str(gap))
        row_strings.append("".join(parts))

    return f"{level.rows} {level.columns} {'/'.join(row_strings)} {level.required_collectibles}"
