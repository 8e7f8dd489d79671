"""
ASCII rendering for pearlgrid.

Read-only views of an Engine: the board with pawns and perls, the program
with its cursor, and a one-line status summary.
"""

from __future__ import annotations

from typing import Callable

from simple_chalk import chalk  # type: ignore[import-untyped]

from cell_types import (
    CellKind,
    Collectible,
    Empty,
    MovableObstacle,
    Pawn,
    PawnColor,
    Position,
    Wall,
)
from engine import Engine, EngineSnapshot
from script import ScriptProgram


PAWN_GLYPHS = {PawnColor.GREEN: "g", PawnColor.ORANGE: "o"}

PAWN_COLORS: dict[PawnColor, Callable[[str], str]] = {
    PawnColor.GREEN: chalk.greenBright,
    PawnColor.ORANGE: chalk.redBright,
}


def cell_glyph(cell: CellKind, collected: bool = False) -> tuple[str, Callable[[str], str]]:
    """Character and colorizer for a cell with no pawn on it."""
    match cell:
        case Wall():
            return "#", chalk.blue
        case MovableObstacle():
            return "X", chalk.yellow
        case Collectible():
            if collected:
                return ".", chalk.white
            return "*", chalk.cyan
        case Empty() | Pawn():
            # A pawn's start cell is plain floor once the pawn is tracked separately
            return "_", chalk.white
        case _:
            raise ValueError(f"Unknown cell type: {cell}")


def render_board(
    engine: Engine,
    cell_width: int = 3,
    highlight_pos: Position | None = None,
) -> str:
    """
    Render the board as a bordered character grid.

    Args:
        engine: The engine whose board to draw
        cell_width: Characters per cell (default 3)
        highlight_pos: Optional position to highlight

    Returns:
        Rendered string, one line per board row plus borders
    """
    grid = engine.level.grid
    pawns_at = {pos: color for color, pos in engine.pawn_positions().items()}
    flags = engine.collectible_flags()

    grid_width = grid.cols * cell_width + 2
    title = f" level {engine.level.level_id} "

    lines: list[str] = []
    if len(title) <= grid_width - 2:
        title_start = (grid_width - len(title)) // 2
        top = (
            "┌" +
            "─" * (title_start - 1) +
            title +
            "─" * (grid_width - title_start - len(title) - 1) +
            "┐"
        )
    else:
        top = "┌" + "─" * (grid_width - 2) + "┐"
    lines.append(top)

    for r_idx, row in enumerate(grid.cells):
        line_parts = ["│"]
        for c_idx, cell in enumerate(row):
            pos = Position(r_idx, c_idx)
            if pos in pawns_at:
                color = pawns_at[pos]
                char, colorize = PAWN_GLYPHS[color], PAWN_COLORS[color]
            else:
                char, colorize = cell_glyph(cell, flags.get(pos, False))

            content = char if cell_width == 1 else char.center(cell_width)
            if pos == highlight_pos:
                content = chalk.bgWhite.black(content)
            else:
                content = colorize(content)
            line_parts.append(content)

        line_parts.append("│")
        lines.append("".join(line_parts))

    lines.append("└" + "─" * (grid_width - 2) + "┘")
    return "\n".join(lines)


def render_program(
    program: ScriptProgram,
    cursor: int,
    selected: int | None = None,
) -> str:
    """
    List the program one opcode per line.

    The opcode about to execute is marked with '>'; the selected opcode (the
    one reorder/remove commands act on) is highlighted.
    """
    if len(program) == 0:
        return "(empty program)"

    lines: list[str] = []
    for i, opcode in enumerate(program):
        marker = ">" if i == cursor else " "
        line = f"{marker} {i:>2}  {opcode.code}  {opcode}"
        if i == selected:
            line = chalk.bgWhite.black(line)
        lines.append(line)
    if cursor >= len(program):
        lines.append(">  end")
    return "\n".join(lines)


def render_status(snapshot: EngineSnapshot) -> str:
    """One-line summary of run state and counters."""
    text = (
        f"{snapshot.status.value}  "
        f"step {snapshot.steps_taken}  "
        f"perls {snapshot.collected_count}/{snapshot.required_collectibles}  "
        f"cursor {snapshot.cursor}"
    )
    if snapshot.completed:
        text += f"  solved in {snapshot.recorded_solution_length}"
    return text
