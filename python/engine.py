"""
Steppable, reversible interpreter for pearlgrid scripts.

The engine owns the board state of one level (pawn positions, collected
flags) and replays a ScriptProgram against it, one opcode per tick. It is
driven by an external scheduler calling tick() at a fixed cadence, and by UI
controls calling set_status().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from cell_types import (
    CellKind,
    MovableObstacle,
    PawnColor,
    Position,
    Wall,
)
from level_parser import LevelDescriptor
from script import Collect, Move, ScriptOpcode, ScriptProgram

__all__ = [
    "RunStatus",
    "ResetReason",
    "RuleSet",
    "InvariantViolation",
    "EngineSnapshot",
    "Engine",
]

logger = logging.getLogger(__name__)


class RunStatus(Enum):
    """Run state of the engine."""

    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"
    RESET = "reset"  # Board restored; waiting for the UI to acknowledge
    FORWARD_ONCE = "forward_once"
    BACKWARD_ONCE = "backward_once"


ACTIVE_STATUSES = frozenset({RunStatus.RUNNING, RunStatus.FORWARD_ONCE, RunStatus.BACKWARD_ONCE})
SINGLE_STEP_STATUSES = frozenset({RunStatus.FORWARD_ONCE, RunStatus.BACKWARD_ONCE})


class ResetReason(Enum):
    """Why the last reset happened."""

    STOPPED = "stopped"  # Stop command
    COLLISION = "collision"  # Move into a blocking cell or off the board
    PROGRAM_END = "program_end"  # Ran off the end of the program
    PROGRAM_START = "program_start"  # Stepped back past the first opcode
    PROGRAM_CHANGED = "program_changed"  # Program mutated


class InvariantViolation(RuntimeError):
    """The level or program is inconsistent with what execution requires."""


@dataclass(frozen=True)
class RuleSet:
    """Rules governing execution."""

    blocking: tuple[type[CellKind], ...] = (Wall, MovableObstacle)
    collect_always_costs_step: bool = True  # Collect counts a step even on an empty cell


@dataclass(frozen=True)
class EngineSnapshot:
    """Everything the presentation layer may observe, at one point in time."""

    status: RunStatus
    cursor: int
    steps_taken: int
    collected_count: int
    required_collectibles: int
    completed: bool
    recorded_solution_length: int | None
    pawn_positions: dict[PawnColor, Position] = field(default_factory=dict)
    collected: frozenset[Position] = frozenset()


class Engine:
    """
    Executes a ScriptProgram against a level.

    The engine subscribes to its program and owns it until close() is called;
    every edit resets the run, and a reset must be acknowledged before the
    next command is accepted.

    Usage:
        engine = Engine(decode_level("5 5 ZZZZZ/Z3Z/Z1CpZ/Z3Z/ZZZZZ 1"))
        engine.program.append(Move(PawnColor.GREEN, Direction.LEFT))
        engine.acknowledge_reset()
        engine.play()
        while engine.status in ACTIVE_STATUSES:
            engine.tick()
    """

    def __init__(
        self,
        level: LevelDescriptor,
        program: ScriptProgram | None = None,
        rules: RuleSet | None = None,
    ) -> None:
        self.rules = rules if rules is not None else RuleSet()
        self._program = program if program is not None else ScriptProgram()
        self._program.subscribe(self._on_program_changed)

        self.status = RunStatus.STOPPED
        self.completed = False
        self.recorded_solution_length: int | None = None
        self.last_reset_reason: ResetReason | None = None

        self._level = level
        self._pawns: dict[PawnColor, Position] = {}
        self._collected: dict[Position, bool] = {}
        self._cursor = 0
        self._steps_taken = 0
        self._collected_count = 0
        self._restore_board()

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def level(self) -> LevelDescriptor:
        return self._level

    @property
    def program(self) -> ScriptProgram:
        return self._program

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def steps_taken(self) -> int:
        return self._steps_taken

    @property
    def collected_count(self) -> int:
        return self._collected_count

    @property
    def required_collectibles(self) -> int:
        return self._level.required_collectibles

    def pawn_position(self, color: PawnColor) -> Position | None:
        return self._pawns.get(color)

    def pawn_positions(self) -> dict[PawnColor, Position]:
        return dict(self._pawns)

    def is_collected(self, pos: Position) -> bool:
        if pos not in self._collected:
            raise ValueError(f"No collectible at {pos}")
        return self._collected[pos]

    def collectible_flags(self) -> dict[Position, bool]:
        return dict(self._collected)

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            status=self.status,
            cursor=self._cursor,
            steps_taken=self._steps_taken,
            collected_count=self._collected_count,
            required_collectibles=self.required_collectibles,
            completed=self.completed,
            recorded_solution_length=self.recorded_solution_length,
            pawn_positions=dict(self._pawns),
            collected=frozenset(pos for pos, done in self._collected.items() if done),
        )

    # -------------------------------------------------------------------------
    # Level and reset
    # -------------------------------------------------------------------------

    def _restore_board(self) -> None:
        grid = self._level.grid
        self._pawns = {}
        for color in PawnColor:
            start = grid.pawn_start(color)
            if start is not None:
                self._pawns[color] = start
        self._collected = {pos: False for pos in grid.collectible_positions()}
        self._cursor = 0
        self._steps_taken = 0
        self._collected_count = 0

    def load_level(self, level: LevelDescriptor) -> None:
        """Replace the level wholesale. Clears completion and run state."""
        self._level = level
        self._restore_board()
        self.completed = False
        self.recorded_solution_length = None
        self.last_reset_reason = None
        self.status = RunStatus.STOPPED
        logger.info("Loaded level %d", level.level_id)

    def reset(self, reason: ResetReason = ResetReason.STOPPED) -> None:
        """
        Abort the run and restore the level-initial board.

        Leaves completed and recorded_solution_length untouched so the last
        solution can still be read back.
        """
        self._restore_board()
        self.status = RunStatus.RESET
        self.last_reset_reason = reason
        logger.info("Run reset: %s", reason.value)

    def _on_program_changed(self, program: ScriptProgram) -> None:
        self.reset(ResetReason.PROGRAM_CHANGED)

    def close(self) -> None:
        """Stop listening to the program so another engine can take it over."""
        self._program.unsubscribe(self._on_program_changed)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def set_status(self, status: RunStatus) -> bool:
        """
        Apply a UI command. Returns False if the command was ignored.

        RESET is the Stop command and is always accepted. STOPPED acknowledges
        a reset once the UI has restored its visuals. While in RESET nothing
        else is accepted.
        """
        if status == RunStatus.RESET:
            self.reset(ResetReason.STOPPED)
            return True

        if status == RunStatus.STOPPED:
            if self.status not in (RunStatus.RESET, RunStatus.STOPPED):
                logger.debug("Ignoring STOPPED while %s", self.status.value)
                return False
            self.status = RunStatus.STOPPED
            return True

        if self.status == RunStatus.RESET:
            logger.debug("Ignoring %s until reset is acknowledged", status.value)
            return False

        self.status = status
        return True

    def play(self) -> bool:
        return self.set_status(RunStatus.RUNNING)

    def pause(self) -> bool:
        return self.set_status(RunStatus.PAUSED)

    def stop(self) -> bool:
        return self.set_status(RunStatus.RESET)

    def step_forward(self) -> bool:
        return self.set_status(RunStatus.FORWARD_ONCE)

    def step_back(self) -> bool:
        return self.set_status(RunStatus.BACKWARD_ONCE)

    def acknowledge_reset(self) -> bool:
        return self.set_status(RunStatus.STOPPED)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def tick(self) -> None:
        """Execute at most one opcode."""
        if self.status not in ACTIVE_STATUSES:
            return

        backward = self.status == RunStatus.BACKWARD_ONCE

        if backward and self._cursor == 0:
            self.reset(ResetReason.PROGRAM_START)
            return
        if not backward and self._cursor >= len(self._program):
            self._finish_run()
            return

        index = self._cursor - 1 if backward else self._cursor
        opcode = self._program[index]
        if opcode.pawn not in self._pawns:
            raise InvariantViolation(
                f"Opcode {opcode.code} at index {index} refers to the "
                f"{opcode.pawn.name.lower()} pawn, which this level does not have"
            )

        self._cursor = index
        logger.debug("Tick: %s %s at %d", "undo" if backward else "do", opcode.code, index)
        if not self._execute(opcode, backward):
            return

        if not backward:
            self._cursor += 1

        if self.status in SINGLE_STEP_STATUSES:
            self.status = RunStatus.PAUSED
        elif self._cursor >= len(self._program):
            self._finish_run()

    def _execute(self, opcode: ScriptOpcode, backward: bool) -> bool:
        """Apply one opcode. Returns False if the run was aborted."""
        match opcode:
            case Move(pawn=pawn, direction=direction):
                effective = direction.opposite if backward else direction
                dest = self._pawns[pawn].step(effective)
                if self._blocks(dest):
                    logger.info("%s pawn blocked moving %s into %s",
                                pawn.name.lower(), effective.name.lower(), dest)
                    self.reset(ResetReason.COLLISION)
                    return False
                self._pawns[pawn] = dest
                self._count_step(backward)

            case Collect(pawn=pawn):
                toggled = self._toggle_collectible(self._pawns[pawn], backward)
                if toggled or self.rules.collect_always_costs_step:
                    self._count_step(backward)

            case _:
                raise ValueError(f"Unknown opcode: {opcode}")

        return True

    def _blocks(self, pos: Position) -> bool:
        grid = self._level.grid
        if not grid.in_bounds(pos):
            return True
        return isinstance(grid.cell_at(pos), self.rules.blocking)

    def _toggle_collectible(self, pos: Position, backward: bool) -> bool:
        # Forward collects an uncollected perl; backward puts a collected one back.
        expected = backward
        if self._collected.get(pos) is not expected:
            return False
        self._collected[pos] = not expected
        self._collected_count += -1 if backward else 1
        return True

    def _count_step(self, backward: bool) -> None:
        self._steps_taken += -1 if backward else 1

    def _finish_run(self) -> None:
        if self._collected_count == self.required_collectibles:
            self.completed = True
            self.recorded_solution_length = self._steps_taken
            logger.info("Level %d completed in %d steps",
                        self._level.level_id, self._steps_taken)
        else:
            self.completed = False
            logger.info("Program ended with %d/%d collected",
                        self._collected_count, self.required_collectibles)
        self.reset(ResetReason.PROGRAM_END)

    def run_to_completion(self, max_ticks: int = 10000) -> int:
        """
        Play the program from the current cursor until the run stops.

        Headless stand-in for the scheduler. Returns the number of ticks.

        Raises:
            InvariantViolation: The engine refused to play, e.g. a reset
                has not been acknowledged yet
        """
        if not self.play():
            raise InvariantViolation(
                f"Cannot play while {self.status.value}\n"
                f"  Call acknowledge_reset() after the reset is handled"
            )
        ticks = 0
        while self.status in ACTIVE_STATUSES:
            if ticks >= max_ticks:
                raise InvariantViolation(f"Run did not finish within {max_ticks} ticks")
            self.tick()
            ticks += 1
        return ticks
