"""
Script opcodes and the player-assembled program.

The program is kept in lock-step with the UI's list of puzzle pieces: every
structural change made here must be mirrored on that list, index for index.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

from cell_types import Direction, PawnColor

__all__ = [
    "Move",
    "Collect",
    "ScriptOpcode",
    "ALL_OPCODES",
    "opcode_from_code",
    "ScriptProgram",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Move:
    """Move a pawn one cell."""

    pawn: PawnColor
    direction: Direction

    @property
    def code(self) -> str:
        return f"m{self.pawn.value}{self.direction.value}"

    def __str__(self) -> str:
        return f"move {self.pawn.name.lower()} {self.direction.name.lower()}"


@dataclass(frozen=True)
class Collect:
    """Collect the perl under a pawn."""

    pawn: PawnColor

    @property
    def code(self) -> str:
        return f"c{self.pawn.value}p"

    def __str__(self) -> str:
        return f"collect {self.pawn.name.lower()}"


ScriptOpcode = Move | Collect


ALL_OPCODES: tuple[ScriptOpcode, ...] = tuple(
    [Move(pawn, direction) for pawn in PawnColor for direction in Direction]
    + [Collect(pawn) for pawn in PawnColor]
)

_BY_CODE: dict[str, ScriptOpcode] = {op.code: op for op in ALL_OPCODES}


def opcode_from_code(code: str) -> ScriptOpcode:
    """
    Parse a short opcode code.

    Codes are 'm' + pawn + direction for moves ("mgr" = move green right)
    and 'c' + pawn + 'p' for collects ("cop" = orange collects a perl).
    """
    try:
        return _BY_CODE[code]
    except KeyError:
        raise ValueError(
            f"Unknown opcode code: '{code}'\n"
            f"  Valid codes: {', '.join(sorted(_BY_CODE))}"
        ) from None


ProgramListener = Callable[["ScriptProgram"], None]


class ScriptProgram:
    """
    Ordered, mutable list of opcodes.

    Listeners registered with subscribe() are called after every structural
    change; the engine uses this to reset any run in progress.
    """

    def __init__(self, opcodes: Iterable[ScriptOpcode] = ()) -> None:
        self._opcodes: list[ScriptOpcode] = list(opcodes)
        self._listeners: list[ProgramListener] = []

    @classmethod
    def from_codes(cls, codes: Iterable[str]) -> ScriptProgram:
        return cls(opcode_from_code(code) for code in codes)

    def codes(self) -> list[str]:
        return [op.code for op in self._opcodes]

    def subscribe(self, listener: ProgramListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: ProgramListener) -> None:
        self._listeners.remove(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def __len__(self) -> int:
        return len(self._opcodes)

    def __getitem__(self, index: int) -> ScriptOpcode:
        return self._opcodes[index]

    def __iter__(self) -> Iterator[ScriptOpcode]:
        return iter(self._opcodes)

    def __repr__(self) -> str:
        return f"ScriptProgram({self.codes()!r})"

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._opcodes):
            raise IndexError(
                f"Program index {index} out of range (length {len(self._opcodes)})"
            )

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def append(self, opcode: ScriptOpcode) -> None:
        self._opcodes.append(opcode)
        logger.debug("Appended %s at %d", opcode.code, len(self._opcodes) - 1)
        self._changed()

    def insert(self, index: int, opcode: ScriptOpcode) -> None:
        if not 0 <= index <= len(self._opcodes):
            raise IndexError(
                f"Insert index {index} out of range (length {len(self._opcodes)})"
            )
        self._opcodes.insert(index, opcode)
        logger.debug("Inserted %s at %d", opcode.code, index)
        self._changed()

    def remove_at(self, index: int) -> ScriptOpcode:
        self._check_index(index)
        opcode = self._opcodes.pop(index)
        logger.debug("Removed %s from %d", opcode.code, index)
        self._changed()
        return opcode

    def swap(self, i: int, j: int) -> None:
        """Swap two adjacent opcodes."""
        self._check_index(i)
        self._check_index(j)
        if abs(i - j) != 1:
            raise ValueError(f"Can only swap adjacent opcodes, got indices {i} and {j}")
        self._opcodes[i], self._opcodes[j] = self._opcodes[j], self._opcodes[i]
        logger.debug("Swapped %d and %d", i, j)
        self._changed()

    def move_up(self, index: int) -> int:
        """Move an opcode one place earlier. Returns its new index."""
        self._check_index(index)
        if index == 0:
            return index
        self.swap(index, index - 1)
        return index - 1

    def move_down(self, index: int) -> int:
        """Move an opcode one place later. Returns its new index."""
        self._check_index(index)
        if index == len(self._opcodes) - 1:
            return index
        self.swap(index, index + 1)
        return index + 1

    def clear(self) -> None:
        self._opcodes.clear()
        self._changed()
