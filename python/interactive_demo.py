"""
Interactive demo for pearlgrid.
Assemble a script with keyboard commands and watch the engine replay it.
"""

import logging
import time

import readchar, sys
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ascii_render import render_board, render_program, render_status
from cell_types import Direction, PawnColor
from engine import ACTIVE_STATUSES, Engine, InvariantViolation, ResetReason, RunStatus
from level_parser import DecodeError, LevelDescriptor, decode_level
from script import Collect, Move, ScriptOpcode, ScriptProgram

TICK_SECONDS = 0.5

OPCODE_KEYS: dict[str, ScriptOpcode] = {
    "w": Move(PawnColor.GREEN, Direction.UP),
    "a": Move(PawnColor.GREEN, Direction.LEFT),
    "s": Move(PawnColor.GREEN, Direction.DOWN),
    "d": Move(PawnColor.GREEN, Direction.RIGHT),
    "e": Collect(PawnColor.GREEN),
    "i": Move(PawnColor.ORANGE, Direction.UP),
    "j": Move(PawnColor.ORANGE, Direction.LEFT),
    "k": Move(PawnColor.ORANGE, Direction.DOWN),
    "l": Move(PawnColor.ORANGE, Direction.RIGHT),
    "o": Collect(PawnColor.ORANGE),
}

RESET_MESSAGES = {
    ResetReason.STOPPED: "Stopped",
    ResetReason.COLLISION: "✗ Bumped into a wall - run aborted",
    ResetReason.PROGRAM_START: "Back at the start",
}


class InteractiveDemo:
    """Keyboard-driven script editor and player."""

    def __init__(self, level: LevelDescriptor, tick_seconds: float = TICK_SECONDS) -> None:
        self.engine = Engine(level)
        self.tick_seconds = tick_seconds
        self.console = Console()
        self.selected: int | None = None
        self.status_message = "Ready"

    def generate_display(self) -> Panel:
        """Generate the current display with board, program and status."""
        engine = self.engine

        status = Text()
        status.append(Text.from_ansi(render_board(engine)))
        status.append("\n\n")
        status.append("Program:\n", style="bold")
        status.append(Text.from_ansi(render_program(engine.program, engine.cursor, self.selected)))
        status.append("\n\n")
        status.append("Keys:\n", style="bold cyan")
        status.append("  W/A/S/D - Add green move    E - Add green collect\n")
        status.append("  I/J/K/L - Add orange move   O - Add orange collect\n")
        status.append("  [ ] - Select piece   U/N - Move piece up/down   X - Remove piece\n")
        status.append("  Space - Play   . - Step forward   , - Step back   R - Stop\n")
        status.append("  Ctrl-C - Pause a running program\n")
        status.append("  Q - Quit\n\n")

        status.append("─" * 40 + "\n", style="dim")
        status.append("State: ", style="bold")
        status.append(render_status(engine.snapshot()) + "\n")
        status.append("Status: ", style="bold")
        status.append(self.status_message)

        return Panel(status, title="Pearlgrid", border_style="green", width=80)

    def finish_reset(self) -> None:
        """Acknowledge a reset once the display shows the restored board."""
        if self.engine.status != RunStatus.RESET:
            return
        reason = self.engine.last_reset_reason
        if reason == ResetReason.PROGRAM_END:
            if self.engine.completed:
                self.status_message = (
                    f"✓ Solved in {self.engine.recorded_solution_length} steps!"
                )
            else:
                self.status_message = "✗ Program finished without collecting every perl"
        elif reason in RESET_MESSAGES:
            self.status_message = RESET_MESSAGES[reason]
        self.engine.acknowledge_reset()

    def add_opcode(self, opcode: ScriptOpcode) -> None:
        self.engine.program.append(opcode)
        self.selected = len(self.engine.program) - 1
        self.status_message = f"Added {opcode}"

    def select(self, offset: int) -> None:
        count = len(self.engine.program)
        if count == 0:
            self.selected = None
            return
        current = self.selected if self.selected is not None else count - 1
        self.selected = max(0, min(count - 1, current + offset))

    def remove_selected(self) -> None:
        if self.selected is None:
            self.status_message = "No piece selected"
            return
        opcode = self.engine.program.remove_at(self.selected)
        self.status_message = f"Removed {opcode}"
        count = len(self.engine.program)
        self.selected = min(self.selected, count - 1) if count else None

    def reorder_selected(self, up: bool) -> None:
        if self.selected is None:
            self.status_message = "No piece selected"
            return
        program = self.engine.program
        self.selected = program.move_up(self.selected) if up else program.move_down(self.selected)

    def execute(self, live: Live, status: RunStatus) -> None:
        """
        Tick the engine until it leaves the requested run status.

        Keys are not read during a run; Ctrl-C pauses a running program.
        """
        if not self.engine.set_status(status):
            self.status_message = f"Cannot switch to {status.value} right now"
            return
        try:
            while self.engine.status in ACTIVE_STATUSES:
                self.engine.tick()
                live.update(self.generate_display())
                if self.engine.status == RunStatus.RUNNING:
                    time.sleep(self.tick_seconds)
        except KeyboardInterrupt:
            self.engine.pause()
            self.status_message = "Paused"
        except InvariantViolation as e:
            self.engine.stop()
            self.status_message = f"ERROR: {e}"

    def run(self) -> None:
        """Run the interactive demo."""
        with Live(self.generate_display(), console=self.console, refresh_per_second=4) as live:
            try:
                while True:
                    self.finish_reset()
                    live.update(self.generate_display())

                    key = readchar.readkey()

                    if key.lower() == 'q':
                        self.status_message = "Quitting..."
                        live.update(self.generate_display())
                        break
                    elif key.lower() in OPCODE_KEYS:
                        self.add_opcode(OPCODE_KEYS[key.lower()])
                    elif key == '[':
                        self.select(-1)
                    elif key == ']':
                        self.select(1)
                    elif key.lower() == 'u':
                        self.reorder_selected(up=True)
                    elif key.lower() == 'n':
                        self.reorder_selected(up=False)
                    elif key.lower() == 'x':
                        self.remove_selected()
                    elif key == ' ':
                        self.status_message = "Running..."
                        self.execute(live, RunStatus.RUNNING)
                    elif key == '.':
                        self.execute(live, RunStatus.FORWARD_ONCE)
                    elif key == ',':
                        self.execute(live, RunStatus.BACKWARD_ONCE)
                    elif key.lower() == 'r':
                        self.engine.stop()
                    else:
                        self.status_message = f"Unknown key: {repr(key)}"

            except KeyboardInterrupt:
                self.status_message = "Interrupted by user"
                live.update(self.generate_display())


LAYOUTS = dict(
    tutorial = "5 5 ZZZZZ/Z3Z/Z1CpZ/Z3Z/ZZZZZ 1",
    orange = "5 5 ZZZZZ/Z1C1Z/Z1Z1Z/Z1CPZ/ZZZZZ 2",
    pair = "6 7 ZZZZZZZ/Zp1C1PZ/Z2X2Z/Z1C3Z/Z5Z/ZZZZZZZ 2",
)

def load_layout(name: str) -> LevelDescriptor:
    """Decode a built-in layout by name, or treat name as a descriptor."""
    return decode_level(LAYOUTS.get(name, name))


def main(level: LevelDescriptor) -> None:
    """Run interactive demo on one level."""
    demo = InteractiveDemo(level)
    demo.run()


if __name__ == "__main__":
    headless = len(sys.argv) > 1 and sys.argv[1] == 'headless'
    args = sys.argv[2:] if headless else sys.argv[1:]
    name = args[0] if args else 'tutorial'

    try:
        level = load_layout(name)
    except DecodeError as e:
        print(f"ERROR: could not load level '{name}'")
        print(e)
        sys.exit(1)

    if headless:
        # Replay a script given as opcode codes and print the result
        logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')

        engine = Engine(level, ScriptProgram.from_codes(args[1:]))
        print(render_board(engine))
        print(render_program(engine.program, engine.cursor))
        engine.run_to_completion()
        print(render_status(engine.snapshot()))
    else:
        main(level)
