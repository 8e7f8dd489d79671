"""Tests for ascii_render module."""

import re

from ascii_render import cell_glyph, render_board, render_program, render_status
from cell_types import Collectible, Empty, MovableObstacle, Pawn, PawnColor, Position, Wall
from engine import Engine
from level_parser import decode_level
from script import ScriptProgram

ANSI = re.compile(r"\x1b\[[0-9;]*m")


def plain(text: str) -> str:
    return ANSI.sub("", text)


TUTORIAL = "5 5 ZZZZZ/Z3Z/Z1CpZ/Z3Z/ZZZZZ 1"


class TestCellGlyph:
    def test_glyphs(self) -> None:
        assert cell_glyph(Wall())[0] == "#"
        assert cell_glyph(Wall("q"))[0] == "#"
        assert cell_glyph(MovableObstacle())[0] == "X"
        assert cell_glyph(Empty())[0] == "_"
        assert cell_glyph(Collectible())[0] == "*"
        assert cell_glyph(Collectible(), collected=True)[0] == "."

    def test_pawn_start_is_floor(self) -> None:
        assert cell_glyph(Pawn(PawnColor.ORANGE, "P"))[0] == "_"


class TestRenderBoard:
    def test_compact_board(self) -> None:
        engine = Engine(decode_level(TUTORIAL))
        lines = plain(render_board(engine, cell_width=1)).split("\n")

        assert lines == [
            "┌─────┐",
            "│#####│",
            "│#___#│",
            "│#_*g#│",
            "│#___#│",
            "│#####│",
            "└─────┘",
        ]

    def test_title_shows_level_id(self) -> None:
        engine = Engine(decode_level(TUTORIAL, level_id=3))
        first = plain(render_board(engine)).split("\n")[0]
        assert "level 3" in first

    def test_board_follows_engine_state(self) -> None:
        """Pawns are drawn where the engine has them, and collected perls change."""
        engine = Engine(decode_level(TUTORIAL), ScriptProgram.from_codes(["mgl", "cgp"]))
        for _ in range(2):
            engine.step_forward()
            engine.tick()

        lines = plain(render_board(engine, cell_width=1)).split("\n")
        assert lines[3] == "│#_g_#│"

        engine.step_back()
        engine.tick()
        engine.step_back()
        engine.tick()
        lines = plain(render_board(engine, cell_width=1)).split("\n")
        assert lines[3] == "│#_*g#│"

    def test_collected_perl_under_moved_pawn(self) -> None:
        engine = Engine(decode_level(TUTORIAL), ScriptProgram.from_codes(["mgl", "cgp", "mgu"]))
        for _ in range(3):
            engine.step_forward()
            engine.tick()

        lines = plain(render_board(engine, cell_width=1)).split("\n")
        assert lines[2] == "│#_g_#│"
        assert lines[3] == "│#_._#│"

    def test_highlight_keeps_glyph(self) -> None:
        engine = Engine(decode_level(TUTORIAL))
        lines = plain(render_board(engine, cell_width=1, highlight_pos=Position(2, 2))).split("\n")
        assert lines[3] == "│#_*g#│"


class TestRenderProgram:
    def test_empty_program(self) -> None:
        assert render_program(ScriptProgram(), 0) == "(empty program)"

    def test_cursor_marker(self) -> None:
        program = ScriptProgram.from_codes(["mgl", "cgp"])
        lines = plain(render_program(program, 1)).split("\n")

        assert lines == [
            "   0  mgl  move green left",
            ">  1  cgp  collect green",
        ]

    def test_cursor_at_end(self) -> None:
        program = ScriptProgram.from_codes(["mou"])
        lines = plain(render_program(program, 1, selected=0)).split("\n")

        assert lines == [
            "   0  mou  move orange up",
            ">  end",
        ]


class TestRenderStatus:
    def test_status_line(self) -> None:
        engine = Engine(decode_level(TUTORIAL))
        assert render_status(engine.snapshot()) == "stopped  step 0  perls 0/1  cursor 0"

    def test_solved_suffix(self) -> None:
        engine = Engine(decode_level(TUTORIAL), ScriptProgram.from_codes(["mgl", "cgp"]))
        engine.run_to_completion()

        text = render_status(engine.snapshot())
        assert text == "reset  step 0  perls 0/1  cursor 0  solved in 2"
