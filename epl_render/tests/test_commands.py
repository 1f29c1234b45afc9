"""Tests for the EPL command parser.

Validates per-command field decoding, unit conversion at parse time,
the LO pre-adjustment, inert GW graphics, and recovery from malformed lines.
"""

from __future__ import annotations

import pytest

from epl_render.configs.loader import UnitSettings
from epl_render.directives.diagnostics import DiagnosticKind
from epl_render.directives.model import (
    CODE128,
    UNKNOWN_SYMBOLOGY,
    Barcode1D,
    Barcode2D,
    Border,
    Box,
    Text,
)
from epl_render.parser.commands import CommandParser, parse_label
from epl_render.parser.units import UNSCALED, to_pixels


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def parser() -> CommandParser:
    return CommandParser()


def _only(parser: CommandParser, line: str):
    directive, diagnostics = parser.parse_line(line, 1)
    assert directive is not None, f"no directive for {line!r}"
    return directive, diagnostics


# ---------------------------------------------------------------------------
# Text (A)
# ---------------------------------------------------------------------------


class TestText:
    def test_basic(self, parser: CommandParser) -> None:
        text, diags = _only(parser, 'A50,100,0,3,1,1,N,"Hello"')
        assert isinstance(text, Text)
        assert (text.x, text.y) == (to_pixels(50), to_pixels(100))
        assert text.text == "Hello"
        assert text.font_size == to_pixels(23)
        assert text.bold is False
        assert text.rotation_deg == 0
        assert text.color == "black"
        assert text.background is None
        assert text.padding == 0
        assert diags == []

    def test_bold_font_and_scale(self, parser: CommandParser) -> None:
        text, _ = _only(parser, 'A10,10,0,4,2,3,N,"Big"')
        assert text.font_size == to_pixels(28)
        assert text.bold is True
        assert text.scale_x == pytest.approx(0.93 * 2)
        assert text.scale_y == pytest.approx(0.93 * 3)

    def test_unknown_font_uses_default(self, parser: CommandParser) -> None:
        text, _ = _only(parser, 'A10,10,0,9,1,1,N,"x"')
        assert text.font_size == to_pixels(96)

    def test_rotation_code_3(self, parser: CommandParser) -> None:
        text, _ = _only(parser, 'A10,10,3,1,1,1,N,"up"')
        assert text.rotation_deg == -90

    def test_other_rotation_codes_ignored(self, parser: CommandParser) -> None:
        text, _ = _only(parser, 'A10,10,1,1,1,1,N,"x"')
        assert text.rotation_deg == 0

    def test_reverse_video(self, parser: CommandParser) -> None:
        text, _ = _only(parser, 'A10,10,0,2,1,1,R,"INV"')
        assert text.color == "white"
        assert text.background == "black"
        assert text.padding == 2

    def test_commas_inside_data(self, parser: CommandParser) -> None:
        text, _ = _only(parser, 'A10,10,0,1,1,1,N,"a,b"')
        assert text.text == "a, b"


# ---------------------------------------------------------------------------
# Linear barcode (B)
# ---------------------------------------------------------------------------


class TestBarcode1D:
    def test_code128(self, parser: CommandParser) -> None:
        code, _ = _only(parser, 'B10,20,0,1,2,4,50,B,"12345"')
        assert isinstance(code, Barcode1D)
        assert (code.x, code.y) == (to_pixels(10), to_pixels(20))
        assert code.value == "12345"
        assert code.symbology == CODE128
        assert code.width == to_pixels(2, overrides=UNSCALED)
        assert code.height == to_pixels(50, overrides=UNSCALED)
        assert code.show_text is True
        assert code.rotation_deg == 0

    def test_unknown_symbology_still_emitted(self, parser: CommandParser) -> None:
        code, diags = _only(parser, 'B10,20,3,E30,2,4,50,N,"123"')
        assert code.symbology == UNKNOWN_SYMBOLOGY
        assert code.rotation_deg == -90
        assert code.show_text is False
        assert diags == []


# ---------------------------------------------------------------------------
# PDF417 (b)
# ---------------------------------------------------------------------------


class TestBarcode2D:
    def test_params(self, parser: CommandParser) -> None:
        code, diags = _only(parser, 'b10,20,P,400,300,s2,x3,y9,r12,l4,"DATA"')
        assert isinstance(code, Barcode2D)
        assert (code.x, code.y) == (to_pixels(10), to_pixels(20))
        assert code.value == "DATA"
        assert code.rotation_deg == 0
        assert dict(code.parameters) == {
            "securitylevel": 2,
            "scaleX": to_pixels(3, overrides=UNSCALED),
            "scaleY": to_pixels(9, overrides=UNSCALED),
            "rows": 40,
            "columns": 4,
        }
        assert diags == []

    @pytest.mark.parametrize("flag,rotation", [("o0", 0), ("o1", 90), ("o2", 180), ("o3", 270)])
    def test_orientation(self, parser: CommandParser, flag: str, rotation: int) -> None:
        code, _ = _only(parser, f'b10,20,P,400,300,{flag},"DATA"')
        assert code.rotation_deg == rotation

    def test_unexpected_literal(self, parser: CommandParser) -> None:
        code, diags = _only(parser, 'b10,20,Q,400,300,s2,"DATA"')
        assert isinstance(code, Barcode2D)
        assert [d.kind for d in diags] == [DiagnosticKind.UNEXPECTED_LITERAL]
        assert "`Q`" in diags[0].message

    def test_unknown_flag_truncates(self, parser: CommandParser) -> None:
        code, diags = _only(parser, 'b10,20,P,400,300,s2,z5,l4,"DATA"')
        assert dict(code.parameters) == {"securitylevel": 2}
        assert [d.kind for d in diags] == [DiagnosticKind.UNKNOWN_FLAG]


# ---------------------------------------------------------------------------
# Shapes (L, X)
# ---------------------------------------------------------------------------


class TestShapes:
    def test_line_draw_black(self, parser: CommandParser) -> None:
        box, _ = _only(parser, "LO10,20,100,4")
        assert box == Box(
            x=to_pixels(10), y=to_pixels(20),
            width=to_pixels(100), height=to_pixels(4), fill="black",
        )

    def test_border_normalized(self, parser: CommandParser) -> None:
        border, _ = _only(parser, "X50,50,2,10,90")
        assert isinstance(border, Border)
        assert border.x == to_pixels(10)
        assert border.y == to_pixels(50)
        assert border.width == to_pixels(50) - to_pixels(10)
        assert border.height == to_pixels(90) - to_pixels(50)
        assert border.thickness == to_pixels(2)

    def test_border_already_ordered(self, parser: CommandParser) -> None:
        border, _ = _only(parser, "X10,50,2,50,90")
        assert (border.x, border.y) == (to_pixels(10), to_pixels(50))

    def test_graphic_write_draws_nothing(self, parser: CommandParser) -> None:
        directive, diags = parser.parse_line("GW10,20,4,32,FFFF", 1)
        assert directive is None
        assert diags == []
        assert parse_label("GW10,10,2,16,xxxx\n").directives == []

    def test_graphic_write_leaves_later_lines(self) -> None:
        result = parse_label("GW10,10,2,16,xxxx\nLO0,0,10,10\n")
        assert result.directives == [
            Box(x=0, y=0, width=to_pixels(10), height=to_pixels(10)),
        ]


# ---------------------------------------------------------------------------
# Inert and malformed lines
# ---------------------------------------------------------------------------


class TestRecovery:
    @pytest.mark.parametrize("line", ["N", "q812", "Q1218,24", "P1", "", "   ", "ZZ"])
    def test_inert_lines(self, parser: CommandParser, line: str) -> None:
        directive, diags = parser.parse_line(line)
        assert directive is None
        assert diags == []

    @pytest.mark.parametrize("line", [
        'A50,abc,0,3,1,1,N,"x"',
        "LO10,20",
        'B10,20,0,1,2,4,50',
        "X10,20,2,oops,40",
        'A10,-5,0,1,1,1,N,"above the label"',
        "LO10,-20,30,4",
    ])
    def test_malformed_skipped(self, parser: CommandParser, line: str) -> None:
        directive, diags = parser.parse_line(line)
        assert directive is None
        assert diags == []

    def test_later_lines_still_parsed(self) -> None:
        source = "\n".join([
            "N",
            "LO10,20",
            'b10,20,P,400,300,z5,"DATA"',
            'A10,10,0,1,1,1,N,"after"',
        ])
        result = parse_label(source)

        assert [type(d) for d in result.directives] == [Barcode2D, Text]
        assert result.directives[1].text == "after"
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].line_no == 3

    def test_directives_carry_source_line(self) -> None:
        result = parse_label('N\nLO0,0,10,10\n\nA10,10,0,1,1,1,N,"x"\n')
        assert [d.line_no for d in result.directives] == [2, 4]

    def test_parse_is_deterministic(self) -> None:
        source = 'LO0,0,10,10\nA10,10,0,1,1,1,N,"x"\nX0,0,1,20,20'
        assert parse_label(source) == parse_label(source)


# ---------------------------------------------------------------------------
# Unit settings
# ---------------------------------------------------------------------------


class TestUnitSettings:
    def test_custom_units(self) -> None:
        units = UnitSettings(printer_dpi=100.0, screen_dpi=100.0, scale_factor=1.0)
        box, _ = CommandParser(units).parse_line("LO10,20,30,40")
        assert box == Box(x=10, y=20, width=30, height=40)
