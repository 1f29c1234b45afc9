"""EPL command parser -- label source to drawing directives.

Classifies a label line by line and emits at most one directive per line:

    - ``A``  text                -> :class:`Text`
    - ``B``  linear barcode      -> :class:`Barcode1D`
    - ``b``  PDF417              -> :class:`Barcode2D`
    - ``L``  line / filled box   -> :class:`Box`
    - ``X``  box outline         -> :class:`Border`

Anything else (``N``, ``q``, ``Q``, ``P``, ``GW``...) draws nothing and is
ignored; graphic bitmaps are not decoded.  A line whose mnemonic does not
match :data:`MNEMONIC_RE`, or whose fields do not parse, is skipped
without aborting the rest of the label.

The first comma field carries the mnemonic and the horizontal position
(``A50`` is text at x=50).  Field positions mean different things per
command, so each command class has its own decoder.

All positions and sizes are converted from printer dots to output pixels
here, once.

Usage:
    from epl_render.parser.commands import parse_label

    result = parse_label(label_text)
    for d in result.diagnostics:
        print(d)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable

from epl_render.configs.loader import UnitSettings
from epl_render.directives.diagnostics import Diagnostic, DiagnosticKind
from epl_render.directives.model import (
    CODE128,
    UNKNOWN_SYMBOLOGY,
    Barcode1D,
    Barcode2D,
    Border,
    Box,
    Directive,
    Text,
)
from epl_render.parser.pdf417_params import parse_2d_params
from epl_render.parser.units import UNSCALED, parse_number, to_pixels

logger = logging.getLogger(__name__)

MNEMONIC_RE = re.compile(r"^([A-Za-z]+)([A-Za-z]*)(\d*)$")
"""Command family letters, optional sub-variant letters, embedded x position."""

# EPL font selector -> (size in dots, bold, scale multiplier)
FONT_TABLE: dict[int, tuple[int, bool, float]] = {
    1: (16, False, 1.0),
    2: (20, False, 1.0),
    3: (23, False, 1.0),
    4: (28, True, 0.93),
    5: (58, True, 1.0),
}
DEFAULT_FONT: tuple[int, bool, float] = (96, False, 1.0)

PDF417_ORIENTATION: dict[int, int] = {1: 90, 2: 180, 3: 270}

REVERSE_PADDING_PX = 2
GRAPHIC_BITS_PER_BYTE = 8


def _strip_quotes(value: str) -> str:
    return value.replace('"', "")


@dataclass
class ParseResult:
    """Directives in source order plus the diagnostics raised on the way."""

    directives: list[Directive] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


@dataclass
class _Line:
    """One matched command line, after mnemonic pre-adjustments."""

    line_no: int | None
    mnemonic: str
    left: int
    fields: list[str]
    background: str | None = None


# ============================================================================
# PARSER
# ============================================================================


class CommandParser:
    """Stateless line-by-line EPL interpreter.

    Parameters
    ----------
    units : UnitSettings | None
        Dot-to-pixel ratio.  ``None`` uses 203 dpi -> 96 dpi at 1.5x.

    Notes
    -----
    The only state carried across lines is the output being accumulated;
    parsing the same source twice yields equal results.
    """

    def __init__(self, units: UnitSettings | None = None) -> None:
        self.units = units or UnitSettings()
        self._decoders: dict[str, Callable[[_Line, list[Diagnostic]], Directive]] = {
            "b": self._decode_pdf417,
            "B": self._decode_barcode,
            "A": self._decode_text,
            "L": self._decode_box,
            "X": self._decode_border,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self, source: str) -> ParseResult:
        """Parse a whole label.

        Parameters
        ----------
        source : str
            Decoded label text, one command per line.

        Returns
        -------
        ParseResult
            Directives in source order and collected diagnostics.
        """
        result = ParseResult()
        lines = source.split("\n")
        for line_no, line in enumerate(lines, start=1):
            directive, diagnostics = self.parse_line(line, line_no)
            result.diagnostics.extend(diagnostics)
            if directive is not None:
                result.directives.append(directive)

        logger.info(
            "Parsed %d directives from %d lines (%d diagnostics)",
            len(result.directives), len(lines), len(result.diagnostics),
        )
        return result

    def parse_line(
        self, line: str, line_no: int | None = None,
    ) -> tuple[Directive | None, list[Diagnostic]]:
        """Decode a single command line.

        Returns
        -------
        tuple[Directive | None, list[Diagnostic]]
            The directive (``None`` for inert, unrecognised or malformed
            lines) and any diagnostics raised while decoding.
        """
        diagnostics: list[Diagnostic] = []
        fields = line.strip().split(",")

        match = MNEMONIC_RE.match(fields[0])
        if not match or not match.group(3):
            return None, diagnostics

        cmd = _Line(
            line_no=line_no,
            mnemonic=match.group(1),
            left=int(match.group(3)),
            fields=fields,
        )

        try:
            self._pre_adjust(cmd)
            decoder = self._decoders.get(cmd.mnemonic[0])
            if decoder is None:
                return None, diagnostics
            directive = decoder(cmd, diagnostics)
        except (ValueError, IndexError) as exc:
            logger.debug("Skipping line %s (%r): %s", line_no, line.strip(), exc)
            return None, diagnostics

        return directive, diagnostics

    # ------------------------------------------------------------------
    # Internal: helpers
    # ------------------------------------------------------------------

    def _px(self, dots: float | int | str) -> int:
        return to_pixels(dots, self.units)

    def _px_unscaled(self, dots: float | int | str) -> int:
        return to_pixels(dots, self.units, UNSCALED)

    def _pre_adjust(self, cmd: _Line) -> None:
        """Apply mnemonic-specific field and style adjustments."""
        if cmd.mnemonic == "LO":
            cmd.background = "black"
        elif cmd.mnemonic == "GW":
            cmd.fields[2] = str(int(parse_number(cmd.fields[2])) * GRAPHIC_BITS_PER_BYTE)
            cmd.background = "black"

    # ------------------------------------------------------------------
    # Internal: per-command decoders
    # ------------------------------------------------------------------

    def _decode_pdf417(self, cmd: _Line, diagnostics: list[Diagnostic]) -> Barcode2D:
        # b{x},{y},P,{max width},{max height},{options...},"{data}"
        f = cmd.fields
        x = self._px(cmd.left)
        y = self._px(f[1])
        value = _strip_quotes(f[-1])

        if f[2] != "P":
            diag = Diagnostic(
                DiagnosticKind.UNEXPECTED_LITERAL,
                f"Unhandled 2D Barcode type: `{f[2]}`. Expected `P`.",
                cmd.line_no,
            )
            logger.warning("%s", diag)
            diagnostics.append(diag)

        params, param_diags = parse_2d_params(f, 5, len(f) - 1, cmd.line_no)
        diagnostics.extend(param_diags)

        for key in ("scaleX", "scaleY"):
            if params.get(key) is not None:
                params[key] = self._px_unscaled(params[key])

        rotation = PDF417_ORIENTATION.get(params.get("orientation"), 0)

        return Barcode2D(
            x=x, y=y, rotation_deg=rotation, value=value, parameters=params,
            line_no=cmd.line_no,
        )

    def _decode_barcode(self, cmd: _Line, diagnostics: list[Diagnostic]) -> Barcode1D:
        # B{x},{y},{rotation},{type},{narrow},{wide},{height},{B|N},"{data}"
        f = cmd.fields
        return Barcode1D(
            x=self._px(cmd.left),
            y=self._px(f[1]),
            rotation_deg=-90 if f[2] == "3" else 0,
            value=_strip_quotes(f[8]),
            symbology=CODE128 if f[3] == "1" else UNKNOWN_SYMBOLOGY,
            width=self._px_unscaled(f[4]),
            height=self._px_unscaled(f[6]),
            show_text=f[7] == "B",
            line_no=cmd.line_no,
        )

    def _decode_text(self, cmd: _Line, diagnostics: list[Diagnostic]) -> Text:
        # A{x},{y},{rotation},{font},{h-mult},{v-mult},{N|R},"{data}"
        f = cmd.fields
        try:
            font_key: int | None = int(f[3])
        except ValueError:
            font_key = None
        size, bold, scaler = FONT_TABLE.get(font_key, DEFAULT_FONT)

        if f[6] == "R":
            color, background, padding = "white", "black", REVERSE_PADDING_PX
        else:
            color, background, padding = "black", cmd.background, 0

        return Text(
            x=self._px(cmd.left),
            y=self._px(f[1]),
            text=_strip_quotes(", ".join(f[7:])),
            font_size=self._px(size),
            bold=bold,
            rotation_deg=-90 if f[2] == "3" else 0,
            color=color,
            background=background,
            padding=padding,
            scale_x=scaler * int(f[4]),
            scale_y=scaler * int(f[5]),
            line_no=cmd.line_no,
        )

    def _decode_box(self, cmd: _Line, diagnostics: list[Diagnostic]) -> Box:
        # L{O|E|W}{x},{y},{width},{height}
        f = cmd.fields
        return Box(
            x=self._px(cmd.left),
            y=self._px(f[1]),
            width=self._px(f[2]),
            height=self._px(f[3]),
            fill=cmd.background or "black",
            line_no=cmd.line_no,
        )

    def _decode_border(self, cmd: _Line, diagnostics: list[Diagnostic]) -> Border:
        # X{x start},{y start},{thickness},{x end},{y end}
        f = cmd.fields
        x_start = cmd.left
        y_start = parse_number(f[1])
        x_end = parse_number(f[3])
        y_end = parse_number(f[4])

        x_min = self._px(min(x_start, x_end))
        y_min = self._px(min(y_start, y_end))
        return Border(
            x=x_min,
            y=y_min,
            width=self._px(max(x_start, x_end)) - x_min,
            height=self._px(max(y_start, y_end)) - y_min,
            thickness=self._px(f[2]),
            line_no=cmd.line_no,
        )


def parse_label(source: str, units: UnitSettings | None = None) -> ParseResult:
    """Parse *source* with a fresh :class:`CommandParser`."""
    return CommandParser(units).parse(source)
