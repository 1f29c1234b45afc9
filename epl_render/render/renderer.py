"""Label renderer -- drawing directives to an RGBA raster.

Rendering runs in three phases over one canvas:

    1. every ``Box`` in source order
    2. every ``Border`` in source order
    3. the complete source-ordered list (boxes and borders again)

Text inspects the canvas to decide its per-pixel colour, so everything it
might overlap has to be on the canvas first.  Within a phase directives
are drawn strictly in order; later ones overdraw earlier ones.

PDF417 generation is the only step that leaves the event loop (it runs in
a worker thread); it is awaited before the next directive starts, so the
draw order never changes.

Symbol failures are per directive: the error is logged, recorded as a
diagnostic, and the remaining directives still render.

Usage:
    renderer = LabelRenderer(config)
    result = asyncio.run(renderer.render(parse_label(text).directives))
    result.image.save("label.png")
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from epl_render.configs.loader import LabelConfig
from epl_render.directives.diagnostics import Diagnostic, DiagnosticKind
from epl_render.directives.model import (
    Barcode1D,
    Barcode2D,
    Border,
    Box,
    Directive,
    Text,
    phase_order,
)
from epl_render.render.canvas import LabelCanvas, rotate_tile, rotated_rect
from epl_render.render.compositing import contrast_corrected_overlay
from epl_render.render.symbols import (
    BarcodeSymbolRenderer,
    SymbolError,
    SymbolRenderer,
    UnsupportedSymbologyError,
)

logger = logging.getLogger(__name__)

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont


@functools.lru_cache(maxsize=32)
def load_font(path: str | None, size: int) -> Font:
    """Load a TrueType font, falling back to Pillow's bundled scalable font."""
    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            logger.warning("Font %s could not be loaded, using default font", path)
    return ImageFont.load_default(size=size)


@dataclass
class RenderResult:
    """Finished raster plus the diagnostics raised while drawing it."""

    image: Image.Image
    diagnostics: list[Diagnostic] = field(default_factory=list)


class LabelRenderer:
    """Draw directives onto a fresh canvas.

    Parameters
    ----------
    config : LabelConfig | None
        Canvas size, fonts and PDF417 defaults.  ``None`` uses defaults.
    symbols : SymbolRenderer | None
        Barcode rasterizer.  ``None`` builds a :class:`BarcodeSymbolRenderer`.
    """

    def __init__(
        self,
        config: LabelConfig | None = None,
        symbols: SymbolRenderer | None = None,
    ) -> None:
        self._cfg = config or LabelConfig()
        self._symbols = symbols or BarcodeSymbolRenderer(self._cfg.pdf417)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def new_canvas(self) -> LabelCanvas:
        c = self._cfg.canvas
        return LabelCanvas(c.width_px, c.height_px, c.background)

    async def render(self, directives: Iterable[Directive]) -> RenderResult:
        """Render a directive list through the three z-order phases.

        Parameters
        ----------
        directives : Iterable[Directive]
            Directives in source order.

        Returns
        -------
        RenderResult
            RGBA image and per-directive diagnostics.
        """
        canvas = self.new_canvas()
        diagnostics: list[Diagnostic] = []

        boxes, borders, everything = phase_order(directives)
        for phase, items in (("boxes", boxes), ("borders", borders), ("all", everything)):
            logger.debug("Rendering phase %s (%d directives)", phase, len(items))
            for directive in items:
                await self.render_directive(canvas, directive, diagnostics)

        return RenderResult(image=canvas.image, diagnostics=diagnostics)

    async def render_directive(
        self,
        canvas: LabelCanvas,
        directive: Directive,
        diagnostics: list[Diagnostic],
    ) -> None:
        """Draw one directive; symbol failures become diagnostics."""
        try:
            if isinstance(directive, Box):
                canvas.fill_rect(
                    directive.x, directive.y, directive.width, directive.height,
                    directive.fill,
                )
            elif isinstance(directive, Border):
                canvas.stroke_rect(
                    directive.x, directive.y, directive.width, directive.height,
                    directive.thickness,
                )
            elif isinstance(directive, Text):
                self._draw_text(canvas, directive)
            elif isinstance(directive, Barcode1D):
                self._draw_barcode(canvas, directive)
            elif isinstance(directive, Barcode2D):
                await self._draw_pdf417(canvas, directive)
            else:
                logger.warning("Unsupported directive: %s", type(directive).__name__)
        except SymbolError as exc:
            kind = (
                DiagnosticKind.UNSUPPORTED_SYMBOLOGY
                if isinstance(exc, UnsupportedSymbologyError)
                else DiagnosticKind.SYMBOL_ERROR
            )
            diag = Diagnostic(kind, str(exc), directive.line_no)
            logger.error("%s", diag)
            diagnostics.append(diag)

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def _font_for(self, directive: Text, size: int) -> tuple[Font, int]:
        """Return ``(font, stroke_width)``; bold without a bold face is stroked."""
        text_cfg = self._cfg.text
        if directive.bold and text_cfg.bold_font_path:
            return load_font(text_cfg.bold_font_path, size), 0
        return load_font(text_cfg.font_path, size), 1 if directive.bold else 0

    def _draw_text(self, canvas: LabelCanvas, directive: Text) -> None:
        font_px = directive.font_size * directive.scale_x
        size = max(round(font_px), 1)
        font, stroke = self._font_for(directive, size)
        rot = directive.rotation_deg

        baseline = font_px * self._cfg.text.baseline_ratio
        origin_x = directive.x + (baseline if rot != 0 else 0)
        origin_y = directive.y + (baseline if rot == 0 else 0)

        layer = canvas.new_layer()
        left, top, right, bottom = font.getbbox(
            directive.text, anchor="ls", stroke_width=stroke,
        )
        if right > left and bottom > top:
            tile = Image.new("RGBA", (right - left, bottom - top), (0, 0, 0, 0))
            ImageDraw.Draw(tile).text(
                (-left, -top), directive.text, font=font, fill=directive.color,
                anchor="ls", stroke_width=stroke, stroke_fill=directive.color,
            )
            rotated, position = rotate_tile(tile, (-left, -top), (origin_x, origin_y), rot)
            layer.paste(rotated, position)

        if directive.background:
            bg_width = canvas.measure_text(directive.text, font) + directive.padding
            bg_height = baseline + directive.padding
            x0, y0, x1, y1 = rotated_rect(directive.x, directive.y, bg_width, bg_height, rot)
            canvas.fill_box(x0, y0, x1, y1, directive.background)

        corrected = contrast_corrected_overlay(canvas.pixels(), np.array(layer))
        canvas.composite(Image.fromarray(corrected, "RGBA"))

    # ------------------------------------------------------------------
    # Symbols
    # ------------------------------------------------------------------

    def _draw_barcode(self, canvas: LabelCanvas, directive: Barcode1D) -> None:
        tile = self._symbols.render_1d(
            directive.value,
            directive.symbology,
            directive.width,
            directive.height,
            directive.show_text,
        )
        canvas.draw_image(tile, directive.x, directive.y, directive.rotation_deg)

    async def _draw_pdf417(self, canvas: LabelCanvas, directive: Barcode2D) -> None:
        tile = await asyncio.to_thread(
            self._symbols.render_2d, directive.value, directive.parameters,
        )
        canvas.draw_image(tile, directive.x, directive.y, directive.rotation_deg)
