"""Tests for the label renderer.

A fake symbol renderer stands in for the barcode libraries so most of these
tests exercise phase ordering, placement and compositing only.  The
recovery tests at the end run the real python-barcode and pdf417gen
encoders on payloads they reject.
"""

from __future__ import annotations

import asyncio
from typing import Mapping

import numpy as np
import pytest
from PIL import Image

from epl_render.configs.loader import CanvasConfig, LabelConfig
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
from epl_render.render.renderer import LabelRenderer, RenderResult
from epl_render.render.symbols import (
    BarcodeSymbolRenderer,
    SymbolError,
    UnsupportedSymbologyError,
)

OPAQUE_BLACK = [0, 0, 0, 255]
OPAQUE_WHITE = [255, 255, 255, 255]


class FakeSymbols:
    """Solid black tiles; 1D tiles are ``10 * width`` wide."""

    def __init__(self, fail_2d: bool = False) -> None:
        self.fail_2d = fail_2d
        self.calls: list[tuple] = []

    def render_1d(self, value, symbology, width, height, show_text) -> Image.Image:
        self.calls.append(("1d", value))
        if symbology != CODE128:
            raise UnsupportedSymbologyError(f"Unsupported 1D barcode symbology: {symbology!r}")
        return Image.new("RGB", (width * 10, height), (0, 0, 0))

    def render_2d(self, value: str, parameters: Mapping[str, int | None]) -> Image.Image:
        self.calls.append(("2d", value))
        if self.fail_2d:
            raise SymbolError("Error generating 2D barcode: boom")
        return Image.new("RGB", (12, 8), (0, 0, 0))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def symbols() -> FakeSymbols:
    return FakeSymbols()


@pytest.fixture()
def renderer(symbols: FakeSymbols) -> LabelRenderer:
    return LabelRenderer(symbols=symbols)


def _render(renderer: LabelRenderer, directives) -> tuple[np.ndarray, RenderResult]:
    result = asyncio.run(renderer.render(directives))
    return np.array(result.image), result


# ---------------------------------------------------------------------------
# Canvas and shapes
# ---------------------------------------------------------------------------


class TestShapes:
    def test_default_canvas(self, renderer: LabelRenderer) -> None:
        arr, result = _render(renderer, [])
        assert result.image.size == (565, 565)
        assert result.image.mode == "RGBA"
        assert not arr.any()
        assert result.diagnostics == []

    def test_configured_canvas(self, symbols: FakeSymbols) -> None:
        cfg = LabelConfig(canvas=CanvasConfig(width_px=200, height_px=100))
        _, result = _render(LabelRenderer(cfg, symbols), [])
        assert result.image.size == (200, 100)

    def test_box_and_border(self, renderer: LabelRenderer) -> None:
        arr, _ = _render(renderer, [
            Box(x=10, y=10, width=20, height=20),
            Border(x=100, y=100, width=50, height=50, thickness=4),
        ])
        assert arr[10:30, 10:30].reshape(-1, 4).tolist() == [OPAQUE_BLACK] * 400
        assert arr[125, 100].tolist() == OPAQUE_BLACK
        assert arr[125, 125, 3] == 0


# ---------------------------------------------------------------------------
# Text and contrast
# ---------------------------------------------------------------------------


class TestText:
    def test_text_over_box_is_white(self, renderer: LabelRenderer) -> None:
        arr, _ = _render(renderer, [
            Box(x=0, y=0, width=40, height=100),
            Text(x=0, y=0, text="HHHH", font_size=40),
        ])

        inside = arr[:100, :40]
        assert np.all(inside == OPAQUE_WHITE, axis=-1).any()

        outside = arr[:100, 45:]
        inked = outside[..., 3] > 0
        assert inked.any()
        assert outside[inked][:, :3].max() == 0

    def test_fill_after_text_overdraws(self, renderer: LabelRenderer) -> None:
        arr, _ = _render(renderer, [
            Text(x=0, y=0, text="HHHH", font_size=40),
            Box(x=0, y=0, width=40, height=100),
        ])
        inside = arr[:100, :40].reshape(-1, 4)
        assert inside.tolist() == [OPAQUE_BLACK] * len(inside)

    def test_reverse_video(self, renderer: LabelRenderer) -> None:
        arr, _ = _render(renderer, [
            Text(
                x=10, y=10, text="INV", font_size=30,
                color="white", background="black", padding=2,
            ),
        ])
        assert arr[10, 10].tolist() == OPAQUE_BLACK
        assert np.all(arr[10:40, 10:80] == OPAQUE_WHITE, axis=-1).any()

    def test_rotated_text_runs_upward(self, renderer: LabelRenderer) -> None:
        arr, _ = _render(renderer, [
            Text(x=100, y=300, text="HHHH", font_size=40, rotation_deg=-90),
        ])
        alpha = arr[..., 3]
        assert alpha.any()
        assert alpha[305:].max() == 0
        assert alpha[:, 140:].max() == 0
        assert alpha[:, :90].max() == 0

    def test_empty_text(self, renderer: LabelRenderer) -> None:
        arr, result = _render(renderer, [Text(x=0, y=0, text="", font_size=20)])
        assert not arr.any()
        assert result.diagnostics == []


# ---------------------------------------------------------------------------
# Symbols
# ---------------------------------------------------------------------------


class TestSymbols:
    def test_barcode_placed(self, renderer: LabelRenderer) -> None:
        arr, _ = _render(renderer, [
            Barcode1D(
                x=50, y=60, rotation_deg=0, value="123",
                symbology=CODE128, width=2, height=30,
            ),
        ])
        assert arr[60:90, 50:70, 3].min() == 255
        assert arr[..., 3].sum() == 20 * 30 * 255

    def test_barcode_rotated(self, renderer: LabelRenderer) -> None:
        arr, _ = _render(renderer, [
            Barcode1D(
                x=50, y=60, rotation_deg=-90, value="123",
                symbology=CODE128, width=2, height=30,
            ),
        ])
        assert arr[40:60, 50:80, 3].min() == 255

    def test_pdf417_placed(self, renderer: LabelRenderer, symbols: FakeSymbols) -> None:
        arr, _ = _render(renderer, [
            Barcode2D(x=5, y=5, rotation_deg=0, value="DATA", parameters={"columns": 2}),
        ])
        assert arr[5:13, 5:17, 3].min() == 255
        assert ("2d", "DATA") in symbols.calls

    def test_unknown_symbology_reported(self, renderer: LabelRenderer) -> None:
        arr, result = _render(renderer, [
            Barcode1D(
                x=0, y=0, rotation_deg=0, value="1",
                symbology=UNKNOWN_SYMBOLOGY, width=2, height=30,
            ),
            Box(x=0, y=0, width=5, height=5),
        ])
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNSUPPORTED_SYMBOLOGY]
        assert arr[0, 0].tolist() == OPAQUE_BLACK

    def test_symbol_error_skips_directive(self) -> None:
        renderer = LabelRenderer(symbols=FakeSymbols(fail_2d=True))
        arr, result = _render(renderer, [
            Barcode2D(x=0, y=0, rotation_deg=0, value="DATA"),
            Text(x=200, y=200, text="after", font_size=20),
        ])
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.SYMBOL_ERROR]
        assert "boom" in result.diagnostics[0].message
        assert arr[:50, :50, 3].max() == 0
        assert arr[180:230, 200:, 3].any()

    def test_default_symbols_reject_unknown(self) -> None:
        renderer = LabelRenderer(symbols=BarcodeSymbolRenderer())
        _, result = _render(renderer, [
            Barcode1D(
                x=0, y=0, rotation_deg=0, value="1",
                symbology=UNKNOWN_SYMBOLOGY, width=2, height=30,
            ),
        ])
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNSUPPORTED_SYMBOLOGY]

    def test_diagnostic_carries_source_line(self) -> None:
        renderer = LabelRenderer(symbols=FakeSymbols(fail_2d=True))
        _, result = _render(renderer, [
            Barcode2D(x=0, y=0, rotation_deg=0, value="DATA", line_no=4),
        ])
        assert [d.line_no for d in result.diagnostics] == [4]
        assert str(result.diagnostics[0]).startswith("line 4: ")


# ---------------------------------------------------------------------------
# Recovery with the real encoders
# ---------------------------------------------------------------------------


class TestEncoderFailures:
    @pytest.fixture()
    def renderer(self) -> LabelRenderer:
        return LabelRenderer(symbols=BarcodeSymbolRenderer())

    def test_empty_linear_payload(self, renderer: LabelRenderer) -> None:
        arr, result = _render(renderer, [
            Barcode1D(
                x=10, y=10, rotation_deg=0, value="",
                symbology=CODE128, width=2, height=50, show_text=True,
                line_no=1,
            ),
            Box(x=300, y=300, width=20, height=20),
        ])
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.SYMBOL_ERROR]
        assert result.diagnostics[0].line_no == 1
        assert arr[:100, :100, 3].max() == 0
        assert arr[300:320, 300:320].reshape(-1, 4).tolist() == [OPAQUE_BLACK] * 400

    def test_degenerate_payloads_do_not_stop_render(self, renderer: LabelRenderer) -> None:
        arr, result = _render(renderer, [
            Barcode1D(
                x=10, y=10, rotation_deg=0, value="",
                symbology=CODE128, width=2, height=50, line_no=1,
            ),
            Barcode2D(
                x=10, y=100, rotation_deg=0, value="DATA",
                parameters={"columns": 99}, line_no=2,
            ),
            Text(x=200, y=200, text="after", font_size=20, line_no=3),
            Box(x=300, y=300, width=20, height=20, line_no=4),
        ])
        assert [(d.kind, d.line_no) for d in result.diagnostics] == [
            (DiagnosticKind.SYMBOL_ERROR, 1),
            (DiagnosticKind.SYMBOL_ERROR, 2),
        ]
        assert arr[:190, :190, 3].max() == 0
        assert arr[180:230, 200:, 3].any()
        assert arr[300:320, 300:320].reshape(-1, 4).tolist() == [OPAQUE_BLACK] * 400
