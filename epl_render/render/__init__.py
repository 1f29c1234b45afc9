"""
Raster rendering module.

Draws directives onto a Pillow canvas in z-order phases, rasterizes
barcodes, and applies the contrast correction that keeps text legible
over filled boxes.
"""

from epl_render.render.canvas import LabelCanvas, rotate_tile, rotated_rect
from epl_render.render.compositing import contrast_corrected_overlay, dark_mask
from epl_render.render.renderer import LabelRenderer, RenderResult, load_font
from epl_render.render.symbols import (
    BarcodeSymbolRenderer,
    SymbolError,
    SymbolRenderer,
    UnsupportedSymbologyError,
)

__all__ = [
    "BarcodeSymbolRenderer",
    "LabelCanvas",
    "LabelRenderer",
    "RenderResult",
    "SymbolError",
    "SymbolRenderer",
    "UnsupportedSymbologyError",
    "contrast_corrected_overlay",
    "dark_mask",
    "load_font",
    "rotate_tile",
    "rotated_rect",
]
