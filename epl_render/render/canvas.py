"""Pillow-backed raster canvas.

Provides the drawing primitives the label renderer needs and nothing
more: filled and stroked rectangles, placing a (rotated) image tile,
text measurement, off-screen layers, and raw pixel access.

Geometry conventions:
    - Pixel space, top-left origin, +Y down
    - Rectangles are half-open: ``fill_rect(x, y, w, h)`` covers columns
      ``x .. x+w-1``
    - Rotations are axis-aligned and clockwise-positive in this frame, so a
      rotation of ``-90`` turns a tile a quarter turn counter-clockwise
    - Tiles rotate about an anchor point that lands on the target position
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from PIL import Image, ImageDraw, ImageFont

Color = tuple[int, int, int, int] | str

# rotation -> (a, b, c, d) for x' = a*u + b*v, y' = c*u + d*v
_ROTATION_MATRIX: dict[int, tuple[int, int, int, int]] = {
    0: (1, 0, 0, 1),
    90: (0, -1, 1, 0),
    180: (-1, 0, 0, -1),
    270: (0, 1, -1, 0),
    -90: (0, 1, -1, 0),
}

_TRANSPOSE: dict[int, Image.Transpose] = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
    -90: Image.Transpose.ROTATE_90,
}


def _round(value: float) -> int:
    return math.floor(value + 0.5)


def rotate_point(u: float, v: float, rotation_deg: int) -> tuple[float, float]:
    """Rotate ``(u, v)`` about the origin by an axis-aligned angle."""
    try:
        a, b, c, d = _ROTATION_MATRIX[rotation_deg]
    except KeyError:
        raise ValueError(f"Unsupported rotation: {rotation_deg}") from None
    return a * u + b * v, c * u + d * v


def _rotated_bounds(
    corners: Sequence[tuple[float, float]], rotation_deg: int,
) -> tuple[float, float, float, float]:
    points = [rotate_point(u, v, rotation_deg) for u, v in corners]
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return min(xs), min(ys), max(xs), max(ys)


def rotated_rect(
    x: float, y: float, width: float, height: float, rotation_deg: int,
) -> tuple[int, int, int, int]:
    """Axis-aligned extents of a rectangle rotated about its ``(x, y)`` corner.

    Returns
    -------
    tuple[int, int, int, int]
        ``(x0, y0, x1, y1)`` with exclusive ``x1``/``y1``.
    """
    x0, y0, x1, y1 = _rotated_bounds(
        [(0, 0), (width, 0), (0, height), (width, height)], rotation_deg,
    )
    return _round(x + x0), _round(y + y0), _round(x + x1), _round(y + y1)


def rotate_tile(
    tile: Image.Image,
    anchor: tuple[float, float],
    target: tuple[float, float],
    rotation_deg: int,
) -> tuple[Image.Image, tuple[int, int]]:
    """Rotate *tile* about *anchor* so the anchor lands on *target*.

    Parameters
    ----------
    tile : Image.Image
        Source image.
    anchor : tuple[float, float]
        Pivot in tile coordinates.
    target : tuple[float, float]
        Where the pivot ends up on the canvas.
    rotation_deg : int
        Axis-aligned rotation.

    Returns
    -------
    tuple[Image.Image, tuple[int, int]]
        Rotated tile and the canvas position of its top-left corner.
    """
    w, h = tile.size
    au, av = anchor
    min_x, min_y, _, _ = _rotated_bounds(
        [(-au, -av), (w - au, -av), (-au, h - av), (w - au, h - av)],
        rotation_deg,
    )
    rotated = tile if rotation_deg == 0 else tile.transpose(_TRANSPOSE[rotation_deg])
    return rotated, (_round(target[0] + min_x), _round(target[1] + min_y))


class LabelCanvas:
    """RGBA raster target.

    Parameters
    ----------
    width, height : int
        Canvas size in pixels.
    background : Color
        Initial fill.  Defaults to fully transparent.
    """

    def __init__(
        self,
        width: int,
        height: int,
        background: Color = (0, 0, 0, 0),
    ) -> None:
        self.image = Image.new("RGBA", (width, height), background)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    # ------------------------------------------------------------------
    # Shapes
    # ------------------------------------------------------------------

    def fill_box(self, x0: int, y0: int, x1: int, y1: int, color: Color) -> None:
        """Fill the half-open box ``[x0, x1) x [y0, y1)``."""
        if x1 <= x0 or y1 <= y0:
            return
        ImageDraw.Draw(self.image).rectangle([x0, y0, x1 - 1, y1 - 1], fill=color)

    def fill_rect(self, x: int, y: int, width: int, height: int, color: Color) -> None:
        """Fill a ``width`` x ``height`` rectangle at ``(x, y)``."""
        self.fill_box(x, y, x + width, y + height, color)

    def stroke_rect(
        self,
        x: int,
        y: int,
        width: int,
        height: int,
        thickness: int,
        color: Color = "black",
    ) -> None:
        """Outline a rectangle with a stroke centred on its edges.

        A thickness below one pixel draws a one pixel stroke.
        """
        half = max(thickness, 1) / 2.0
        ol, ot = _round(x - half), _round(y - half)
        or_, ob = _round(x + width + half), _round(y + height + half)
        il, it = _round(x + half), _round(y + half)
        ir, ib = _round(x + width - half), _round(y + height - half)

        if ir <= il or ib <= it:
            self.fill_box(ol, ot, or_, ob, color)
            return

        self.fill_box(ol, ot, or_, it, color)   # top
        self.fill_box(ol, ib, or_, ob, color)   # bottom
        self.fill_box(ol, it, il, ib, color)    # left
        self.fill_box(ir, it, or_, ib, color)   # right

    # ------------------------------------------------------------------
    # Images and layers
    # ------------------------------------------------------------------

    def new_layer(self) -> Image.Image:
        """Transparent RGBA image the size of the canvas."""
        return Image.new("RGBA", self.image.size, (0, 0, 0, 0))

    def draw_image(
        self,
        tile: Image.Image,
        x: float,
        y: float,
        rotation_deg: int = 0,
        anchor: tuple[float, float] = (0, 0),
    ) -> None:
        """Composite *tile* with its *anchor* at ``(x, y)``, rotated."""
        layer = self.new_layer()
        rotated, position = rotate_tile(tile.convert("RGBA"), anchor, (x, y), rotation_deg)
        layer.paste(rotated, position)
        self.composite(layer)

    def composite(self, layer: Image.Image) -> None:
        """Source-over merge of a canvas-sized RGBA layer."""
        self.image.alpha_composite(layer)

    def pixels(self) -> np.ndarray:
        """Copy of the canvas as an ``(H, W, 4)`` uint8 array."""
        return np.array(self.image, dtype=np.uint8)

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def measure_text(self, text: str, font: ImageFont.ImageFont | ImageFont.FreeTypeFont) -> float:
        """Advance width of *text* in pixels."""
        return ImageDraw.Draw(self.image).textlength(text, font=font)
