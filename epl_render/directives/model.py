"""Drawing directives -- the vocabulary between parsed EPL and the raster.

Every visual primitive a label can contain is an immutable, slotted
dataclass.  Directives use **pixel** units in the output raster
(top-left origin, +Y down); the conversion from printer dots happens
once, in the command parser, and never again downstream.

Rotation
--------
``rotation_deg`` is one of ``0, 90, 180, 270, -90`` and is applied about
the directive's ``(x, y)`` origin, clockwise-positive in the y-down pixel
frame (so ``-90`` turns text to run upwards).

Z-order
-------
Fills must land before strokes, and both before anything that inspects
the canvas to pick a contrasting colour.  :func:`phase_order` returns the
three render phases; the last phase is the full source-ordered list, so
boxes and borders are drawn twice on purpose.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

ROTATIONS: tuple[int, ...] = (0, 90, 180, 270, -90)
"""Axis-aligned rotations a directive may carry."""

CODE128 = "CODE128"
UNKNOWN_SYMBOLOGY = "Unknown"


def _check_rotation(rotation_deg: int) -> None:
    if rotation_deg not in ROTATIONS:
        raise ValueError(
            f"rotation_deg must be one of {ROTATIONS}, got {rotation_deg!r}"
        )


def _check_non_negative(**values: int) -> None:
    for name, value in values.items():
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Directive(ABC):
    """Base class for all drawing directives.

    ``line_no`` is the 1-based source line the directive came from, or
    ``None`` when built by hand.  It is keyword-only and ignored by
    equality.
    """

    line_no: int | None = field(default=None, compare=False, kw_only=True)


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Box(Directive):
    """Filled rectangle.

    Parameters
    ----------
    x, y : int
        Top-left corner in pixels.
    width, height : int
        Extents in pixels.
    fill : str
        Pillow colour name or ``#rrggbb`` string.
    """

    x: int
    y: int
    width: int
    height: int
    fill: str = "black"

    def __post_init__(self) -> None:
        _check_non_negative(x=self.x, y=self.y, width=self.width, height=self.height)


@dataclass(frozen=True, slots=True)
class Border(Directive):
    """Stroked rectangle outline.

    ``(x, y)`` is always the top-left corner, whichever corner the label
    gave first; ``width``/``height`` are never negative.
    """

    x: int
    y: int
    width: int
    height: int
    thickness: int

    def __post_init__(self) -> None:
        _check_non_negative(
            x=self.x, y=self.y,
            width=self.width, height=self.height, thickness=self.thickness,
        )


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Text(Directive):
    """A line of text.

    Parameters
    ----------
    x, y : int
        Text origin in pixels (top-left of the unrotated glyph box).
    text : str
        Text to draw, quotes already stripped.
    font_size : int
        Base font size in pixels before ``scale_x`` is applied.
    bold : bool
        Use the bold face.
    rotation_deg : int
        One of :data:`ROTATIONS`.
    color : str
        Foreground colour.  Overridden to white per pixel wherever the
        canvas underneath is opaque black.
    background : str | None
        Fill drawn behind the text (reverse video), or ``None``.
    padding : int
        Extra pixels added to the background extents.
    scale_x, scale_y : float
        Horizontal / vertical multipliers from the label.
    """

    x: int
    y: int
    text: str
    font_size: int
    bold: bool = False
    rotation_deg: int = 0
    color: str = "black"
    background: str | None = None
    padding: int = 0
    scale_x: float = 1.0
    scale_y: float = 1.0

    def __post_init__(self) -> None:
        _check_rotation(self.rotation_deg)
        _check_non_negative(
            x=self.x, y=self.y, font_size=self.font_size, padding=self.padding,
        )


# ---------------------------------------------------------------------------
# Symbols
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Barcode1D(Directive):
    """Linear barcode.

    Parameters
    ----------
    value : str
        Payload to encode.
    symbology : str
        :data:`CODE128`, or :data:`UNKNOWN_SYMBOLOGY` when the label asked
        for a format the renderer does not implement.  Unknown symbologies
        still yield a directive; the renderer reports them.
    width : int
        Narrow bar (module) width in pixels.
    height : int
        Bar height in pixels.
    show_text : bool
        Print the human-readable value under the bars.
    """

    x: int
    y: int
    rotation_deg: int
    value: str
    symbology: str
    width: int
    height: int
    show_text: bool = False

    def __post_init__(self) -> None:
        _check_rotation(self.rotation_deg)
        _check_non_negative(x=self.x, y=self.y, width=self.width, height=self.height)


@dataclass(frozen=True, slots=True)
class Barcode2D(Directive):
    """PDF417 symbol.

    ``parameters`` maps symbol option names (``securitylevel``,
    ``columns``, ``rows``, ``scaleX``, ``scaleY``...) to integer values.
    It is stored as a read-only mapping.
    """

    x: int
    y: int
    rotation_deg: int
    value: str
    parameters: Mapping[str, int | None] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        _check_rotation(self.rotation_deg)
        _check_non_negative(x=self.x, y=self.y)
        object.__setattr__(
            self, "parameters", MappingProxyType(dict(self.parameters))
        )


# ---------------------------------------------------------------------------
# Z-order resolution
# ---------------------------------------------------------------------------


def phase_order(
    directives: Iterable[Directive],
) -> tuple[list[Directive], list[Directive], list[Directive]]:
    """Split a directive list into the three render phases.

    Parameters
    ----------
    directives : Iterable[Directive]
        Directives in source order.  Not modified.

    Returns
    -------
    tuple[list, list, list]
        ``(boxes, borders, everything)``.  Boxes and borders keep their
        relative source order; ``everything`` is the unfiltered source
        list, boxes and borders included.
    """
    everything = list(directives)
    boxes = [d for d in everything if isinstance(d, Box)]
    borders = [d for d in everything if isinstance(d, Border)]
    return boxes, borders, everything


def render_sequence(directives: Iterable[Directive]) -> list[Directive]:
    """Flatten :func:`phase_order` into the exact draw order."""
    boxes, borders, everything = phase_order(directives)
    return [*boxes, *borders, *everything]
