"""Printer-dot to output-pixel conversion.

EPL positions and sizes are expressed in printer dots (203 dpi on the
usual thermal printers).  The raster is laid out at screen resolution and
enlarged by a cosmetic scale factor::

    px = ceil(dots * (screen_dpi / printer_dpi) * scale_factor)

Conversion happens exactly once per geometric field, in the command
parser.  Barcode module sizes are multipliers rather than distances and
are converted with ``scale_factor=1`` (see :data:`UNSCALED`).
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Union

from epl_render.configs.loader import UnitSettings

UNSCALED: dict[str, float] = {"scale_factor": 1.0}
"""Per-call override that keeps the DPI ratio but drops the cosmetic scale."""

Number = Union[int, float, str]


def parse_number(value: Number) -> float:
    """Parse an EPL numeric field.

    Integers are tried first, then decimals.  Surrounding whitespace is
    ignored.

    Raises
    ------
    ValueError
        If *value* is not numeric or not finite.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, str):
        text = value.strip()
        try:
            number: float = int(text)
        except ValueError:
            number = float(text)
    else:
        number = value
    if not math.isfinite(number):
        raise ValueError(f"Not a finite number: {value!r}")
    return number


def to_pixels(
    distance: Number,
    settings: UnitSettings | Mapping[str, Any] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> int:
    """Convert a printer-dot distance to output pixels.

    Parameters
    ----------
    distance : int | float | str
        Distance in dots.  Negative values are converted, not rejected.
    settings : UnitSettings | Mapping | None
        Base ratio.  A mapping is read as overrides of the defaults
        (``printer_dpi``, ``screen_dpi``, ``scale_factor``); absent keys
        fall back to 203 / 96 / 1.5.
    overrides : Mapping | None
        Extra per-call overrides applied on top of *settings*.

    Returns
    -------
    int
        ``ceil(distance * (screen_dpi / printer_dpi) * scale_factor)``

    Raises
    ------
    ValueError
        If *distance* is not numeric.
    """
    if settings is None:
        base = UnitSettings()
    elif isinstance(settings, UnitSettings):
        base = settings
    else:
        base = UnitSettings().with_overrides(dict(settings))
    units = base.with_overrides(dict(overrides) if overrides else None)

    dots = parse_number(distance)
    return math.ceil(dots * (units.screen_dpi / units.printer_dpi) * units.scale_factor)
