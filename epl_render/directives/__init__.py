"""
Drawing directive module.

Defines every visual primitive as an immutable dataclass, the z-order
phases used to render them, and the diagnostics reported along the way.

All coordinates are in output pixels, top-left origin.
"""

from epl_render.directives.diagnostics import Diagnostic, DiagnosticKind
from epl_render.directives.model import (
    CODE128,
    ROTATIONS,
    UNKNOWN_SYMBOLOGY,
    Barcode1D,
    Barcode2D,
    Border,
    Box,
    Directive,
    Text,
    phase_order,
    render_sequence,
)

__all__ = [
    "CODE128",
    "ROTATIONS",
    "UNKNOWN_SYMBOLOGY",
    "Barcode1D",
    "Barcode2D",
    "Border",
    "Box",
    "Diagnostic",
    "DiagnosticKind",
    "Directive",
    "Text",
    "phase_order",
    "render_sequence",
]
