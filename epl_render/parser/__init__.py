"""
EPL parsing module.

Converts label source text into drawing directives: unit conversion,
PDF417 option extraction and per-command field decoding.
"""

from epl_render.parser.commands import CommandParser, ParseResult, parse_label
from epl_render.parser.pdf417_params import FIXED_ROWS, parse_2d_params
from epl_render.parser.units import to_pixels

__all__ = [
    "CommandParser",
    "FIXED_ROWS",
    "ParseResult",
    "parse_2d_params",
    "parse_label",
    "to_pixels",
]
