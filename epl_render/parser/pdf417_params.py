"""PDF417 option extraction for ``b`` (2D barcode) commands.

EPL encodes PDF417 options as single-letter flags followed by an integer,
one per comma field (``s2``, ``c4``, ``x3``...).  Each flag maps to a named
symbol parameter.  An unknown flag stops extraction: the options already
seen are kept and a diagnostic is reported.

The row count is not taken from the label.  Whatever ``r`` carries, the
symbol is laid out for :data:`FIXED_ROWS` rows.
"""

from __future__ import annotations

import logging
from typing import Sequence

from epl_render.directives.diagnostics import Diagnostic, DiagnosticKind

logger = logging.getLogger(__name__)

FLAG_NAMES: dict[str, str] = {
    "s": "securitylevel",
    "f": "position",
    "x": "scaleX",
    "y": "scaleY",
    "r": "rows",
    "l": "columns",
    "t": "truncate",
    "o": "orientation",
}

FIXED_ROWS = 40


def _flag_value(token: str) -> int | None:
    try:
        return int(token[1:].strip())
    except ValueError:
        return None


def parse_2d_params(
    fields: Sequence[str],
    start: int,
    end: int,
    line_no: int | None = None,
) -> tuple[dict[str, int | None], list[Diagnostic]]:
    """Extract PDF417 options from ``fields[start:end]``.

    Parameters
    ----------
    fields : Sequence[str]
        Comma-split fields of one command line.
    start, end : int
        Half-open index range holding the option tokens.
    line_no : int | None
        Source line for diagnostics.

    Returns
    -------
    tuple[dict, list[Diagnostic]]
        Named parameters and any diagnostics.  A token whose value is not
        an integer is stored as ``None``.
    """
    params: dict[str, int | None] = {}
    diagnostics: list[Diagnostic] = []

    for token in fields[start:end]:
        token = token.strip()
        flag = token[:1]
        name = FLAG_NAMES.get(flag)
        if name is None:
            diag = Diagnostic(
                DiagnosticKind.UNKNOWN_FLAG,
                f"Invalid 2D barcode parameter: `{flag}`",
                line_no,
            )
            logger.warning("%s", diag)
            diagnostics.append(diag)
            break

        if name == "rows":
            params[name] = FIXED_ROWS
        else:
            params[name] = _flag_value(token)

    return params, diagnostics
