"""Structured, non-fatal diagnostics collected while parsing and rendering.

Diagnostics are returned alongside results instead of being the only
trace in the log, so callers and tests can inspect them directly.  Every
diagnostic is also logged by the component that raises it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DiagnosticKind(Enum):
    """Category of a recoverable problem."""

    UNKNOWN_FLAG = "unknown_flag"
    UNEXPECTED_LITERAL = "unexpected_literal"
    SYMBOL_ERROR = "symbol_error"
    UNSUPPORTED_SYMBOLOGY = "unsupported_symbology"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """One recoverable problem.

    Parameters
    ----------
    kind : DiagnosticKind
        Category.
    message : str
        Human-readable description.
    line_no : int | None
        1-based source line, when the problem is tied to one.
    """

    kind: DiagnosticKind
    message: str
    line_no: int | None = None

    def __str__(self) -> str:
        where = f"line {self.line_no}: " if self.line_no is not None else ""
        return f"{where}{self.message}"
