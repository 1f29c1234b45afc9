"""Logging setup for the converter.

stdout carries the encoded PDF, so log output only ever goes to stderr
and, optionally, a file.  Two line formats are available:

    Human: 2026-03-02T09:15:04.120Z | WARNING  | app=epl-render | line 3: Invalid 2D barcode parameter: `z`
    JSON:  {"t": "2026-03-02T09:15:04.120Z", "lvl": "WARNING", "logger": "...", "msg": "...", "app": "epl-render"}

Contextual fields (``push_context(app=...)``) live in a contextvar and are
stamped onto each record by :class:`ContextFilter`, so they follow the
task that set them rather than the thread.

Public API:
    setup_logging(log_level="INFO", context={"app": "epl-render"})
    get_logger(name)
    push_context(**fields) / pop_context(keys=None)
    current_context()

Calling setup_logging() again replaces the handlers it installed earlier
and leaves any other root handlers alone.
"""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

_context_var: contextvars.ContextVar = contextvars.ContextVar("epl_render_log_context")

# Marker attribute on handlers owned by setup_logging()
_OWNED = "_epl_render_handler"

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"

# Libraries that log chatty DEBUG output while we rasterize
DEFAULT_QUIET_LIBS = ["PIL", "reportlab"]


def current_context() -> Dict[str, Any]:
    """Copy of the contextual fields active in this task."""
    return dict(_context_var.get({}))


def push_context(**fields: Any) -> None:
    """Add contextual fields to every subsequent record.

    Examples
    --------
    >>> push_context(app="epl-render")
    >>> logger.warning("Skipped")  # "... | app=epl-render | Skipped"
    """
    _context_var.set({**current_context(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Remove contextual fields; clears all of them when *keys* is None."""
    if keys is None:
        _context_var.set({})
        return
    remaining = current_context()
    for key in keys:
        remaining.pop(key, None)
    _context_var.set(remaining)


class ContextFilter(logging.Filter):
    """Stamp the active context onto each record as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = current_context()
        return True


class LabelFormatter(logging.Formatter):
    """Single-line formatter, human-readable or JSON.

    Parameters
    ----------
    json_lines : bool
        Emit one JSON object per record.
    color : bool
        Colour the level name (human mode only).
    """

    def __init__(self, json_lines: bool = False, color: bool = False) -> None:
        super().__init__()
        self.json_lines = json_lines
        self.color = color

    @staticmethod
    def _timestamp(record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return ts.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

    def format(self, record: logging.LogRecord) -> str:
        context = getattr(record, "context", None) or current_context()
        message = record.getMessage()

        if self.json_lines:
            payload: Dict[str, Any] = {
                "t": self._timestamp(record),
                "lvl": record.levelname,
                "logger": record.name,
                "msg": message,
            }
            payload.update(context)
            if record.exc_info:
                payload["exc"] = self.formatException(record.exc_info)
            return json.dumps(payload)

        level = f"{record.levelname:8s}"
        if self.color:
            level = f"{_LEVEL_COLORS.get(record.levelname, '')}{level}{_RESET}"

        parts = [self._timestamp(record), "|", level, "|"]
        if context:
            parts.append(" ".join(f"{k}={v}" for k, v in context.items()) + " |")
        parts.append(message)

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _install(root: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    setattr(handler, _OWNED, True)
    root.addHandler(handler)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Configure the root logger.

    Parameters
    ----------
    log_level : str
        "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL" (any case).
    log_file : str, optional
        Also append records to this file; parent directories are created.
    json : bool
        JSON lines on every handler, default False.
    color : bool
        Colour level names on stderr when it is a terminal, default True.
    to_stderr : bool
        Log to stderr, default True.
    capture_warnings : bool
        Route ``warnings.warn`` through logging, default True.
    quiet_libs : list[str], optional
        Loggers held at WARNING.  Defaults to :data:`DEFAULT_QUIET_LIBS`.
    context : dict, optional
        Initial contextual fields, e.g. ``{"app": "epl-render"}``.

    Returns
    -------
    dict
        ``{"handlers": [...]}`` for the handlers installed by this call.

    Raises
    ------
    ValueError
        If *log_level* is not a known level name.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _OWNED, False)]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)

    handlers: List[logging.Handler] = []

    if to_stderr:
        stderr_handler = logging.StreamHandler(sys.stderr)
        use_color = color and not json and sys.stderr.isatty()
        _install(root, stderr_handler, LabelFormatter(json, use_color))
        handlers.append(stderr_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        _install(root, file_handler, LabelFormatter(json, color=False))
        handlers.append(file_handler)

    if context:
        push_context(**context)

    for lib in DEFAULT_QUIET_LIBS if quiet_libs is None else quiet_libs:
        logging.getLogger(lib).setLevel(logging.WARNING)

    if capture_warnings:
        logging.captureWarnings(True)

    return {"handlers": handlers}


def get_logger(name: str) -> logging.Logger:
    """Get logger by name (typically __name__)."""
    return logging.getLogger(name)
