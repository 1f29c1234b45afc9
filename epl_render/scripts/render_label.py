#!/usr/bin/env python3
"""
Render Label Script.

Read a base64-encoded EPL label on stdin and write the base64-encoded
single-page PDF to stdout.  Logs and diagnostics go to stderr.

Usage:
    echo "$LABEL_B64" | epl-render > label.pdf.b64
    python -m epl_render.scripts.render_label --log-level DEBUG < label.b64
    python -m epl_render.scripts.render_label --config my_label.yaml < label.b64

Exit codes:
    0  PDF written (diagnostics may still have been logged)
    1  input is not base64, or the config file is missing or invalid
"""

from __future__ import annotations

import argparse
import logging
import sys

from epl_render.configs.loader import ConfigError, load_config
from epl_render.pipeline import InputDecodeError, convert_base64
from epl_render.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="epl-render",
        description="Convert a base64 EPL label on stdin to a base64 PDF on stdout",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to label.yaml (default: packaged config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (ConfigError, FileNotFoundError) as exc:
        setup_logging(args.log_level or "WARNING", context={"app": "epl-render"})
        logger.error("Configuration error: %s", exc)
        return 1

    setup_logging(
        args.log_level or config.logging.level,
        json=config.logging.json,
        color=sys.stderr.isatty(),
        context={"app": "epl-render"},
    )

    payload = "".join(line.strip() for line in sys.stdin)
    try:
        pdf_b64 = convert_base64(payload, config)
    except InputDecodeError as exc:
        logger.error("%s", exc)
        return 1

    sys.stdout.write(pdf_b64 + "\n")
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
