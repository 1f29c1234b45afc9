"""Conversion pipeline -- base64 label in, base64 PDF out.

Stages, each a separate module::

    decode_input      base64 -> label text
    parse_label       label text -> directives (+ diagnostics)
    LabelRenderer     directives -> RGBA raster (+ diagnostics)
    assemble_pdf      raster -> PDF bytes

A malformed base64 payload is the only fatal input error.  Everything that
goes wrong further down is recoverable and ends up in
``ConversionResult.diagnostics``.

Usage:
    from epl_render.pipeline import convert, convert_base64

    result = convert(label_text)
    open("label.pdf", "wb").write(result.pdf)

    pdf_b64 = convert_base64(payload)
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass, field

from PIL import Image

from epl_render.configs.loader import LabelConfig
from epl_render.directives.diagnostics import Diagnostic
from epl_render.directives.model import Directive
from epl_render.document.pdf import assemble_pdf
from epl_render.parser.commands import CommandParser
from epl_render.render.renderer import LabelRenderer
from epl_render.render.symbols import SymbolRenderer

logger = logging.getLogger(__name__)


class InputDecodeError(ValueError):
    """Raised when the input payload is not valid base64."""

    pass


@dataclass
class ConversionResult:
    """Everything one conversion produced."""

    pdf: bytes
    image: Image.Image
    directives: list[Directive] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def decode_input(blob: str | bytes) -> str:
    """Decode a base64 label payload to text.

    Surrounding whitespace and embedded newlines are ignored and missing
    ``=`` padding is restored.  Invalid UTF-8 sequences are replaced
    rather than rejected.

    Raises
    ------
    InputDecodeError
        If *blob* contains characters outside the base64 alphabet or has
        an impossible length.
    """
    if isinstance(blob, bytes):
        try:
            blob = blob.decode("ascii")
        except UnicodeDecodeError as exc:
            raise InputDecodeError(f"Input is not base64 text: {exc}") from exc

    compact = "".join(blob.split())
    compact += "=" * (-len(compact) % 4)
    try:
        raw = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InputDecodeError(f"Input is not valid base64: {exc}") from exc

    return raw.decode("utf-8", errors="replace")


async def convert_async(
    source_text: str,
    config: LabelConfig | None = None,
    symbols: SymbolRenderer | None = None,
) -> ConversionResult:
    """Parse, render and assemble *source_text* inside a running loop."""
    cfg = config or LabelConfig()

    parsed = CommandParser(cfg.units).parse(source_text)
    rendered = await LabelRenderer(cfg, symbols).render(parsed.directives)
    pdf = assemble_pdf(rendered.image)

    diagnostics = parsed.diagnostics + rendered.diagnostics
    logger.info(
        "Converted label: %d directives, %d diagnostics, %d byte PDF",
        len(parsed.directives), len(diagnostics), len(pdf),
    )
    return ConversionResult(
        pdf=pdf,
        image=rendered.image,
        directives=parsed.directives,
        diagnostics=diagnostics,
    )


def convert(
    source_text: str,
    config: LabelConfig | None = None,
    symbols: SymbolRenderer | None = None,
) -> ConversionResult:
    """Synchronous wrapper around :func:`convert_async`.

    Parameters
    ----------
    source_text : str
        Decoded label text.
    config : LabelConfig | None
        Converter settings.  ``None`` uses the built-in defaults.
    symbols : SymbolRenderer | None
        Barcode rasterizer override.

    Returns
    -------
    ConversionResult
    """
    return asyncio.run(convert_async(source_text, config, symbols))


def convert_base64(
    blob: str | bytes,
    config: LabelConfig | None = None,
    symbols: SymbolRenderer | None = None,
) -> str:
    """Convert a base64 label payload to a base64 PDF string.

    Raises
    ------
    InputDecodeError
        If *blob* is not valid base64.
    """
    result = convert(decode_input(blob), config, symbols)
    return base64.b64encode(result.pdf).decode("ascii")
