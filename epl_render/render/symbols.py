"""Barcode symbol rasterization.

Turns a barcode payload plus sizing options into a Pillow image that the
renderer places on the canvas:

    - Linear symbols via python-barcode (``ImageWriter``)
    - PDF417 via pdf417gen

Anything that goes wrong while building a symbol surfaces as
:class:`SymbolError`; the renderer reports it and moves on to the next
directive.  A linear symbology this module cannot draw raises
:class:`UnsupportedSymbologyError` instead of being guessed at.
"""

from __future__ import annotations

import logging
from typing import Mapping, Protocol

import barcode
import pdf417gen
from barcode.errors import BarcodeError
from barcode.writer import ImageWriter
from PIL import Image

from epl_render.configs.loader import Pdf417Config
from epl_render.directives.model import CODE128

logger = logging.getLogger(__name__)

MM_PER_INCH = 25.4

# Widest PDF417 symbol pdf417gen encodes, in data columns
MAX_COLUMNS = 30

LINEAR_SYMBOLOGIES: dict[str, str] = {
    CODE128: "code128",
}
"""Directive symbology -> python-barcode symbology name."""


class SymbolError(Exception):
    """Raised when a barcode image cannot be generated."""

    pass


class UnsupportedSymbologyError(SymbolError):
    """Raised for a linear symbology with no encoder."""

    pass


class SymbolRenderer(Protocol):
    """Anything that can rasterize the label's barcodes."""

    def render_1d(
        self,
        value: str,
        symbology: str,
        width: int,
        height: int,
        show_text: bool,
    ) -> Image.Image:
        ...

    def render_2d(self, value: str, parameters: Mapping[str, int | None]) -> Image.Image:
        ...


class BarcodeSymbolRenderer:
    """Default :class:`SymbolRenderer` backed by python-barcode and pdf417gen.

    Parameters
    ----------
    pdf417 : Pdf417Config | None
        Fallbacks for PDF417 options the label leaves unset.
    dpi : int
        Resolution handed to python-barcode; module sizes are converted
        to millimetres at this resolution so they come back as exact
        pixel counts.
    """

    def __init__(self, pdf417: Pdf417Config | None = None, dpi: int = 300) -> None:
        self.pdf417 = pdf417 or Pdf417Config()
        self.dpi = dpi

    def _px_to_mm(self, px: float) -> float:
        return px * MM_PER_INCH / self.dpi

    # ------------------------------------------------------------------
    # Linear
    # ------------------------------------------------------------------

    def render_1d(
        self,
        value: str,
        symbology: str,
        width: int,
        height: int,
        show_text: bool,
    ) -> Image.Image:
        """Render a linear barcode.

        Parameters
        ----------
        value : str
            Payload.
        symbology : str
            Directive symbology (see :data:`LINEAR_SYMBOLOGIES`).
        width : int
            Narrow bar width in pixels.
        height : int
            Bar height in pixels.
        show_text : bool
            Print the payload under the bars.

        Raises
        ------
        UnsupportedSymbologyError
            If *symbology* has no encoder.
        SymbolError
            If the payload cannot be encoded or the sizes are empty.
        """
        name = LINEAR_SYMBOLOGIES.get(symbology)
        if name is None:
            raise UnsupportedSymbologyError(
                f"Unsupported 1D barcode symbology: {symbology!r}"
            )
        if not value:
            raise SymbolError(f"Empty payload for {symbology} barcode")
        if width <= 0 or height <= 0:
            raise SymbolError(
                f"Barcode module size must be positive, got {width}x{height} px"
            )

        options = {
            "module_width": self._px_to_mm(width),
            "module_height": self._px_to_mm(height),
            "quiet_zone": 0.0,
            "write_text": show_text,
            "dpi": self.dpi,
        }
        try:
            code = barcode.get(name, value, writer=ImageWriter())
            image = code.render(writer_options=options)
        except (BarcodeError, ValueError, KeyError, IndexError, OSError) as exc:
            raise SymbolError(f"Error generating {symbology} barcode: {exc}") from exc

        logger.debug("Rendered %s barcode %r at %s", symbology, value, image.size)
        return image.convert("RGBA")

    # ------------------------------------------------------------------
    # PDF417
    # ------------------------------------------------------------------

    def render_2d(self, value: str, parameters: Mapping[str, int | None]) -> Image.Image:
        """Render a PDF417 symbol.

        ``columns`` and ``securitylevel`` are passed through; ``scaleX`` is
        the module width in pixels and ``scaleY`` stretches the row height
        relative to the configured default ratio.

        ``rows`` is an upper bound on the row count.  When the label gives
        no ``columns``, the narrowest symbol that fits in ``rows`` rows is
        used; explicit ``columns`` win over ``rows``.  ``truncate`` and
        ``position`` have no pdf417gen equivalent and are ignored.

        Raises
        ------
        SymbolError
            If the payload is empty or the payload or options are rejected
            by the encoder.
        """
        if not value:
            raise SymbolError("Empty payload for PDF417 barcode")

        cfg = self.pdf417

        def _get(key: str, default: int) -> int:
            val = parameters.get(key)
            return default if val is None else int(val)

        security_level = _get("securitylevel", cfg.default_security_level)
        scale = max(_get("scaleX", cfg.default_scale), 1)
        scale_y = parameters.get("scaleY")
        if scale_y is None:
            ratio = cfg.default_ratio
        else:
            ratio = max(round(cfg.default_ratio * scale_y / scale), 1)

        try:
            if parameters.get("columns") is None and parameters.get("rows") is not None:
                codes = self._encode_within_rows(value, int(parameters["rows"]), security_level)
            else:
                codes = pdf417gen.encode(
                    value,
                    columns=_get("columns", cfg.default_columns),
                    security_level=security_level,
                )
            image = pdf417gen.render_image(codes, scale=scale, ratio=ratio, padding=0)
        except (ValueError, TypeError, KeyError, IndexError) as exc:
            raise SymbolError(f"Error generating 2D barcode: {exc}") from exc

        logger.debug(
            "Rendered PDF417 (%d rows, level %d) at %s",
            len(codes), security_level, image.size,
        )
        return image.convert("RGBA")

    @staticmethod
    def _encode_within_rows(value: str, rows: int, security_level: int) -> list:
        """Encode with the fewest columns whose symbol has at most *rows* rows."""
        codes = None
        error: ValueError | None = None
        for columns in range(1, MAX_COLUMNS + 1):
            try:
                candidate = pdf417gen.encode(value, columns=columns, security_level=security_level)
            except ValueError as exc:
                # too many rows at this width
                error = exc
                continue
            if len(candidate) <= rows:
                return candidate
            codes = candidate
        if codes is None:
            raise error or ValueError("Payload does not fit in a PDF417 symbol")
        return codes
