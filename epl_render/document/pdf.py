"""Single-page PDF assembly with reportlab.

The page is exactly the size of the raster: one image pixel maps to one
PDF point and the image covers the whole page.  The canvas is transparent
where nothing was drawn, so it is flattened onto white first.

reportlab's invariant mode pins the creation date and document ID, making
the output a pure function of the image.
"""

from __future__ import annotations

import io
import logging

from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)


def flatten(image: Image.Image, background: tuple[int, int, int] = WHITE) -> Image.Image:
    """Composite *image* over an opaque *background* and drop alpha."""
    rgba = image.convert("RGBA")
    base = Image.new("RGBA", rgba.size, background + (255,))
    base.alpha_composite(rgba)
    return base.convert("RGB")


def assemble_pdf(
    image: Image.Image,
    page_size: tuple[float, float] | None = None,
) -> bytes:
    """Place *image* full-page on a one-page PDF.

    Parameters
    ----------
    image : Image.Image
        Rendered label, any mode.
    page_size : tuple[float, float] | None
        Page size in points.  ``None`` uses the image size.

    Returns
    -------
    bytes
        Complete PDF document.
    """
    width, height = page_size or image.size
    buf = io.BytesIO()

    pdf = canvas.Canvas(buf, pagesize=(width, height), invariant=1)
    pdf.drawImage(ImageReader(flatten(image)), 0, 0, width=width, height=height)
    pdf.showPage()
    pdf.save()

    data = buf.getvalue()
    logger.debug("Assembled %dx%d pt PDF (%d bytes)", width, height, len(data))
    return data
