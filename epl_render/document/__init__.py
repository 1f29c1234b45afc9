"""
Document assembly module.

Wraps a finished label raster in a single-page PDF.
"""

from epl_render.document.pdf import assemble_pdf, flatten

__all__ = [
    "assemble_pdf",
    "flatten",
]
