"""
EPL Render Package.

Converts EPL label source into a raster image and wraps it in a
single-page PDF.  Input and output travel as base64 text so the converter
can sit in a stdin/stdout pipe.

Subpackages:
    parser: Unit conversion and per-command field decoding
    directives: Immutable drawing primitives and z-order phases
    render: Pillow canvas, barcode rasterization, contrast compositing
    document: PDF assembly
    configs: Converter configuration loading and validation
    utils: YAML loading and logging setup
    scripts: Command-line entry point

Top-level entry points live in :mod:`epl_render.pipeline`.
"""

__version__ = "0.1.0"

__all__ = ["parser", "directives", "render", "document", "configs", "utils", "pipeline"]
