"""Background-aware text compositing.

Text is rasterized into a transparent, canvas-sized overlay first.  Before
the overlay is merged, every overlay pixel that sits on an opaque black
canvas pixel gets its colour forced to white (alpha untouched).  Text
crossing a filled black box therefore stays legible without the label
having to say so.

Both steps are pure array operations so they can be tested without a
canvas::

    dest = canvas.pixels()              # (H, W, 4) uint8
    corrected = contrast_corrected_overlay(dest, np.array(text_layer))
"""

from __future__ import annotations

import numpy as np

OPAQUE_BLACK = np.array([0, 0, 0, 255], dtype=np.uint8)


def dark_mask(destination: np.ndarray) -> np.ndarray:
    """Boolean ``(H, W)`` mask of pixels that are exactly opaque black."""
    return np.all(destination == OPAQUE_BLACK, axis=-1)


def contrast_corrected_overlay(
    destination: np.ndarray, overlay: np.ndarray,
) -> np.ndarray:
    """Return *overlay* with RGB forced to white over opaque black.

    Parameters
    ----------
    destination : np.ndarray
        Current canvas, ``(H, W, 4)`` uint8 RGBA.
    overlay : np.ndarray
        Layer about to be composited, same shape.

    Returns
    -------
    np.ndarray
        Corrected copy of *overlay*; inputs are not modified.

    Raises
    ------
    ValueError
        If the shapes differ or are not RGBA images.
    """
    if destination.shape != overlay.shape:
        raise ValueError(
            f"Overlay shape {overlay.shape} != destination shape {destination.shape}"
        )
    if destination.ndim != 3 or destination.shape[-1] != 4:
        raise ValueError(f"Expected (H, W, 4) RGBA arrays, got {destination.shape}")

    corrected = overlay.copy()
    corrected[dark_mask(destination), :3] = 255
    return corrected
