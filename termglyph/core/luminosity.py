"""Per-pixel relative luminance."""

from __future__ import annotations

import numpy as np

from termglyph.core.pixels import PixelGrid

# Rec. 709 weights, scaled by 10000 so the sum stays in integer arithmetic
WEIGHT_R = 2126
WEIGHT_G = 7152
WEIGHT_B = 722
WEIGHT_SCALE = 10000


def luminosity_map(pixels: PixelGrid) -> np.ndarray:
    """Return an (H, W) int64 grid of luminosity values in [0, 255].

    Channels are already 8-bit here; the weighted sum is truncated before
    the alpha scale so output glyphs stay bit-exact.
    """
    rgba = pixels.rgba.astype(np.int64)
    r, g, b, a = rgba[..., 0], rgba[..., 1], rgba[..., 2], rgba[..., 3]
    lum = (r * WEIGHT_R + g * WEIGHT_G + b * WEIGHT_B) // WEIGHT_SCALE
    return lum * a // 255


def luminosity_of(r: int, g: int, b: int, a: int = 255) -> int:
    """Scalar counterpart of :func:`luminosity_map`."""
    lum = (r * WEIGHT_R + g * WEIGHT_G + b * WEIGHT_B) // WEIGHT_SCALE
    return lum * a // 255
