"""Nearest-neighbour downscaling to a character-grid size.

Terminal cells are roughly twice as tall as they are wide, so the grid is
sized to an output aspect ratio (columns / rows, default 2.0) rather than
to the source image's own proportions.
"""

from __future__ import annotations

import logging
from enum import Enum

import numpy as np

from termglyph.core.errors import ConfigurationError
from termglyph.core.pixels import PixelGrid

logger = logging.getLogger(__name__)

DEFAULT_ASPECT_RATIO = 2.0


class DownscaleMode(str, Enum):
    RESPECT_ASPECT_RATIO = "respect-aspect-ratio"
    IGNORE_ASPECT_RATIO = "ignore-aspect-ratio"

    @classmethod
    def parse(cls, value: str | DownscaleMode) -> DownscaleMode:
        """Resolve a mode from its name or one of the short CLI aliases."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key in ("respect-aspect-ratio", "respect", "wrt"):
            return cls.RESPECT_ASPECT_RATIO
        if key in ("ignore-aspect-ratio", "ignore", "ign"):
            return cls.IGNORE_ASPECT_RATIO
        raise ConfigurationError(f"Unknown downscale mode: {value}")


def target_size(
    src_width: int,
    src_height: int,
    target_width: int,
    target_height: int,
    mode: DownscaleMode,
    aspect_ratio: float,
) -> tuple[int, int]:
    """Compute the (width, height) of the character grid.

    Neither dimension is allowed to exceed the source. In respect mode the
    clamped axis is re-derived so the requested ratio still holds.

    Raises:
        ConfigurationError: if either computed dimension is zero.
    """
    if mode == DownscaleMode.IGNORE_ASPECT_RATIO:
        width = min(target_width, src_width)
        height = min(target_height, src_height)
    elif aspect_ratio >= 1:
        width = min(target_width, src_width)
        height = int(width / aspect_ratio)
        if height > src_height:
            height = src_height
            width = int(height * aspect_ratio)
    else:
        height = min(target_height, src_height)
        width = int(height * aspect_ratio)
        if width > src_width:
            width = src_width
            height = int(width / aspect_ratio)

    if width <= 0:
        raise ConfigurationError(
            f"Downscaled width of {width} is invalid; set a larger target width"
        )
    if height <= 0:
        raise ConfigurationError(
            f"Downscaled height of {height} is invalid; set a larger target height"
        )
    return width, height


def downscale(
    pixels: PixelGrid,
    target_width: int,
    target_height: int,
    mode: DownscaleMode = DownscaleMode.RESPECT_ASPECT_RATIO,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[PixelGrid, float]:
    """Resample ``pixels`` to the grid size and return the effective ratio.

    The effective ratio (``width / height`` actually achieved) can drift from
    ``aspect_ratio`` through integer rounding; later stages scale their
    thresholds by it.
    """
    if aspect_ratio == 1 and mode == DownscaleMode.RESPECT_ASPECT_RATIO:
        return pixels, 1.0

    src_w, src_h = pixels.width, pixels.height
    new_w, new_h = target_size(
        src_w, src_h, target_width, target_height, mode, aspect_ratio
    )

    # src = floor(dst * src_size / dst_size)
    xs = (np.arange(new_w, dtype=np.int64) * src_w) // new_w
    ys = (np.arange(new_h, dtype=np.int64) * src_h) // new_h
    sampled = pixels.rgba[ys[:, None], xs[None, :]]

    effective = new_w / new_h
    logger.debug(
        "downscaled %dx%d -> %dx%d (effective ratio %.4f)",
        src_w, src_h, new_w, new_h, effective,
    )
    return PixelGrid(np.ascontiguousarray(sampled)), effective
