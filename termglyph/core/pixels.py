"""In-memory RGBA pixel grid consumed by the pipeline.

Callers hand in either a Pillow image or a numpy array; both are normalised
to an ``(H, W, 4)`` uint8 array so every later stage indexes one layout.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image


@dataclass(frozen=True, eq=False)
class PixelGrid:
    """Read-only RGBA pixels, shape (height, width, 4), dtype uint8."""

    rgba: np.ndarray

    @property
    def width(self) -> int:
        return int(self.rgba.shape[1])

    @property
    def height(self) -> int:
        return int(self.rgba.shape[0])

    def rgba_at(self, x: int, y: int) -> tuple[int, int, int, int]:
        r, g, b, a = self.rgba[y, x]
        return int(r), int(g), int(b), int(a)


def _truncate_channels(arr: np.ndarray) -> np.ndarray:
    """Reduce channel depth to 8 bits, dropping low-order bits."""
    if arr.dtype == np.uint8:
        return arr
    if arr.dtype == np.uint16:
        return (arr >> 8).astype(np.uint8)
    if np.issubdtype(arr.dtype, np.integer):
        return np.clip(arr, 0, 255).astype(np.uint8)
    raise TypeError(f"Unsupported pixel dtype: {arr.dtype}")


def _array_to_rgba(arr: np.ndarray) -> np.ndarray:
    arr = _truncate_channels(arr)
    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=-1)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H, W), (H, W, 3) or (H, W, 4) array, got {arr.shape}")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=-1)
    return arr


def as_pixel_grid(image: Image.Image | np.ndarray | PixelGrid) -> PixelGrid:
    """Normalise a caller-supplied image into a PixelGrid."""
    if isinstance(image, PixelGrid):
        return image
    if isinstance(image, Image.Image):
        if image.mode in ("I;16", "I;16B", "I;16L", "I"):
            return PixelGrid(_array_to_rgba(np.array(image).astype(np.uint16)))
        return PixelGrid(np.array(image.convert("RGBA"), dtype=np.uint8))
    if isinstance(image, np.ndarray):
        return PixelGrid(_array_to_rgba(image))
    raise TypeError(f"Unsupported image type: {type(image).__name__}")
