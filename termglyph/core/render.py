"""Compose the final text from a glyph grid.

Escapes are only written when something changes: a color escape when the
mapper's code differs from the previous pixel's, and bold on/off when the
edge classification flips. The whole output is wrapped in full resets.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from termglyph.core.color import BOLD_OFF, BOLD_ON, RESET, ColorMapper
from termglyph.core.pixels import PixelGrid

logger = logging.getLogger(__name__)


class OutputBuffer:
    """UTF-8 byte buffer pre-sized from an estimate; grows when it runs out."""

    def __init__(self, capacity: int) -> None:
        self._buf = bytearray(max(0, capacity))
        self._pos = 0

    def write(self, text: str) -> None:
        data = text.encode("utf-8")
        end = self._pos + len(data)
        if end > len(self._buf):
            self._buf.extend(b"\0" * (end - len(self._buf)))
        self._buf[self._pos : end] = data
        self._pos = end

    def __len__(self) -> int:
        return self._pos

    @property
    def capacity(self) -> int:
        return len(self._buf)

    def getvalue(self) -> str:
        return self._buf[: self._pos].decode("utf-8")


def estimate_size(
    width: int, height: int, bytes_per_char: float, color_bytes_per_char: float = 0.0
) -> int:
    """Bytes to reserve for a width x height grid; +1 per row for newlines."""
    return math.ceil((bytes_per_char + color_bytes_per_char) * (width + 1) * height)


def render(
    glyphs: np.ndarray,
    *,
    pixels: PixelGrid | None = None,
    luminosity: np.ndarray | None = None,
    color_mapper: ColorMapper | None = None,
    edges: np.ndarray | None = None,
    bold_outline: bool = False,
    bytes_per_char: float = 3.5,
    color_bytes_per_char: float = 0.0,
) -> str:
    """Stream a (H, W) glyph grid into the final terminal text.

    Args:
        glyphs: (H, W) array of single-character strings.
        pixels: downscaled pixels, required when ``color_mapper`` is set.
        luminosity: luminosity grid passed through to the color mapper.
        color_mapper: strategy producing ``(code, escape)`` per pixel.
        edges: optional (H, W) boolean edge mask; drives bold outlining.
        bold_outline: embolden edge runs when ``edges`` is given.
    """
    height, width = glyphs.shape
    use_color = color_mapper is not None
    use_bold = bold_outline and edges is not None

    out = OutputBuffer(
        estimate_size(width, height, bytes_per_char, color_bytes_per_char if use_color else 0.0)
    )
    capacity = out.capacity
    out.write(RESET)

    prev_code: int | None = None
    bold = False
    for y in range(height):
        row = glyphs[y]
        for x in range(width):
            if use_bold:
                is_edge = bool(edges[y, x])
                if is_edge != bold:
                    out.write(BOLD_ON if is_edge else BOLD_OFF)
                    bold = is_edge
            if use_color:
                code, escape = color_mapper.map_color(pixels, luminosity, x, y)
                if code != prev_code:
                    out.write(escape)
                    prev_code = code
            out.write(row[x])
        out.write("\n")

    out.write(RESET)
    if len(out) > capacity:
        logger.debug("output buffer grew from %d to %d bytes", capacity, len(out))
    return out.getvalue()
