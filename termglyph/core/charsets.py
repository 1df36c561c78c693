"""Glyph ramps mapping luminance to characters.

Each ramp is ordered densest → lightest. Output is meant for a dark terminal
background, so full luminance (255) maps to the densest glyph at index 0 and
black maps to the last, lightest glyph.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import numpy as np

from termglyph.core.errors import ConfigurationError


class RampName(str, Enum):
    STANDARD = "standard"
    DETAILED = "detailed"
    BLOCKS = "blocks"


STANDARD_CHARS = "@%#*+=-:. "

DETAILED_CHARS = (
    "$@B%8&WM#*oahkbdpqwmZO0QLCJUYXzcvunxrjft"
    "/\\|()1{}[]?-_+~<>i!lI;:,\"^`'. "
)

# Unicode block elements, full block down to empty
BLOCK_CHARS = "█▇▆▅▄▃▂▁ "


@dataclass(frozen=True)
class GlyphRamp:
    name: str
    chars: str

    def __post_init__(self) -> None:
        if not self.chars:
            raise ConfigurationError("Glyph ramp must contain at least one character")

    @property
    def last_index(self) -> int:
        return len(self.chars) - 1

    def index_for(self, luminosity: int) -> int:
        """Ramp index for a luminosity value (0-255)."""
        idx = int(np.floor(self.last_index - luminosity / 255 * self.last_index))
        return max(0, min(idx, self.last_index))

    def glyph_for(self, luminosity: int) -> str:
        return self.chars[self.index_for(luminosity)]

    def index_array(self, luminosity: np.ndarray) -> np.ndarray:
        """Vectorised :meth:`index_for` over an integer grid."""
        lum = np.asarray(luminosity, dtype=np.float64)
        indices = np.floor(self.last_index - lum / 255 * self.last_index).astype(np.int64)
        return np.clip(indices, 0, self.last_index)


RAMPS: dict[RampName, GlyphRamp] = {
    RampName.STANDARD: GlyphRamp(RampName.STANDARD.value, STANDARD_CHARS),
    RampName.DETAILED: GlyphRamp(RampName.DETAILED.value, DETAILED_CHARS),
    RampName.BLOCKS: GlyphRamp(RampName.BLOCKS.value, BLOCK_CHARS),
}


def resolve_ramp(ramp: str | RampName | GlyphRamp) -> GlyphRamp:
    """Look up a named preset, or pass a custom ramp through."""
    if isinstance(ramp, GlyphRamp):
        return ramp
    try:
        return RAMPS[RampName(ramp)]
    except ValueError:
        raise ConfigurationError(f"Unknown glyph ramp: {ramp}") from None


class LuminosityMapper(Protocol):
    """Strategy mapping an (H, W) luminosity grid to an (H, W) glyph grid."""

    def glyph_grid(self, luminosity: np.ndarray) -> np.ndarray: ...


class LuminosityGlyphMapper:
    """Maps luminosity to a glyph from a fixed ramp."""

    def __init__(self, ramp: GlyphRamp) -> None:
        self.ramp = ramp
        self._chars = np.array(list(ramp.chars))

    def glyph(self, luminosity: np.ndarray, x: int, y: int) -> str:
        return self.ramp.glyph_for(int(luminosity[y, x]))

    def glyph_grid(self, luminosity: np.ndarray) -> np.ndarray:
        """(H, W) array of single-character strings."""
        return self._chars[self.ramp.index_array(luminosity)]
