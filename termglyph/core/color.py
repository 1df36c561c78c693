"""Pixel color to ANSI terminal color mapping.

Every mapper returns ``(code, escape)``: a stable integer identifying the
quantised color and the escape sequence that selects it. The renderer only
compares codes, so two pixels with the same code never re-emit an escape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

import numpy as np

from termglyph.core.errors import ConfigurationError
from termglyph.core.pixels import PixelGrid

RESET = "\033[0m"
BOLD_ON = "\033[1m"
BOLD_OFF = "\033[22m"

# Bytes reserved per character on top of the glyph itself
BYTES_PER_CHAR = 3.5


class ColorSpace(str, Enum):
    NONE = "none"
    THREE_BIT = "3bit"
    FOUR_BIT = "4bit"
    EIGHT_BIT = "8bit"
    TRUECOLOR = "24bit"

    @classmethod
    def parse(cls, value: str | ColorSpace) -> ColorSpace:
        """Resolve a color space from its name or a CLI alias."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        aliases = {
            "none": cls.NONE,
            "3bit": cls.THREE_BIT,
            "3": cls.THREE_BIT,
            "4bit": cls.FOUR_BIT,
            "4": cls.FOUR_BIT,
            "8bit": cls.EIGHT_BIT,
            "8": cls.EIGHT_BIT,
            "256": cls.EIGHT_BIT,
            "24bit": cls.TRUECOLOR,
            "24": cls.TRUECOLOR,
            "truecolor": cls.TRUECOLOR,
            "full": cls.TRUECOLOR,
        }
        if key not in aliases:
            raise ConfigurationError(f"Unknown color space: {value}")
        return aliases[key]


# Extra bytes per character reserved for escapes in each color space
COLOR_BYTES_PER_CHAR: dict[ColorSpace, float] = {
    ColorSpace.NONE: 0.0,
    ColorSpace.THREE_BIT: 5.0,
    ColorSpace.FOUR_BIT: 5.0,
    ColorSpace.EIGHT_BIT: 11.0,
    ColorSpace.TRUECOLOR: 19.0,
}


class ColorMapper(Protocol):
    """Strategy mapping the pixel at (x, y) to ``(code, escape)``."""

    def map_color(
        self, pixels: PixelGrid, luminosity: np.ndarray, x: int, y: int
    ) -> tuple[int, str]: ...


def sgr(code: int) -> str:
    """Return the SGR escape for a single numeric parameter."""
    return f"\033[{code}m"


def ansi256_fg(color_idx: int) -> str:
    """Return ANSI escape for 256-color foreground."""
    return f"\033[38;5;{color_idx}m"


def truecolor_fg(r: int, g: int, b: int) -> str:
    """Return ANSI escape for truecolor (24-bit) foreground."""
    return f"\033[38;2;{r};{g};{b}m"


# --- 3-bit / 4-bit ---


@dataclass(frozen=True)
class ColorMapper3BitOptions:
    """Thresholds for the 8-color palette.

    Luminosity below ``black_lum_upper`` or above ``white_lum_lower`` skips
    channel logic entirely. With ``use_reward`` set, channels are nudged
    before thresholding: a saturated pixel (spread >= ``reward_min_range``)
    boosts the channels within ``dominance_window`` of its strongest one by
    ``dominant_bonus``; a washed-out pixel lifts all channels by
    ``desaturated_bonus``.
    """

    black_lum_upper: int = 16
    white_lum_lower: int = 240
    channel_threshold: int = 128
    use_reward: bool = True
    reward_min_range: int = 48
    dominance_window: int = 24
    dominant_bonus: int = 40
    desaturated_bonus: int = 16

    def __post_init__(self) -> None:
        if not 0 <= self.black_lum_upper <= 255 or not 0 <= self.white_lum_lower <= 255:
            raise ConfigurationError("Luminosity extremes must be within [0, 255]")
        if self.black_lum_upper > self.white_lum_lower:
            raise ConfigurationError("black_lum_upper must not exceed white_lum_lower")
        if self.reward_min_range < 0 or self.dominance_window < 0:
            raise ConfigurationError("Reward ranges must be >= 0")


@dataclass(frozen=True)
class ColorMapper4BitOptions:
    """3-bit thresholds plus the luminosity gate for bright variants."""

    base: ColorMapper3BitOptions = field(default_factory=ColorMapper3BitOptions)
    bright_lum_threshold: int = 160

    def __post_init__(self) -> None:
        if not 0 <= self.bright_lum_threshold <= 256:
            raise ConfigurationError("bright_lum_threshold must be within [0, 256]")


def _reward(r: int, g: int, b: int, opts: ColorMapper3BitOptions) -> tuple[int, int, int]:
    channels = [r, g, b]
    hi, lo = max(channels), min(channels)
    if hi - lo >= opts.reward_min_range:
        channels = [
            c + opts.dominant_bonus if hi - c <= opts.dominance_window else c
            for c in channels
        ]
    else:
        channels = [c + opts.desaturated_bonus for c in channels]
    return channels[0], channels[1], channels[2]


def base_color_index(r: int, g: int, b: int, lum: int, opts: ColorMapper3BitOptions) -> int:
    """Index 0-7 into the ANSI base palette (bit 0 red, 1 green, 2 blue)."""
    if lum < opts.black_lum_upper:
        return 0
    if lum > opts.white_lum_lower:
        return 7
    if opts.use_reward:
        r, g, b = _reward(r, g, b, opts)
    t = opts.channel_threshold
    return int(r >= t) | int(g >= t) << 1 | int(b >= t) << 2


class ThreeBitColorMapper:
    """Eight base foreground colors, codes 30-37."""

    def __init__(self, options: ColorMapper3BitOptions | None = None) -> None:
        self.options = options or ColorMapper3BitOptions()

    def map_color(
        self, pixels: PixelGrid, luminosity: np.ndarray, x: int, y: int
    ) -> tuple[int, str]:
        r, g, b, _ = pixels.rgba_at(x, y)
        code = 30 + base_color_index(r, g, b, int(luminosity[y, x]), self.options)
        return code, sgr(code)


class FourBitColorMapper:
    """Base colors plus their bright variants (90-97) for bright pixels."""

    def __init__(self, options: ColorMapper4BitOptions | None = None) -> None:
        self.options = options or ColorMapper4BitOptions()

    def map_color(
        self, pixels: PixelGrid, luminosity: np.ndarray, x: int, y: int
    ) -> tuple[int, str]:
        r, g, b, _ = pixels.rgba_at(x, y)
        lum = int(luminosity[y, x])
        code = 30 + base_color_index(r, g, b, lum, self.options.base)
        if lum >= self.options.bright_lum_threshold:
            code += 60
        return code, sgr(code)


# --- 8-bit ---


@dataclass(frozen=True)
class ColorMapper8BitOptions:
    """Cube levels and greyscale ramp of the xterm 256-color palette."""

    cube_steps: tuple[int, ...] = (0, 95, 135, 175, 215, 255)
    grey_start: int = 8
    grey_step: int = 10
    grey_levels: int = 24

    def __post_init__(self) -> None:
        if len(self.cube_steps) != 6:
            raise ConfigurationError("cube_steps must have exactly 6 levels")
        if any(b <= a for a, b in zip(self.cube_steps, self.cube_steps[1:])):
            raise ConfigurationError("cube_steps must be strictly increasing")
        if self.grey_levels != 24 or self.grey_step <= 0:
            raise ConfigurationError("Grey ramp must have 24 levels and a positive step")


def _nearest_step(value: int, steps: tuple[int, ...]) -> int:
    best = 0
    for i, s in enumerate(steps):
        if abs(value - s) < abs(value - steps[best]):
            best = i
    return best


def rgb_to_ansi256(r: int, g: int, b: int, opts: ColorMapper8BitOptions | None = None) -> int:
    """Map an RGB color to the nearest ANSI 256-color index.

    Picks whichever of the nearest 6x6x6 cube color (16-231) and the nearest
    grey (232-255) is closer in squared RGB distance; ties go to the cube.
    """
    opts = opts or ColorMapper8BitOptions()
    steps = opts.cube_steps

    ri, gi, bi = (_nearest_step(c, steps) for c in (r, g, b))
    cube = (steps[ri], steps[gi], steps[bi])
    cube_dist = (r - cube[0]) ** 2 + (g - cube[1]) ** 2 + (b - cube[2]) ** 2

    avg = (r + g + b) / 3
    gi_grey = round((avg - opts.grey_start) / opts.grey_step)
    gi_grey = max(0, min(gi_grey, opts.grey_levels - 1))
    grey = opts.grey_start + opts.grey_step * gi_grey
    grey_dist = (r - grey) ** 2 + (g - grey) ** 2 + (b - grey) ** 2

    if grey_dist < cube_dist:
        return 232 + gi_grey
    return 16 + 36 * ri + 6 * gi + bi


class EightBitColorMapper:
    """xterm 256-color palette."""

    def __init__(self, options: ColorMapper8BitOptions | None = None) -> None:
        self.options = options or ColorMapper8BitOptions()

    def map_color(
        self, pixels: PixelGrid, luminosity: np.ndarray, x: int, y: int
    ) -> tuple[int, str]:
        r, g, b, _ = pixels.rgba_at(x, y)
        code = rgb_to_ansi256(r, g, b, self.options)
        return code, ansi256_fg(code)


# --- 24-bit ---


class TrueColorMapper:
    """Pass-through 24-bit color; the code is the packed RGB value."""

    def map_color(
        self, pixels: PixelGrid, luminosity: np.ndarray, x: int, y: int
    ) -> tuple[int, str]:
        r, g, b, _ = pixels.rgba_at(x, y)
        return (r << 16) | (g << 8) | b, truecolor_fg(r, g, b)


def default_mapper(
    space: ColorSpace,
    options_3bit: ColorMapper3BitOptions | None = None,
    options_4bit: ColorMapper4BitOptions | None = None,
    options_8bit: ColorMapper8BitOptions | None = None,
) -> ColorMapper | None:
    """Build the library mapper for ``space``; None for ColorSpace.NONE."""
    if space == ColorSpace.NONE:
        return None
    if space == ColorSpace.THREE_BIT:
        return ThreeBitColorMapper(options_3bit)
    if space == ColorSpace.FOUR_BIT:
        return FourBitColorMapper(options_4bit)
    if space == ColorSpace.EIGHT_BIT:
        return EightBitColorMapper(options_8bit)
    return TrueColorMapper()
