"""Image to text conversion pipeline.

Downscale → luminosity → (Sobel) → glyph + color selection → render.

``Settings`` is validated once and never mutated; an ``AsciiConverter`` keeps
nothing but its settings and prebuilt strategies, so one instance can serve
concurrent ``convert`` calls from many threads.
"""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

import numpy as np
from PIL import Image

from termglyph.core.charsets import (
    GlyphRamp,
    LuminosityGlyphMapper,
    LuminosityMapper,
    RampName,
    resolve_ramp,
)
from termglyph.core.color import (
    BYTES_PER_CHAR,
    COLOR_BYTES_PER_CHAR,
    ColorMapper,
    ColorMapper3BitOptions,
    ColorMapper4BitOptions,
    ColorMapper8BitOptions,
    ColorSpace,
    default_mapper,
)
from termglyph.core.downscale import DEFAULT_ASPECT_RATIO, DownscaleMode, downscale
from termglyph.core.edges import (
    DEFAULT_EDGE_STOPS,
    EdgeMapperFactory,
    edge_mapper_for,
    validate_stops,
)
from termglyph.core.errors import ConfigurationError
from termglyph.core.luminosity import luminosity_map
from termglyph.core.pixels import PixelGrid, as_pixel_grid
from termglyph.core.reader import open_image
from termglyph.core.render import render
from termglyph.core.sobel import edge_mask, sobel_field

logger = logging.getLogger(__name__)


def _check_non_negative(name: str, value: float) -> None:
    if not (math.isfinite(value) and value >= 0):
        raise ConfigurationError(f"{name} must be a finite number >= 0, got {value}")


@dataclass(frozen=True)
class Settings:
    """Conversion settings; validated on construction."""

    aspect_ratio: float = DEFAULT_ASPECT_RATIO
    downscale_mode: DownscaleMode = DownscaleMode.RESPECT_ASPECT_RATIO
    use_sobel: bool = False
    use_color: bool = False
    bold_outline: bool = False
    magnitude_threshold: float = 80000  # squared magnitude, before aspect**2 scaling
    laplacian_threshold: float = 300
    color_space: ColorSpace = ColorSpace.FOUR_BIT
    options_3bit: ColorMapper3BitOptions = field(default_factory=ColorMapper3BitOptions)
    options_4bit: ColorMapper4BitOptions = field(default_factory=ColorMapper4BitOptions)
    options_8bit: ColorMapper8BitOptions = field(default_factory=ColorMapper8BitOptions)
    color_mapper: ColorMapper | None = None  # overrides color_space when set
    ramp: str | RampName | GlyphRamp = RampName.STANDARD
    luminosity_mapper: LuminosityMapper | None = None  # overrides ramp when set
    edge_stops: tuple[tuple[float, str], ...] = DEFAULT_EDGE_STOPS
    edge_mapper_factory: EdgeMapperFactory | None = None  # overrides edge_stops when set
    bytes_per_char: float = BYTES_PER_CHAR
    color_bytes_per_char: float | None = None  # None: use the color space default
    sobel_workers: int = 1

    def __post_init__(self) -> None:
        if not (math.isfinite(self.aspect_ratio) and self.aspect_ratio > 0):
            raise ConfigurationError(f"Aspect ratio must be > 0, got {self.aspect_ratio}")
        _check_non_negative("Magnitude threshold", self.magnitude_threshold)
        _check_non_negative("Laplacian threshold", self.laplacian_threshold)
        _check_non_negative("bytes_per_char", self.bytes_per_char)
        if self.color_bytes_per_char is not None:
            _check_non_negative("color_bytes_per_char", self.color_bytes_per_char)
        if self.sobel_workers < 1:
            raise ConfigurationError("sobel_workers must be >= 1")

        # Frozen: coerce string values in place
        object.__setattr__(self, "downscale_mode", DownscaleMode.parse(self.downscale_mode))
        object.__setattr__(self, "color_space", ColorSpace.parse(self.color_space))
        object.__setattr__(self, "ramp", resolve_ramp(self.ramp))
        object.__setattr__(self, "edge_stops", validate_stops(self.edge_stops))

    @property
    def reserved_color_bytes(self) -> float:
        if self.color_bytes_per_char is not None:
            return self.color_bytes_per_char
        return COLOR_BYTES_PER_CHAR[self.color_space]


class AsciiConverter:
    """Converts decoded images to terminal text under fixed settings."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        s = self.settings
        self._lum_mapper = s.luminosity_mapper
        if self._lum_mapper is None:
            self._lum_mapper = LuminosityGlyphMapper(s.ramp)
        self._edge_factory = s.edge_mapper_factory
        if self._edge_factory is None:
            self._edge_factory = partial(edge_mapper_for, stops=s.edge_stops)
        if not s.use_color:
            self._color_mapper = None
        elif s.color_mapper is not None:
            self._color_mapper = s.color_mapper
        else:
            self._color_mapper = default_mapper(
                s.color_space, s.options_3bit, s.options_4bit, s.options_8bit
            )

    def convert(
        self,
        image: Image.Image | np.ndarray | PixelGrid,
        target_width: int,
        target_height: int,
    ) -> str:
        """Render ``image`` into at most target_width x target_height cells."""
        s = self.settings
        pixels, ratio = downscale(
            as_pixel_grid(image), target_width, target_height, s.downscale_mode, s.aspect_ratio
        )
        lum = luminosity_map(pixels)
        glyphs = self._lum_mapper.glyph_grid(lum)

        edges = None
        if s.use_sobel:
            gradient = sobel_field(lum, ratio, workers=s.sobel_workers)
            edges = edge_mask(gradient, s.magnitude_threshold, s.laplacian_threshold, ratio)
            edge_glyphs = self._edge_factory(ratio).glyph_grid(gradient.gradient)
            glyphs = np.where(edges, edge_glyphs, glyphs)
            logger.debug("%d of %d cells classified as edges", int(edges.sum()), edges.size)

        return render(
            glyphs,
            pixels=pixels,
            luminosity=lum,
            color_mapper=self._color_mapper,
            edges=edges,
            bold_outline=s.bold_outline,
            bytes_per_char=s.bytes_per_char,
            color_bytes_per_char=s.reserved_color_bytes,
        )

    def convert_bytes(self, data: bytes, target_width: int, target_height: int) -> str:
        """Decode encoded image bytes with Pillow, then convert."""
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return self.convert(img, target_width, target_height)

    def convert_file(self, path: str | Path, target_width: int, target_height: int) -> str:
        """Decode an image file, then convert. Decode errors propagate."""
        with open_image(path) as img:
            return self.convert(img, target_width, target_height)
