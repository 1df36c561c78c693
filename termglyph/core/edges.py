"""Directional edge glyphs chosen from the Sobel gradient ratio.

A gradient-stop table splits the real line of physical gradient ratios
(gy / gx, y pointing down) into ranges, each drawn with one glyph. The edge
runs perpendicular to the gradient, so a horizontal gradient draws ``|``.

Character cells are not square: at an output aspect ratio ``a`` a cell is
``a`` times taller than wide, so a ratio measured on the grid is ``a`` times
the physical one. Rather than rescale every pixel, the table is rescaled
once per aspect ratio into a dense integer lookup, and each pixel becomes a
single clamped index into it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from termglyph.core.errors import ConfigurationError
from termglyph.utils.cache import LookupCache

logger = logging.getLogger(__name__)

TAN_22_5 = math.tan(math.radians(22.5))
TAN_67_5 = math.tan(math.radians(67.5))

# (upper bound, glyph); a glyph covers ratios below its bound and above the
# previous stop's bound. The first stop reaches -inf, the last +inf.
DEFAULT_EDGE_STOPS: tuple[tuple[float, str], ...] = (
    (-TAN_67_5, "-"),
    (-TAN_22_5, "\\"),
    (TAN_22_5, "|"),
    (TAN_67_5, "/"),
    (math.inf, "-"),
)

# Lookup slots per unit of grid gradient ratio
DEFAULT_RESOLUTION = 64


def validate_stops(stops: tuple[tuple[float, str], ...]) -> tuple[tuple[float, str], ...]:
    """Check a stop table covers the real line in increasing order."""
    stops = tuple((float(t), str(g)) for t, g in stops)
    if not stops:
        raise ConfigurationError("Edge stop table must not be empty")
    if stops[-1][0] != math.inf:
        raise ConfigurationError("Last edge stop must have an upper bound of +inf")
    bounds = [t for t, _ in stops]
    if any(math.isnan(t) for t in bounds):
        raise ConfigurationError("Edge stop thresholds must not be NaN")
    if any(b <= a for a, b in zip(bounds, bounds[1:])):
        raise ConfigurationError("Edge stop thresholds must be strictly increasing")
    if any(len(g) != 1 for _, g in stops):
        raise ConfigurationError("Edge stop glyphs must be single characters")
    return stops


@dataclass(frozen=True, eq=False)
class EdgeGlyphMapper:
    """O(1) gradient-ratio to glyph lookup for one aspect ratio."""

    aspect_ratio: float
    resolution: int
    offset: int
    table: np.ndarray  # (N,) array of single-character strings

    def slots(self, gradient: np.ndarray) -> np.ndarray:
        """Lookup indices for grid gradient ratios; +-inf clamps to the ends."""
        scaled = np.floor(np.asarray(gradient, dtype=np.float64) * self.resolution)
        return np.clip(scaled + self.offset, 0, len(self.table) - 1).astype(np.int64)

    def glyph(self, gradient: np.ndarray, x: int, y: int) -> str:
        return str(self.table[self.slots(gradient[y, x])])

    def glyph_grid(self, gradient: np.ndarray) -> np.ndarray:
        return self.table[self.slots(gradient)]


class EdgeMapper(Protocol):
    def glyph_grid(self, gradient: np.ndarray) -> np.ndarray: ...


class EdgeMapperFactory(Protocol):
    """Builds the edge glyph strategy for one effective aspect ratio."""

    def __call__(self, aspect_ratio: float) -> EdgeMapper: ...


def build_edge_mapper(
    aspect_ratio: float,
    stops: tuple[tuple[float, str], ...] = DEFAULT_EDGE_STOPS,
    resolution: int = DEFAULT_RESOLUTION,
) -> EdgeGlyphMapper:
    """Precompute the dense lookup table for ``aspect_ratio``.

    The domain spans grid ratios in [-span, span], where ``span`` is one unit
    past the largest finite threshold after scaling. Slot ``i`` covers grid
    ratios in [(i - offset) / resolution, (i - offset + 1) / resolution).
    """
    stops = validate_stops(stops)
    finite = [abs(t) * aspect_ratio for t, _ in stops if math.isfinite(t)]
    span = math.ceil(max(finite, default=0.0)) + 1
    offset = span * resolution
    length = 2 * offset + 1

    glyphs: list[str] = []
    k = 0
    for i in range(length):
        physical = (i - offset) / resolution / aspect_ratio
        while physical >= stops[k][0]:
            k += 1
        glyphs.append(stops[k][1])

    logger.debug("built edge lookup: ratio=%.4f slots=%d", aspect_ratio, length)
    return EdgeGlyphMapper(
        aspect_ratio=aspect_ratio,
        resolution=resolution,
        offset=offset,
        table=np.array(glyphs),
    )


_MAPPER_CACHE = LookupCache(max_size=16)


def edge_mapper_for(
    aspect_ratio: float,
    stops: tuple[tuple[float, str], ...] = DEFAULT_EDGE_STOPS,
    resolution: int = DEFAULT_RESOLUTION,
) -> EdgeGlyphMapper:
    """Memoised :func:`build_edge_mapper`; the table is built once per ratio."""
    key = (aspect_ratio, tuple(stops), resolution)
    return _MAPPER_CACHE.get_or_create(
        key, lambda: build_edge_mapper(aspect_ratio, stops, resolution)
    )
