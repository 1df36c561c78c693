"""Sobel gradient, squared magnitude and Laplacian over a luminosity grid.

Border pixels use replicate padding: out-of-range neighbours are clamped to
the nearest edge coordinate, so even a 1x1 grid gets defined values.

Magnitude is kept squared. Callers compare it against a threshold that has
been multiplied by aspect_ratio**2 instead of taking a square root per pixel.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class GradientField:
    """Parallel (H, W) arrays derived from one luminosity grid."""

    gradient: np.ndarray  # gy / gx, float64, +-inf where gx == 0
    magnitude2: np.ndarray  # gx**2 + gy**2, int64
    laplacian: np.ndarray  # float64

    @property
    def shape(self) -> tuple[int, int]:
        return self.magnitude2.shape


def gradient_ratio(gx: np.ndarray, gy: np.ndarray) -> np.ndarray:
    """Elementwise gy / gx; a zero gx yields +inf if gy > 0 else -inf."""
    gx = np.asarray(gx, dtype=np.float64)
    gy = np.asarray(gy, dtype=np.float64)
    vertical = np.where(gy > 0, np.inf, -np.inf)
    safe_gx = np.where(gx == 0, 1.0, gx)
    return np.where(gx == 0, vertical, gy / safe_gx)


def _sobel_rows(
    padded: np.ndarray, start: int, end: int, vertical_weight: float
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Compute rows [start, end) from an edge-padded grid."""
    w = padded.shape[1] - 2
    top = padded[start:end]
    mid = padded[start + 1 : end + 1]
    bot = padded[start + 2 : end + 2]

    tl, tc, tr = top[:, 0:w], top[:, 1 : w + 1], top[:, 2 : w + 2]
    ml, mc, mr = mid[:, 0:w], mid[:, 1 : w + 1], mid[:, 2 : w + 2]
    bl, bc, br = bot[:, 0:w], bot[:, 1 : w + 1], bot[:, 2 : w + 2]

    gx = (tr + 2 * mr + br) - (tl + 2 * ml + bl)
    gy = (bl + 2 * bc + br) - (tl + 2 * tc + tr)

    magnitude2 = gx * gx + gy * gy
    gradient = gradient_ratio(gx, gy)
    laplacian = (ml + mr - 2 * mc) + vertical_weight * (tc + bc - 2 * mc)
    return gradient, magnitude2, laplacian.astype(np.float64)


def _row_bands(height: int, workers: int) -> list[tuple[int, int]]:
    step = max(1, -(-height // workers))
    return [(s, min(s + step, height)) for s in range(0, height, step)]


def sobel_field(
    luminosity: np.ndarray,
    aspect_ratio: float = 1.0,
    workers: int = 1,
) -> GradientField:
    """Build the gradient field for ``luminosity``.

    Args:
        luminosity: (H, W) integer grid in [0, 255].
        aspect_ratio: effective output aspect ratio; the Laplacian's
            vertical neighbours are weighted by its inverse.
        workers: number of threads splitting the grid into row bands.
            Bands only read the shared padded grid and write disjoint rows.
    """
    lum = np.asarray(luminosity, dtype=np.int64)
    height, width = lum.shape
    padded = np.pad(lum, 1, mode="edge")
    vertical_weight = 1.0 / aspect_ratio

    gradient = np.empty((height, width), dtype=np.float64)
    magnitude2 = np.empty((height, width), dtype=np.int64)
    laplacian = np.empty((height, width), dtype=np.float64)

    bands = _row_bands(height, workers)
    if workers > 1 and len(bands) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(
                pool.map(lambda b: _sobel_rows(padded, b[0], b[1], vertical_weight), bands)
            )
    else:
        results = [_sobel_rows(padded, s, e, vertical_weight) for s, e in bands]

    for (start, end), (grad, mag2, lap) in zip(bands, results):
        gradient[start:end] = grad
        magnitude2[start:end] = mag2
        laplacian[start:end] = lap

    logger.debug("sobel field %dx%d over %d band(s)", width, height, len(bands))
    return GradientField(gradient=gradient, magnitude2=magnitude2, laplacian=laplacian)


def scaled_magnitude_threshold(threshold: float, aspect_ratio: float) -> float:
    """Scale a squared-magnitude threshold for a non-square sampling grid."""
    return threshold * aspect_ratio * aspect_ratio


def edge_mask(
    field: GradientField,
    magnitude_threshold: float,
    laplacian_threshold: float,
    aspect_ratio: float,
) -> np.ndarray:
    """Boolean (H, W) mask of pixels classified as edges.

    An edge has a squared magnitude at or above the aspect-scaled threshold
    and a Laplacian no larger than ``laplacian_threshold`` in absolute value.
    """
    mag_threshold = scaled_magnitude_threshold(magnitude_threshold, aspect_ratio)
    return (field.magnitude2 >= mag_threshold) & (
        np.abs(field.laplacian) <= laplacian_threshold
    )
