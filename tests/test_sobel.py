"""Tests for the Sobel gradient field and edge classification."""

import numpy as np
import pytest

from termglyph.core.sobel import (
    edge_mask,
    gradient_ratio,
    scaled_magnitude_threshold,
    sobel_field,
)


def _reference_sobel(lum: np.ndarray, aspect_ratio: float):
    """Per-pixel Sobel with coordinates clamped to the grid."""
    h, w = lum.shape

    def at(x, y):
        return int(lum[min(max(y, 0), h - 1), min(max(x, 0), w - 1)])

    mag2 = np.zeros((h, w), dtype=np.int64)
    lap = np.zeros((h, w), dtype=np.float64)
    for y in range(h):
        for x in range(w):
            gx = (at(x + 1, y - 1) + 2 * at(x + 1, y) + at(x + 1, y + 1)) - (
                at(x - 1, y - 1) + 2 * at(x - 1, y) + at(x - 1, y + 1)
            )
            gy = (at(x - 1, y + 1) + 2 * at(x, y + 1) + at(x + 1, y + 1)) - (
                at(x - 1, y - 1) + 2 * at(x, y - 1) + at(x + 1, y - 1)
            )
            mag2[y, x] = gx * gx + gy * gy
            c = at(x, y)
            lap[y, x] = (at(x - 1, y) + at(x + 1, y) - 2 * c) + (
                at(x, y - 1) + at(x, y + 1) - 2 * c
            ) / aspect_ratio
    return mag2, lap


class TestGradientRatio:
    def test_regular_division(self):
        assert gradient_ratio(np.array([2.0]), np.array([6.0]))[0] == pytest.approx(3.0)

    def test_vertical_positive(self):
        assert gradient_ratio(np.array([0]), np.array([5]))[0] == np.inf

    def test_vertical_negative(self):
        assert gradient_ratio(np.array([0]), np.array([-5]))[0] == -np.inf

    def test_zero_zero_is_negative_infinity(self):
        assert gradient_ratio(np.array([0]), np.array([0]))[0] == -np.inf

    def test_never_nan(self):
        rng = np.random.default_rng(0)
        gx = rng.integers(-3, 4, size=200)
        gy = rng.integers(-3, 4, size=200)
        assert not np.isnan(gradient_ratio(gx, gy)).any()


class TestSobelField:
    def test_uniform_grid_has_no_gradient(self):
        field = sobel_field(np.full((5, 7), 128), aspect_ratio=2.0)
        assert np.all(field.magnitude2 == 0)
        assert np.all(field.laplacian == 0)
        assert np.all(field.gradient == -np.inf)

    def test_vertical_step(self):
        lum = np.zeros((5, 6), dtype=np.int64)
        lum[:, 3:] = 200
        field = sobel_field(lum)
        # Columns 2 and 3 straddle the step: gx = 4 * 200, gy = 0
        assert field.magnitude2[2, 2] == 800 * 800
        assert field.magnitude2[2, 3] == 800 * 800
        assert field.gradient[2, 2] == 0.0
        assert field.magnitude2[2, 0] == 0

    def test_horizontal_step_gives_infinite_ratio(self):
        lum = np.zeros((6, 4), dtype=np.int64)
        lum[3:, :] = 255
        field = sobel_field(lum)
        assert field.gradient[2, 1] == np.inf

    def test_matches_reference_with_borders(self):
        rng = np.random.default_rng(11)
        lum = rng.integers(0, 256, size=(9, 13))
        field = sobel_field(lum, aspect_ratio=2.0)
        mag2, lap = _reference_sobel(lum, 2.0)
        np.testing.assert_array_equal(field.magnitude2, mag2)
        np.testing.assert_allclose(field.laplacian, lap)

    def test_single_pixel(self):
        field = sobel_field(np.array([[42]]))
        assert field.shape == (1, 1)
        assert field.magnitude2[0, 0] == 0
        assert not np.isnan(field.gradient).any()

    def test_laplacian_vertical_weight(self):
        lum = np.zeros((3, 3), dtype=np.int64)
        lum[1, 1] = 100
        field = sobel_field(lum, aspect_ratio=2.0)
        # Horizontal: 0 + 0 - 200; vertical: (0 + 0 - 200) / 2
        assert field.laplacian[1, 1] == pytest.approx(-300.0)

    def test_parallel_bands_match_sequential(self):
        rng = np.random.default_rng(5)
        lum = rng.integers(0, 256, size=(23, 17))
        seq = sobel_field(lum, aspect_ratio=2.0)
        par = sobel_field(lum, aspect_ratio=2.0, workers=4)
        np.testing.assert_array_equal(seq.magnitude2, par.magnitude2)
        np.testing.assert_array_equal(seq.gradient, par.gradient)
        np.testing.assert_array_equal(seq.laplacian, par.laplacian)


class TestEdgeMask:
    def test_threshold_scaled_by_aspect_squared(self):
        assert scaled_magnitude_threshold(1000, 2.0) == 4000

    def test_checkerboard_2x2_all_edges(self):
        lum = np.array([[0, 255], [255, 0]])
        field = sobel_field(lum, aspect_ratio=1.0)
        mask = edge_mask(field, 1, 10000, 1.0)
        assert mask.all()

    def test_laplacian_rejects_noise(self):
        lum = np.array([[0, 255], [255, 0]])
        field = sobel_field(lum, aspect_ratio=1.0)
        mask = edge_mask(field, 1, 0, 1.0)
        assert not mask.any()

    def test_monotonic_in_magnitude_threshold(self):
        rng = np.random.default_rng(21)
        lum = rng.integers(0, 256, size=(30, 40))
        field = sobel_field(lum, aspect_ratio=2.0)
        counts = [
            int(edge_mask(field, t, 400, 2.0).sum())
            for t in (0, 1000, 10000, 50000, 80000, 120000, 500000)
        ]
        assert counts == sorted(counts, reverse=True)
