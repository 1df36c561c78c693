"""Tests for luminosity extraction."""

import numpy as np
import pytest
from PIL import Image

from termglyph.core.luminosity import luminosity_map, luminosity_of
from termglyph.core.pixels import as_pixel_grid


class TestLuminosityMap:
    def test_black_and_white(self):
        arr = np.array([[[0, 0, 0], [255, 255, 255]]], dtype=np.uint8)
        lum = luminosity_map(as_pixel_grid(arr))
        assert lum.tolist() == [[0, 255]]

    def test_primary_weights(self):
        arr = np.array([[[255, 0, 0], [0, 255, 0], [0, 0, 255]]], dtype=np.uint8)
        lum = luminosity_map(as_pixel_grid(arr))
        # 255*2126//10000, 255*7152//10000, 255*722//10000
        assert lum.tolist() == [[54, 182, 18]]

    def test_alpha_scales_luminosity(self):
        arr = np.array([[[255, 255, 255, 0], [255, 255, 255, 128]]], dtype=np.uint8)
        lum = luminosity_map(as_pixel_grid(arr))
        assert lum.tolist() == [[0, 255 * 128 // 255]]

    def test_truncates_before_alpha(self):
        # (200*2126 + 100*7152 + 50*722) // 10000 = 117, then * 200 // 255 = 91
        arr = np.array([[[200, 100, 50, 200]]], dtype=np.uint8)
        assert luminosity_map(as_pixel_grid(arr))[0, 0] == 91
        assert luminosity_of(200, 100, 50, 200) == 91

    def test_sixteen_bit_channels_truncated(self):
        arr = np.array([[[0xFFFF, 0xFFFF, 0xFFFF]]], dtype=np.uint16)
        assert luminosity_map(as_pixel_grid(arr))[0, 0] == 255

    def test_range_on_random_input(self):
        rng = np.random.default_rng(7)
        arr = rng.integers(0, 256, size=(40, 60, 4), dtype=np.uint8)
        lum = luminosity_map(as_pixel_grid(arr))
        assert lum.shape == (40, 60)
        assert lum.min() >= 0
        assert lum.max() <= 255

    def test_matches_scalar_version(self):
        rng = np.random.default_rng(3)
        arr = rng.integers(0, 256, size=(5, 5, 4), dtype=np.uint8)
        lum = luminosity_map(as_pixel_grid(arr))
        for y in range(5):
            for x in range(5):
                r, g, b, a = (int(v) for v in arr[y, x])
                assert lum[y, x] == luminosity_of(r, g, b, a)

    def test_pillow_grayscale_input(self):
        img = Image.new("L", (3, 2), 100)
        lum = luminosity_map(as_pixel_grid(img))
        # (100 * 10000) // 10000
        assert np.all(lum == 100)
