"""
Tests for pixel sampling and color packing.
"""

from __future__ import annotations

import numpy as np
import pytest

from engiffen.sampling import (
    TRANSPARENT_BLACK,
    normalize_pixels,
    pack_colors,
    sample_frame,
    sample_pixels,
    unpack_color,
    unpack_colors,
)
from engiffen.types import Frame


def _numbered_frame(width: int = 4, height: int = 4) -> Frame:
    """Each pixel's red channel encodes its raster position."""
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    arr[..., 0] = np.arange(width * height).reshape(height, width)
    arr[..., 3] = 255
    return Frame(arr)


# ---------------------------------------------------------------------------
# normalize_pixels
# ---------------------------------------------------------------------------

class TestNormalizePixels:
    def test_transparent_becomes_sentinel(self):
        px = np.array([[10, 20, 30, 0]], dtype=np.uint8)
        assert tuple(normalize_pixels(px)[0]) == TRANSPARENT_BLACK

    def test_partial_alpha_becomes_opaque(self):
        px = np.array([[10, 20, 30, 1], [1, 2, 3, 128]], dtype=np.uint8)
        out = normalize_pixels(px)
        assert out.tolist() == [[10, 20, 30, 255], [1, 2, 3, 255]]

    def test_input_not_modified(self):
        px = np.array([[10, 20, 30, 0]], dtype=np.uint8)
        normalize_pixels(px)
        assert px.tolist() == [[10, 20, 30, 0]]


# ---------------------------------------------------------------------------
# Sampling
# ---------------------------------------------------------------------------

class TestSamplePixels:
    def test_stride_one_keeps_every_pixel(self):
        samples = sample_pixels([_numbered_frame(), _numbered_frame()], 1)
        assert samples.size == 2 * 16 * 4
        assert samples.reshape(-1, 4)[:16, 0].tolist() == list(range(16))

    def test_stride_two_keeps_even_rows_and_columns(self):
        samples = sample_frame(_numbered_frame(4, 4), 2).reshape(-1, 4)
        # positions (0,0), (2,0), (0,2), (2,2) in raster order
        assert samples[:, 0].tolist() == [0, 2, 8, 10]

    def test_stride_three_on_odd_size(self):
        samples = sample_frame(_numbered_frame(5, 5), 3).reshape(-1, 4)
        assert samples[:, 0].tolist() == [0, 3, 15, 18]

    def test_frames_concatenate_in_order(self):
        a = Frame(np.full((2, 2, 4), (1, 1, 1, 255), dtype=np.uint8))
        b = Frame(np.full((2, 2, 4), (2, 2, 2, 255), dtype=np.uint8))
        samples = sample_pixels([a, b]).reshape(-1, 4)
        assert samples[:4, 0].tolist() == [1] * 4
        assert samples[4:, 0].tolist() == [2] * 4

    def test_transparent_pixels_normalized(self):
        arr = np.zeros((1, 2, 4), dtype=np.uint8)
        arr[0, 0] = (200, 100, 50, 0)
        arr[0, 1] = (200, 100, 50, 17)
        samples = sample_pixels([Frame(arr)]).reshape(-1, 4)
        assert samples.tolist() == [[0, 0, 0, 0], [200, 100, 50, 255]]

    def test_empty_input(self):
        assert sample_pixels([]).size == 0


# ---------------------------------------------------------------------------
# Packing
# ---------------------------------------------------------------------------

class TestPacking:
    def test_unpack_single(self):
        key = pack_colors(np.array([[1, 2, 3, 4]], dtype=np.uint8))[0]
        assert unpack_color(key) == (1, 2, 3, 4)

    def test_alpha_distinguishes_keys(self):
        keys = pack_colors(np.array([[9, 9, 9, 0], [9, 9, 9, 255]], dtype=np.uint8))
        assert keys[0] != keys[1]

    def test_unpack_array(self):
        colors = np.array([[255, 0, 0, 255], [0, 0, 0, 0]], dtype=np.uint8)
        assert unpack_colors(pack_colors(colors)).tolist() == colors.tolist()


class TestFrame:
    def test_pixels_are_read_only(self):
        frame = _numbered_frame()
        with pytest.raises(ValueError):
            frame.pixels[0, 0, 0] = 7

    def test_size_is_width_height(self):
        assert _numbered_frame(5, 3).size == (5, 3)

    def test_rejects_non_rgba(self):
        with pytest.raises(ValueError):
            Frame(np.zeros((2, 2, 3), dtype=np.uint8))
