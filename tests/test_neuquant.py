"""
Tests for the NeuQuant network.
"""

from __future__ import annotations

import numpy as np
import pytest

from engiffen.neuquant import NETSIZE, NEUQUANT_SAMPLE_FACTOR, NeuQuant


def _two_color_samples(n: int = 4096) -> np.ndarray:
    px = np.zeros((n, 4), dtype=np.uint8)
    px[: n // 2] = (255, 0, 0, 255)
    px[n // 2:] = (0, 0, 255, 255)
    return px.reshape(-1)


@pytest.fixture(scope="module")
def two_color_net() -> NeuQuant:
    return NeuQuant(_two_color_samples(), NEUQUANT_SAMPLE_FACTOR, NETSIZE)


class TestNeuQuant:
    def test_palette_has_netsize_entries(self, two_color_net):
        assert len(two_color_net.color_map_rgb()) == NETSIZE

    def test_palette_entries_are_bytes(self, two_color_net):
        for rgb in two_color_net.color_map_rgb():
            assert all(0 <= c <= 255 for c in rgb)

    def test_learns_training_colors(self, two_color_net):
        palette = two_color_net.color_map_rgb()
        for color in ((255, 0, 0), (0, 0, 255)):
            match = palette[two_color_net.index_of((*color, 255))]
            assert max(abs(a - b) for a, b in zip(match, color)) <= 40

    def test_index_of_is_exact_nearest(self, two_color_net):
        rng = np.random.default_rng(7)
        entries = np.array(two_color_net.color_map_rgba(), dtype=np.int64)
        for rgba in rng.integers(0, 256, size=(200, 4)):
            idx = two_color_net.index_of(rgba)
            dists = ((entries - rgba.astype(np.int64)) ** 2).sum(axis=1)
            assert dists[idx] == dists.min()

    def test_deterministic(self):
        a = NeuQuant(_two_color_samples(1000))
        b = NeuQuant(_two_color_samples(1000))
        assert a.color_map_rgba() == b.color_map_rgba()

    def test_tiny_input_still_builds_palette(self):
        net = NeuQuant(np.array([10, 20, 30, 255], dtype=np.uint8))
        assert len(net.color_map_rgb()) == NETSIZE
        assert 0 <= net.index_of((10, 20, 30, 255)) < NETSIZE

    def test_palette_sorted_by_green(self, two_color_net):
        greens = [g for _, g, _ in two_color_net.color_map_rgb()]
        assert greens == sorted(greens)

    def test_rejects_ragged_buffer(self):
        with pytest.raises(ValueError):
            NeuQuant(np.zeros(6, dtype=np.uint8))
