"""
NeuQuant neural-network color quantizer.

Anthony Dekker's Kohonen-network quantizer ("Kohonen neural networks for
optimal colour quantization", Network: Computation in Neural Systems,
1994), in its RGBA form.  Neurons start along the grey diagonal and are
pulled toward the sampled pixels; a frequency/bias term keeps every
neuron competitive so rarely-hit regions of color space still get
entries.

The contest and neighbourhood updates are vectorized with numpy over the
whole network, so one learning step costs a handful of array operations
instead of a Python loop over 256 neurons.
"""

from __future__ import annotations

import logging
import time

import numpy as np

logger = logging.getLogger(__name__)

# Palette size and the default sample factor used by the converter.  A
# factor of 10 visits a tenth of the supplied samples during learning.
NETSIZE = 256
NEUQUANT_SAMPLE_FACTOR = 10

# Step sizes for walking the sample buffer; the first one that does not
# divide the sample count is used so every pixel is reachable.
PRIMES = (499, 491, 487, 503)

MAX_CYCLES = 100
RADIUS_DEC = 30
RADIUS_BIAS_SHIFT = 6
RADIUS_BIAS = 1 << RADIUS_BIAS_SHIFT
ALPHA_BIAS_SHIFT = 10
INIT_ALPHA = 1 << ALPHA_BIAS_SHIFT

GAMMA = 1024.0
BETA = 1.0 / GAMMA
BETA_GAMMA = BETA * GAMMA


class NeuQuant:
    """A trained NeuQuant network.

    Parameters
    ----------
    pixels : array-like of uint8
        Flat RGBA sample buffer (length a multiple of 4).
    samplefac : int
        Learning visits ``len(pixels) / 4 / samplefac`` samples.
    colors : int
        Number of neurons, i.e. palette entries.
    """

    def __init__(self, pixels, samplefac: int = NEUQUANT_SAMPLE_FACTOR,
                 colors: int = NETSIZE) -> None:
        samples = np.asarray(pixels, dtype=np.uint8).reshape(-1)
        if samples.size % 4:
            raise ValueError("NeuQuant expects a flat RGBA buffer")
        if not 1 <= colors <= 256:
            raise ValueError(f"colors must be in 1..256, got {colors}")
        if samplefac < 1:
            raise ValueError(f"samplefac must be positive, got {samplefac}")

        self.netsize = colors
        self.samplefac = samplefac

        # Columns are (r, g, b, a).
        ramp = np.arange(colors, dtype=np.float64)
        grey = ramp * 256.0 / colors
        alpha = np.where(ramp < 16, ramp * 16.0, 255.0)
        self._network = np.column_stack([grey, grey, grey, alpha])
        self._freq = np.full(colors, 1.0 / colors)
        self._bias = np.zeros(colors)

        start = time.perf_counter()
        self._learn(samples.reshape(-1, 4).astype(np.float64))
        logger.debug(
            "NeuQuant: trained %d neurons on %d samples in %.3f s.",
            colors, samples.size // 4, time.perf_counter() - start,
        )
        self._build_colormap()
        self._build_netindex()

    # ---- Learning -------------------------------------------------------

    def _contest(self, px: np.ndarray) -> int:
        """Find the biased winner for *px* and update frequencies/biases."""
        dist = np.abs(self._network - px).sum(axis=1)
        best = int(np.argmin(dist))
        best_biased = int(np.argmin(dist - self._bias))

        betafreq = BETA * self._freq
        self._freq -= betafreq
        self._bias += betafreq * GAMMA
        self._freq[best] += BETA
        self._bias[best] -= BETA_GAMMA
        return best_biased

    def _alter_single(self, alpha: float, i: int, px: np.ndarray) -> None:
        self._network[i] -= alpha * (self._network[i] - px)

    def _alter_neighbours(self, alpha: float, rad: int, i: int,
                          px: np.ndarray) -> None:
        lo = max(i - rad, -1)
        hi = min(i + rad, self.netsize)
        rad_sq = float(rad * rad)
        for idx in (np.arange(i + 1, hi), np.arange(i - 1, lo, -1)):
            if idx.size == 0:
                continue
            q = (np.abs(idx - i) - 1).astype(np.float64)
            weights = alpha * (rad_sq - q * q) / rad_sq
            self._network[idx] -= weights[:, None] * (self._network[idx] - px)

    def _learn(self, pixels: np.ndarray) -> None:
        lengthcount = len(pixels)
        samplepixels = lengthcount // self.samplefac
        if samplepixels == 0:
            return

        alphadec = 30 + (self.samplefac - 1) // 3
        n_cycles = min(self.netsize >> 1, MAX_CYCLES) or 1
        delta = max(samplepixels // n_cycles, 1)
        alpha = INIT_ALPHA
        bias_radius = (self.netsize >> 3) * RADIUS_BIAS
        rad = bias_radius >> RADIUS_BIAS_SHIFT
        if rad <= 1:
            rad = 0

        step = next((p for p in PRIMES if lengthcount % p), PRIMES[-1])
        pos = 0
        for i in range(1, samplepixels + 1):
            px = pixels[pos]
            j = self._contest(px)
            a = alpha / INIT_ALPHA
            self._alter_single(a, j, px)
            if rad:
                self._alter_neighbours(a, rad, j, px)

            pos = (pos + step) % lengthcount

            if i % delta == 0:
                alpha -= alpha // alphadec
                bias_radius -= bias_radius // RADIUS_DEC
                rad = bias_radius >> RADIUS_BIAS_SHIFT
                if rad <= 1:
                    rad = 0

    # ---- Lookup structures ---------------------------------------------

    def _build_colormap(self) -> None:
        colormap = np.clip(np.rint(self._network), 0, 255).astype(np.int64)
        # Sorted by green so lookups can start near the right entry.
        order = np.argsort(colormap[:, 1], kind="stable")
        self._colormap = colormap[order]
        self._entries = [tuple(int(c) for c in row) for row in self._colormap]

    def _build_netindex(self) -> None:
        greens = self._colormap[:, 1]
        start = np.searchsorted(greens, np.arange(256), side="left")
        self._netindex = np.minimum(start, self.netsize - 1).tolist()

    # ---- Public API -----------------------------------------------------

    def index_of(self, rgba) -> int:
        """Return the palette index closest to *rgba* (squared RGBA distance).

        The search walks outward from the first entry with a matching green
        value and stops in each direction once the green difference alone
        exceeds the best distance found.
        """
        r, g, b, a = (int(c) for c in rgba[:4])
        entries = self._entries
        n = self.netsize
        best_d = 1 << 30
        best = 0
        i = self._netindex[g]
        j = i - 1
        while i < n or j >= 0:
            if i < n:
                pr, pg, pb, pa = entries[i]
                d = (pg - g) ** 2
                if d >= best_d:
                    i = n
                else:
                    d += (pb - b) ** 2 + (pr - r) ** 2 + (pa - a) ** 2
                    if d < best_d:
                        best_d, best = d, i
                    i += 1
            if j >= 0:
                pr, pg, pb, pa = entries[j]
                d = (pg - g) ** 2
                if d >= best_d:
                    j = -1
                else:
                    d += (pb - b) ** 2 + (pr - r) ** 2 + (pa - a) ** 2
                    if d < best_d:
                        best_d, best = d, j
                    j -= 1
        return best

    def color_map_rgb(self) -> list[tuple[int, int, int]]:
        """The trained palette as RGB triples, in index order."""
        return [(r, g, b) for r, g, b, _ in self._entries]

    def color_map_rgba(self) -> list[tuple[int, int, int, int]]:
        return list(self._entries)
