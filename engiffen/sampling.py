"""
Pixel sampling for palette training.

Produces the flat RGBA byte sequence a quantizer trains on.  Transparent
pixels collapse to a single transparent-black sentinel and every other
pixel becomes fully opaque, since a GIF only carries one binary
transparency index rather than an alpha channel.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .types import Frame

logger = logging.getLogger(__name__)

TRANSPARENT_BLACK = (0, 0, 0, 0)


def normalize_pixels(rgba: np.ndarray) -> np.ndarray:
    """Return a copy of *rgba* (``(..., 4)`` uint8) with alpha binarized.

    alpha == 0 becomes ``(0, 0, 0, 0)``; anything else becomes
    ``(R, G, B, 255)``.
    """
    out = np.array(rgba, dtype=np.uint8, copy=True)
    transparent = out[..., 3] == 0
    out[..., 3] = 255
    out[transparent] = TRANSPARENT_BLACK
    return out


def pack_colors(rgba: np.ndarray) -> np.ndarray:
    """Pack ``(..., 4)`` uint8 colors into flat little-endian uint32 keys.

    Two keys are equal exactly when the RGBA bytes are equal.
    """
    flat = np.ascontiguousarray(rgba, dtype=np.uint8).reshape(-1, 4)
    return flat.view("<u4").reshape(-1)


def unpack_color(key: int) -> tuple[int, int, int, int]:
    """Inverse of :func:`pack_colors` for a single key."""
    key = int(key)
    return (key & 0xFF, (key >> 8) & 0xFF, (key >> 16) & 0xFF, (key >> 24) & 0xFF)


def unpack_colors(keys: np.ndarray) -> np.ndarray:
    """Inverse of :func:`pack_colors`; returns an ``(n, 4)`` uint8 array."""
    return np.ascontiguousarray(keys, dtype="<u4").view(np.uint8).reshape(-1, 4)


def sample_frame(frame: Frame, sample_rate: int = 1) -> np.ndarray:
    """Normalized pixels of one frame on the ``sample_rate`` grid, raster order."""
    pixels = frame.pixels
    if sample_rate > 1:
        pixels = pixels[::sample_rate, ::sample_rate]
    return normalize_pixels(pixels).reshape(-1)


def sample_pixels(frames: Sequence[Frame], sample_rate: int = 1) -> np.ndarray:
    """Concatenate the normalized samples of every frame.

    For ``sample_rate`` 1 every pixel is included.  For N > 1 only pixels
    whose row and column are both multiples of N are kept.  The result is
    a flat uint8 array whose length is a multiple of 4.
    """
    if not frames:
        return np.empty(0, dtype=np.uint8)
    samples = np.concatenate([sample_frame(f, sample_rate) for f in frames])
    logger.debug(
        "Sampled %d pixels from %d frames (sample rate %d).",
        samples.size // 4, len(frames), sample_rate,
    )
    return samples
