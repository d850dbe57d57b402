"""
Palette construction.

Two interchangeable strategies build the shared color table:

**Naive** -- frequency ranking with perceptual merging:
    Count exact colors over every frame, keep the 256 most frequent as the
    palette and send each remaining color to the palette entry nearest to
    it in CIE Lab space.

**NeuQuant** -- statistical training:
    Train a NeuQuant network on a (optionally strided) sample of the
    normalized pixels and use its 256 neurons as the palette.

Either way the result is a :class:`Palette` whose ``index_of`` resolves
any exact RGBA color of the input to a palette index.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np
from skimage.color import rgb2lab

from .exceptions import NoImagesError, PaletteLookupError
from .neuquant import NEUQUANT_SAMPLE_FACTOR, NETSIZE, NeuQuant
from .sampling import pack_colors, sample_pixels, unpack_colors
from .types import ConversionConfig, Frame, Quantizer, QuantizerKind

logger = logging.getLogger(__name__)

MAX_COLORS = 256


# ---------------------------------------------------------------------------
# Palette value
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Palette:
    """An immutable color table of at most 256 RGB entries.

    ``lookup`` maps an RGBA tuple to a palette index; it is supplied by the
    strategy that built the palette.
    """
    colors: tuple[tuple[int, int, int], ...]
    lookup: Callable[[tuple[int, int, int, int]], int]

    def __post_init__(self) -> None:
        if len(self.colors) > MAX_COLORS:
            raise ValueError(
                f"A palette holds at most {MAX_COLORS} colors, got {len(self.colors)}"
            )

    def __len__(self) -> int:
        return len(self.colors)

    def index_of(self, rgba) -> int:
        """Return the palette index for an exact RGBA color."""
        key = tuple(int(c) for c in rgba[:4])
        try:
            index = self.lookup(key)
        except KeyError:
            raise PaletteLookupError(
                f"Color {key} is missing from the palette index map."
            ) from None
        if not 0 <= index < len(self.colors):
            raise PaletteLookupError(
                f"Color {key} resolved to index {index}, outside a "
                f"{len(self.colors)}-entry palette."
            )
        return index

    def to_bytes(self) -> bytes:
        """Flat ``RGBRGB...`` color table."""
        return bytes(c for rgb in self.colors for c in rgb)


# ---------------------------------------------------------------------------
# Frequency counting
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ColorCounts:
    """Exact-color frequency table, ordered by first appearance.

    ``keys`` are packed RGBA values (see :func:`pack_colors`).
    """
    keys: np.ndarray
    counts: np.ndarray

    def __len__(self) -> int:
        return len(self.keys)


def count_colors(pixels: np.ndarray) -> ColorCounts:
    """Count the exact colors of one ``(h, w, 4)`` pixel array."""
    keys = pack_colors(pixels)
    uniq, first, counts = np.unique(keys, return_index=True, return_counts=True)
    order = np.argsort(first, kind="stable")
    return ColorCounts(keys=uniq[order], counts=counts[order].astype(np.int64))


def merge_counts(tables: Sequence[ColorCounts]) -> ColorCounts:
    """Sum per-color counts across tables.

    Keys keep the order in which they first appear when the tables are
    read in sequence.
    """
    if not tables:
        return ColorCounts(np.empty(0, dtype="<u4"), np.empty(0, dtype=np.int64))
    keys = np.concatenate([t.keys for t in tables])
    counts = np.concatenate([t.counts for t in tables])
    uniq, first, inverse = np.unique(keys, return_index=True, return_inverse=True)
    totals = np.zeros(len(uniq), dtype=np.int64)
    np.add.at(totals, inverse.reshape(-1), counts)
    order = np.argsort(first, kind="stable")
    return ColorCounts(keys=uniq[order], counts=totals[order])


def _count_frame_bytes(raw: bytes, shape: tuple[int, int, int]) -> tuple[np.ndarray, np.ndarray]:
    """Process-pool worker: count colors of a frame shipped as raw bytes."""
    pixels = np.frombuffer(raw, dtype=np.uint8).reshape(shape)
    table = count_colors(pixels)
    return table.keys, table.counts


def count_frame_colors(frames: Sequence[Frame],
                       config: ConversionConfig = ConversionConfig()) -> ColorCounts:
    """Count colors of every frame, in parallel when worthwhile, then merge."""
    workers = config.resolved_workers()
    use_parallel = workers > 1 and len(frames) > 4
    if not use_parallel:
        return merge_counts([count_colors(f.pixels) for f in frames])

    tables: dict[int, ColorCounts] = {}
    with ProcessPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(_count_frame_bytes, f.pixels.tobytes(), f.pixels.shape): idx
            for idx, f in enumerate(frames)
        }
        for future in as_completed(futures):
            keys, counts = future.result()
            tables[futures[future]] = ColorCounts(keys=keys, counts=counts)
    return merge_counts([tables[i] for i in range(len(frames))])


def rank_colors(table: ColorCounts) -> np.ndarray:
    """Keys sorted by descending count; ties keep first-appearance order."""
    order = np.argsort(-table.counts, kind="stable")
    return table.keys[order]


# ---------------------------------------------------------------------------
# Lab distance
# ---------------------------------------------------------------------------

def rgb_to_lab_array(colors) -> np.ndarray:
    """Convert ``(n, 3)`` 8-bit RGB colors to CIE Lab (D65)."""
    rgb = np.asarray(colors, dtype=np.float64).reshape(-1, 3) / 255.0
    return rgb2lab(rgb.reshape(-1, 1, 3)).reshape(-1, 3)


def nearest_lab_indices(lab: np.ndarray, palette_lab: np.ndarray,
                        chunk: int = 2048) -> np.ndarray:
    """Index of the palette entry with minimum squared Lab distance.

    Equal distances resolve to the lowest palette index.
    """
    out = np.empty(len(lab), dtype=np.intp)
    for start in range(0, len(lab), chunk):
        block = lab[start:start + chunk]
        dist = ((block[:, None, :] - palette_lab[None, :, :]) ** 2).sum(axis=2)
        out[start:start + chunk] = np.argmin(dist, axis=1)
    return out


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def naive_palette(frames: Sequence[Frame],
                  config: ConversionConfig = ConversionConfig()) -> Palette:
    """Frequency-ranked palette with Lab merging of the overflow colors."""
    start = time.perf_counter()
    table = count_frame_colors(frames, config)
    logger.debug(
        "Naive: counted %d distinct colors in %.3f s.",
        len(table), time.perf_counter() - start,
    )

    ranked = rank_colors(table)
    kept, rest = ranked[:MAX_COLORS], ranked[MAX_COLORS:]
    kept_rgba = unpack_colors(kept)

    index_map = dict(zip(kept.tolist(), range(len(kept))))
    if len(rest):
        palette_lab = rgb_to_lab_array(kept_rgba[:, :3])
        rest_lab = rgb_to_lab_array(unpack_colors(rest)[:, :3])
        closest = nearest_lab_indices(rest_lab, palette_lab)
        index_map.update(zip(rest.tolist(), closest.tolist()))
        logger.info(
            "Naive: merged %d low-frequency colors into a %d-color palette.",
            len(rest), len(kept),
        )

    colors = tuple((int(r), int(g), int(b)) for r, g, b, _ in kept_rgba)

    def lookup(rgba: tuple[int, int, int, int]) -> int:
        r, g, b, a = rgba
        return index_map[r | g << 8 | b << 16 | a << 24]

    return Palette(colors=colors, lookup=lookup)


def neuquant_palette(frames: Sequence[Frame], sample_rate: int = 1) -> Palette:
    """Palette from a NeuQuant network trained on strided, normalized samples."""
    samples = sample_pixels(frames, sample_rate)
    network = NeuQuant(samples, samplefac=NEUQUANT_SAMPLE_FACTOR, colors=NETSIZE)
    return Palette(colors=tuple(network.color_map_rgb()), lookup=network.index_of)


def build_palette(frames: Sequence[Frame], quantizer: Quantizer,
                  config: ConversionConfig | None = None) -> Palette:
    """Build the shared palette for *frames* with the selected strategy."""
    if not frames:
        raise NoImagesError()
    config = config or ConversionConfig()
    if quantizer.kind is QuantizerKind.NAIVE:
        return naive_palette(frames, config)
    return neuquant_palette(frames, quantizer.sample_rate)
