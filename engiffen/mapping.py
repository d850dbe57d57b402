"""
Pixel-to-palette mapping.

Every pixel of every frame is resolved to a palette index.  Work is split
in two phases:

1. Per frame (independent, threaded): pack pixels into color keys and
   find each frame's distinct colors in order of first appearance.
2. One sequential pass in frame order resolves each distinct color through
   a cache shared by all frames, so an expensive nearest-neighbour search
   runs at most once per color per conversion.

Because phase 2 walks frames and pixels in a fixed order, the resolution
order of colors, and therefore the transparency index, does not depend on
the worker count.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from .palette import Palette
from .sampling import pack_colors, unpack_color
from .types import ConversionConfig, Frame, TransparencyPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameColors:
    """Distinct colors of one frame.

    ``keys`` and ``counts`` are in first-appearance (raster) order;
    ``inverse`` gives, for each pixel, its position in ``keys``.
    """
    keys: np.ndarray
    counts: np.ndarray
    inverse: np.ndarray


@dataclass
class TransparentCandidate:
    """A palette slot that a fully transparent source color resolved to."""
    index: int
    pixels: int = 0


@dataclass(frozen=True)
class MappingResult:
    images: tuple[bytes, ...]
    transparency: int | None
    candidates: tuple[int, ...] = field(default=())


def frame_colors(frame: Frame) -> FrameColors:
    """Distinct colors of *frame* with per-pixel back-references."""
    keys = pack_colors(frame.pixels)
    uniq, first, inverse, counts = np.unique(
        keys, return_index=True, return_inverse=True, return_counts=True,
    )
    order = np.argsort(first, kind="stable")
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    return FrameColors(
        keys=uniq[order],
        counts=counts[order],
        inverse=rank[inverse.reshape(-1)],
    )


def choose_transparency(candidates: Sequence[TransparentCandidate],
                        policy: TransparencyPolicy = TransparencyPolicy.LAST) -> int | None:
    """Fold transparent-color candidates (in resolution order) to one index."""
    if not candidates:
        return None
    if policy is TransparencyPolicy.FIRST:
        return candidates[0].index
    if policy is TransparencyPolicy.LAST:
        return candidates[-1].index

    totals: dict[int, int] = {}
    for cand in candidates:
        totals[cand.index] = totals.get(cand.index, 0) + cand.pixels
    # max() keeps the first of equal totals, i.e. the earliest candidate.
    return max(totals, key=totals.__getitem__)


def map_frames(frames: Sequence[Frame], palette: Palette,
               config: ConversionConfig = ConversionConfig(),
               track_transparency: bool = True) -> MappingResult:
    """Resolve every pixel of every frame to a palette index.

    With *track_transparency* off, transparent colors are mapped like any
    other and the result carries no transparency index.
    """
    start = time.perf_counter()
    workers = config.resolved_workers()
    if workers > 1 and len(frames) > 4:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            per_frame = list(pool.map(frame_colors, frames))
    else:
        per_frame = [frame_colors(f) for f in frames]

    cache: dict[int, int] = {}
    transparent: dict[int, TransparentCandidate] = {}
    images: list[bytes] = []

    for colors in per_frame:
        lut = np.empty(len(colors.keys), dtype=np.uint8)
        for pos, (key, count) in enumerate(zip(colors.keys.tolist(),
                                               colors.counts.tolist())):
            index = cache.get(key)
            if index is None:
                rgba = unpack_color(key)
                index = palette.index_of(rgba)
                cache[key] = index
                if track_transparency and rgba[3] == 0:
                    transparent[key] = TransparentCandidate(index)
            if key in transparent:
                transparent[key].pixels += count
            lut[pos] = index
        images.append(lut[colors.inverse].tobytes())

    candidates = list(transparent.values())
    distinct = sorted({c.index for c in candidates})
    if len(distinct) > 1:
        logger.warning(
            "Transparent pixels resolved to %d different palette slots %s; "
            "keeping one (%s policy).",
            len(distinct), distinct, config.transparency_policy.value,
        )
    transparency = choose_transparency(candidates, config.transparency_policy)

    logger.debug(
        "Mapped %d frames (%d distinct colors) in %.3f s.",
        len(frames), len(cache), time.perf_counter() - start,
    )
    return MappingResult(
        images=tuple(images),
        transparency=transparency,
        candidates=tuple(c.index for c in candidates),
    )
