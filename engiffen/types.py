"""
Core data structures used throughout the conversion engine.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image


class QuantizerKind(enum.Enum):
    """Supported palette quantization strategies."""
    NAIVE = "naive"
    NEUQUANT = "neuquant"


class TransparencyPolicy(enum.Enum):
    """Which transparent color's palette slot becomes the transparency index."""
    LAST = "last"                   # Last resolved in frame/raster order.
    FIRST = "first"                 # First resolved in frame/raster order.
    MOST_FREQUENT = "most_frequent" # Slot covering the most transparent pixels.


class ErrorPolicy(enum.Enum):
    """What to do when a single source image fails to decode."""
    ABORT = "abort"       # Re-raise the decode error.
    SKIP = "skip"         # Log it and continue with the remaining files.


@dataclass(frozen=True)
class Quantizer:
    """A color quantizing strategy.

    ``NAIVE`` counts color frequencies, keeps the 256 most frequent colors
    as the palette and reassigns the rest to their closest palette color
    in Lab space.  Fast for inputs with a limited color range, but bands
    badly otherwise.

    ``NEUQUANT`` trains a NeuQuant network on a subset of the pixels.  For
    a ``sample_rate`` of N only pixels on every Nth column of every Nth
    row are used for training, so 2 trains on a quarter of all pixels.
    """
    kind: QuantizerKind = QuantizerKind.NEUQUANT
    sample_rate: int = 1

    def __post_init__(self) -> None:
        if self.sample_rate < 1:
            raise ValueError(
                f"sample_rate must be a positive integer, got {self.sample_rate}"
            )

    @classmethod
    def naive(cls) -> Quantizer:
        return cls(QuantizerKind.NAIVE)

    @classmethod
    def neuquant(cls, sample_rate: int = 1) -> Quantizer:
        return cls(QuantizerKind.NEUQUANT, sample_rate)


@dataclass(frozen=True)
class ConversionConfig:
    """Tuning knobs for a single conversion."""
    workers: int = 0              # 0 = auto-detect from CPU count, 1 = serial
    transparency_policy: TransparencyPolicy = TransparencyPolicy.LAST

    def resolved_workers(self) -> int:
        """Determine how many parallel workers to use."""
        if self.workers > 0:
            return self.workers
        cpu = os.cpu_count() or 2
        return max(1, cpu - 1)


@dataclass(frozen=True, eq=False)
class Frame:
    """An immutable RGBA pixel grid, 8 bits per channel.

    ``pixels`` has shape ``(height, width, 4)`` and is read-only.  ``path``
    is set when the frame was loaded from disk.
    """
    pixels: np.ndarray
    path: Path | None = None

    def __post_init__(self) -> None:
        arr = np.array(self.pixels, dtype=np.uint8, copy=True)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(
                f"Frame pixels must have shape (height, width, 4), got {arr.shape}"
            )
        arr.setflags(write=False)
        object.__setattr__(self, "pixels", arr)

    @classmethod
    def from_image(cls, img: Image.Image, path: Path | None = None) -> Frame:
        """Build a frame from a Pillow image of any mode."""
        return cls(np.asarray(img.convert("RGBA")), path=path)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        """``(width, height)``, matching Pillow's convention."""
        return (self.width, self.height)

    def __repr__(self) -> str:
        return f"Frame(path={self.path!r}, size={self.width}x{self.height})"
