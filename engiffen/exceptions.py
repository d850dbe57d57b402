"""
Custom exception hierarchy for engiffen.

All recoverable engiffen exceptions inherit from EngiffenError so callers
can catch the entire family with a single except clause.
"""

from __future__ import annotations

from pathlib import Path


class EngiffenError(Exception):
    """Base exception for all engiffen errors."""


class NoImagesError(EngiffenError):
    """Raised when a conversion is started without any frames."""

    def __init__(self, message: str = "No frames sent for engiffening") -> None:
        super().__init__(message)


class DimensionMismatchError(EngiffenError):
    """Raised when a frame's size differs from the first frame's size."""

    def __init__(self, expected: tuple[int, int], actual: tuple[int, int]) -> None:
        super().__init__(
            f"Frames don't have the same dimensions: "
            f"expected {expected[0]}x{expected[1]}, got {actual[0]}x{actual[1]}"
        )
        self.expected = expected
        self.actual = actual


class DecodeError(EngiffenError):
    """Raised when a source image cannot be read or decoded."""

    def __init__(self, path: str | Path, reason: str = "") -> None:
        message = f"Image load error: {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.path = Path(path)


class WriteError(EngiffenError):
    """Raised when the output sink rejects a write."""


class RangeError(EngiffenError, ValueError):
    """Raised when a start/end image range cannot be resolved."""


class PaletteLookupError(AssertionError):
    """A color could not be resolved against a palette.

    This is an internal invariant violation, not part of the recoverable
    EngiffenError family.
    """
