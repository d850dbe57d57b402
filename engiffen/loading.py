"""
Source image loading.

Decoding is delegated to Pillow; every image is converted to RGBA so the
rest of the pipeline sees a single pixel format.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Union

from PIL import Image, UnidentifiedImageError

from .exceptions import DecodeError, RangeError
from .types import ErrorPolicy, Frame

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def load_image(path: PathLike) -> Frame:
    """Load one image from *path* as a :class:`Frame`.

    Raises
    ------
    DecodeError
        If the file cannot be read or decoded.
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            return Frame.from_image(img, path=path)
    except (OSError, UnidentifiedImageError, ValueError) as exc:
        raise DecodeError(path, str(exc)) from exc


def load_images(
    paths: Iterable[PathLike],
    policy: ErrorPolicy = ErrorPolicy.SKIP,
    on_loaded: Callable[[Path], None] | None = None,
) -> list[Frame]:
    """Load images in order.

    With ``ErrorPolicy.SKIP`` files that fail to decode are logged and left
    out, so the result may be shorter than *paths* (or empty).  With
    ``ErrorPolicy.ABORT`` the first failure is re-raised.
    """
    frames: list[Frame] = []
    for p in paths:
        try:
            frames.append(load_image(p))
        except DecodeError as exc:
            if policy is ErrorPolicy.ABORT:
                raise
            logger.warning("Skipping %s: %s", p, exc)
        if on_loaded is not None:
            on_loaded(Path(p))
    return frames


def split_path(path: PathLike) -> tuple[Path, str]:
    """Split *path* into ``(directory, filename)``; a bare name lives in ``.``."""
    p = Path(path)
    if not p.name:
        raise RangeError(f"Invalid filename {str(path)!r}")
    parent = p.parent
    return parent, p.name


def expand_range(start: PathLike, end: PathLike) -> list[Path]:
    """All files between *start* and *end* (inclusive, by sorted name).

    Both ends must be in the same directory.
    """
    start_dir, start_name = split_path(start)
    end_dir, end_name = split_path(end)
    if start_dir != end_dir:
        raise RangeError("start and end files are from different directories")
    if start_name > end_name:
        start_name, end_name = end_name, start_name
    try:
        names = sorted(
            entry.name for entry in os.scandir(start_dir) if entry.is_file()
        )
    except OSError as exc:
        raise RangeError(f"Cannot list {start_dir}: {exc}") from exc
    return [start_dir / n for n in names if start_name <= n <= end_name]


def read_path_list(lines: Iterable[str]) -> list[str]:
    """Non-blank, stripped lines (used for paths piped on stdin)."""
    return [line.strip() for line in lines if line.strip()]
