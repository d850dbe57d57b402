"""
Animation assembly.

Validates the input frames, runs palette construction and pixel mapping,
and packages the result as an :class:`Animation`.  Serialization of the
GIF bitstream itself is delegated to Pillow's GIF writer.
"""

from __future__ import annotations

import io
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Sequence, Union

from PIL import Image

from .exceptions import DimensionMismatchError, NoImagesError, WriteError
from .mapping import map_frames
from .palette import build_palette
from .types import ConversionConfig, Frame, Quantizer, QuantizerKind

logger = logging.getLogger(__name__)

Sink = Union[str, os.PathLike, BinaryIO]


@dataclass(frozen=True)
class Animation:
    """A palettized animated image, ready to be written as a GIF.

    ``palette`` is the flat ``RGBRGB...`` color table, ``images`` holds one
    index byte per pixel for each frame, ``delay`` is the per-frame delay
    in milliseconds.
    """
    palette: bytes
    transparency: int | None
    width: int
    height: int
    images: tuple[bytes, ...]
    delay: int

    def __repr__(self) -> str:
        return (
            f"Animation(palette=<{len(self.palette) // 3} colors>, "
            f"transparency={self.transparency!r}, width={self.width}, "
            f"height={self.height}, images=<{len(self.images)} frames>, "
            f"delay={self.delay})"
        )

    @property
    def delay_centiseconds(self) -> int:
        """Delay in the GIF's native hundredths of a second."""
        return self.delay // 10

    def colors(self) -> list[tuple[int, int, int]]:
        p = self.palette
        return [tuple(p[i:i + 3]) for i in range(0, len(p), 3)]

    def frame_images(self) -> Iterator[Image.Image]:
        """Yield each frame as a P-mode Pillow image carrying the palette."""
        for data in self.images:
            img = Image.frombytes("P", (self.width, self.height), data)
            img.putpalette(self.palette)
            if self.transparency is not None:
                img.info["transparency"] = self.transparency
            yield img

    def write(self, sink: Sink) -> None:
        """Write the animation as an infinitely looping GIF.

        *sink* is a filesystem path or a writable binary file object.
        Pillow merges consecutive identical frames into one, extending its
        duration, so the file can hold fewer frames than ``images``.

        Raises
        ------
        WriteError
            If there are no frames, or the sink rejects the write.
        """
        if not self.images:
            raise WriteError("Animation has no frames to write")
        frames = list(self.frame_images())
        first, rest = frames[0], frames[1:]
        options = dict(
            format="GIF",
            save_all=True,
            append_images=rest,
            duration=self.delay_centiseconds * 10,
            loop=0,                   # 0 = infinite
            optimize=False,           # keep palette indices as assigned
            disposal=2,               # restore to background
        )
        if self.transparency is not None:
            options["transparency"] = self.transparency

        try:
            if isinstance(sink, (str, os.PathLike)):
                first.save(str(sink), **options)
            else:
                first.save(sink, **options)
        except OSError as exc:
            raise WriteError(f"Image write error: {exc}") from exc
        logger.info("Wrote %d frames (%dx%d).", len(frames), self.width, self.height)

    def save(self, path: str | Path) -> Path:
        """Write to *path* and return it."""
        self.write(path)
        return Path(path)

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.write(buf)
        return buf.getvalue()


def check_dimensions(frames: Sequence[Frame]) -> tuple[int, int]:
    """Return the shared ``(width, height)`` of *frames*.

    Raises
    ------
    NoImagesError
        If *frames* is empty.
    DimensionMismatchError
        For the first frame whose size differs from the first frame's.
    """
    if not frames:
        raise NoImagesError()
    expected = frames[0].size
    for frame in frames:
        if frame.size != expected:
            raise DimensionMismatchError(expected, frame.size)
    return expected


def engiffen(frames: Sequence[Frame], fps: int, quantizer: Quantizer,
             config: ConversionConfig | None = None) -> Animation:
    """Convert a sequence of frames into an :class:`Animation`.

    Parameters
    ----------
    frames : sequence of Frame
        Frames of identical size, in display order.
    fps : int
        Frames per second; each frame is shown for ``1000 // fps`` ms.
    quantizer : Quantizer
        Palette strategy, ``Quantizer.naive()`` or ``Quantizer.neuquant(n)``.
    config : ConversionConfig, optional
        Worker count and transparency policy.

    Raises
    ------
    NoImagesError
        If *frames* is empty.
    DimensionMismatchError
        If any frame's size differs from the first frame's.
    """
    width, height = check_dimensions(frames)
    if isinstance(fps, bool) or not isinstance(fps, int) or fps < 1:
        raise ValueError(f"fps must be a positive integer, got {fps!r}")
    config = config or ConversionConfig()

    logger.info(
        "Engiffening %d frames (%dx%d) with the %s quantizer.",
        len(frames), width, height, quantizer.kind.value,
    )
    start = time.perf_counter()
    palette = build_palette(frames, quantizer, config)
    logger.info(
        "Computed a %d-color palette in %.3f s.",
        len(palette), time.perf_counter() - start,
    )

    start = time.perf_counter()
    # The naive palette treats alpha as part of color identity only.
    mapped = map_frames(
        frames, palette, config,
        track_transparency=quantizer.kind is not QuantizerKind.NAIVE,
    )
    logger.info("Mapped pixels to palette in %.3f s.", time.perf_counter() - start)

    return Animation(
        palette=palette.to_bytes(),
        transparency=mapped.transparency,
        width=width,
        height=height,
        images=mapped.images,
        delay=1000 // fps,
    )


convert = engiffen
