"""
Shared fixtures for the engiffen test suite.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from engiffen.types import Frame


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory(prefix="engiffen_test_") as d:
        yield Path(d)


@pytest.fixture
def gradient_frames():
    """Five 16x12 frames of a shifting red/green gradient (well over 256 colors)."""
    frames = []
    ys, xs = np.mgrid[0:12, 0:16]
    for i in range(5):
        arr = np.zeros((12, 16, 4), dtype=np.uint8)
        arr[..., 0] = (xs * 16 + i * 3) % 256
        arr[..., 1] = (ys * 20 + i * 7) % 256
        arr[..., 2] = (xs * ys + i) % 256
        arr[..., 3] = 255
        frames.append(Frame(arr))
    return frames


@pytest.fixture
def sample_frame_sequence():
    """A sequence of 6 frames with a black dot moving across white."""
    frames = []
    for i in range(6):
        img = Image.new("RGBA", (20, 10), "white")
        cx = 2 + i * 3
        for x in range(cx, cx + 2):
            for y in range(4, 6):
                img.putpixel((x, y), (0, 0, 0, 255))
        frames.append(Frame.from_image(img))
    return frames
