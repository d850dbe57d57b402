"""
Tests for source image loading and range expansion.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from engiffen.exceptions import DecodeError, RangeError
from engiffen.loading import (
    expand_range,
    load_image,
    load_images,
    read_path_list,
    split_path,
)
from engiffen.types import ErrorPolicy


def _write_image(path: Path, mode: str = "RGB", color=(10, 20, 30)) -> Path:
    Image.new(mode, (6, 4), color).save(str(path))
    return path


class TestLoadImage:
    def test_rgb_file_becomes_rgba_frame(self, tmp_dir):
        path = _write_image(tmp_dir / "a.png")
        frame = load_image(path)
        assert frame.size == (6, 4)
        assert frame.path == path
        assert tuple(frame.pixels[0, 0]) == (10, 20, 30, 255)

    def test_alpha_preserved(self, tmp_dir):
        path = _write_image(tmp_dir / "a.png", "RGBA", (1, 2, 3, 0))
        assert load_image(path).pixels[0, 0, 3] == 0

    def test_missing_file(self, tmp_dir):
        with pytest.raises(DecodeError):
            load_image(tmp_dir / "nope.png")

    def test_not_an_image(self, tmp_dir):
        path = tmp_dir / "notes.png"
        path.write_text("definitely not a png")
        with pytest.raises(DecodeError) as excinfo:
            load_image(path)
        assert excinfo.value.path == path


class TestLoadImages:
    def test_skip_policy_drops_failures(self, tmp_dir):
        good = [_write_image(tmp_dir / f"f{i}.bmp") for i in range(2)]
        frames = load_images([good[0], tmp_dir / "missing.bmp", good[1]])
        assert [f.path for f in frames] == good

    def test_abort_policy_raises(self, tmp_dir):
        good = _write_image(tmp_dir / "f0.bmp")
        with pytest.raises(DecodeError):
            load_images([good, tmp_dir / "missing.bmp"], ErrorPolicy.ABORT)

    def test_callback_sees_every_path(self, tmp_dir):
        seen = []
        good = _write_image(tmp_dir / "f0.bmp")
        load_images([good, tmp_dir / "missing.bmp"], on_loaded=seen.append)
        assert seen == [good, tmp_dir / "missing.bmp"]


class TestRanges:
    def test_split_bare_name(self):
        assert split_path("thing001.jpg") == (Path("."), "thing001.jpg")

    def test_split_remote_directory(self):
        assert split_path("../dir/thing001.jpg") == (Path("../dir"), "thing001.jpg")

    def test_different_directories(self):
        with pytest.raises(RangeError, match="different directories"):
            expand_range("./thing001.jpg", "../thing010.jpg")

    def test_inclusive_sorted_range(self, tmp_dir):
        for name in ("f01.png", "f02.png", "f03.png", "f04.png", "other.txt"):
            (tmp_dir / name).write_bytes(b"")
        paths = expand_range(tmp_dir / "f02.png", tmp_dir / "f04.png")
        assert [p.name for p in paths] == ["f02.png", "f03.png", "f04.png"]

    def test_reversed_range(self, tmp_dir):
        for name in ("f01.png", "f02.png"):
            (tmp_dir / name).write_bytes(b"")
        paths = expand_range(tmp_dir / "f02.png", tmp_dir / "f01.png")
        assert [p.name for p in paths] == ["f01.png", "f02.png"]


def test_read_path_list_strips_blank_lines():
    assert read_path_list(["a.png\n", "\n", "  b.png  \n"]) == ["a.png", "b.png"]
