from __future__ import annotations

from pathlib import Path

import pytest

from webpconv.models import ImageMetadata


class FakeReader:
    name = "fake-exif"

    def __init__(self, orientations: dict[str, int | None] | None = None, failing: set[str] | None = None) -> None:
        self.orientations = orientations or {}
        self.failing = failing or set()
        self.calls: list[Path] = []

    def read(self, source: Path) -> ImageMetadata | None:
        self.calls.append(source)
        if source.name in self.failing:
            return None
        orientation = self.orientations.get(source.name)
        record = {} if orientation is None else {"Orientation": orientation}
        return ImageMetadata.from_record(record)


class FakeTranscoder:
    name = "fake-ffmpeg"
    executable = "ffmpeg"

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.commands: list[list[str]] = []
        self.verbose: list[bool] = []

    def transcode(self, command: list[str], verbose: bool) -> int:
        self.commands.append(command)
        self.verbose.append(verbose)
        source = Path(command[command.index("-i") + 1])
        return 1 if source.name in self.failing else 0


@pytest.fixture
def reader() -> FakeReader:
    return FakeReader()


@pytest.fixture
def transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    root = tmp_path / "images"
    root.mkdir()
    for name in ["a.jpg", "b.PNG", "c.gif", "notes.txt"]:
        (root / name).write_bytes(b"data")
    nested = root / "nested"
    nested.mkdir()
    (nested / "d.jpg").write_bytes(b"data")
    return root
