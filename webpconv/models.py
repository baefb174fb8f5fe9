from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping
import os

from .errors import InputError

DEFAULT_QUALITY = 75
DEFAULT_COMPRESSION = 6
OUTPUT_SUFFIX = ".webp"


@dataclass(frozen=True)
class Dimension:
    kind: str = "auto"
    value: int | None = None
    explicit: bool = False

    @classmethod
    def pixels(cls, value: int) -> Dimension:
        return cls("pixels", value, True)

    @classmethod
    def parse(cls, text: str) -> Dimension | None:
        lowered = text.strip().lower()
        if lowered in {"auto", "source"}:
            return cls(lowered, None, True)
        try:
            value = int(lowered)
        except ValueError:
            return None
        if value <= 0:
            return None
        return cls.pixels(value)

    @property
    def is_set(self) -> bool:
        return self.explicit


UNSET = Dimension()


@dataclass(frozen=True)
class ConvertOptions:
    input_path: Path
    extensions: frozenset[str] | None = None
    output_dir: Path | None = None
    lossless: bool = False
    compression: int | None = None
    quality: int | None = None
    scale: float | None = None
    width: Dimension = UNSET
    height: Dimension = UNSET
    crop: bool = False
    center_h: bool = False
    center_v: bool = False
    center: bool = False
    verbose: bool = False
    extra: Mapping[str, str] = field(default_factory=dict)

    @property
    def effective_quality(self) -> int:
        return DEFAULT_QUALITY if self.quality is None else self.quality

    @property
    def effective_compression(self) -> int:
        return DEFAULT_COMPRESSION if self.compression is None else self.compression

    @property
    def resizes(self) -> bool:
        return self.width.is_set or self.height.is_set


@dataclass(frozen=True)
class ImageMetadata:
    orientation: int | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> ImageMetadata:
        orientation = record.get("Orientation")
        # exiftool -n reports numbers; anything else is not an orientation code
        if isinstance(orientation, bool) or not isinstance(orientation, int):
            orientation = None
        return cls(orientation, dict(record))


@dataclass(frozen=True)
class ConvertJob:
    source: Path
    output: Path


@dataclass(frozen=True)
class ConvertResult:
    source: Path
    output: Path
    success: bool
    message: str
    filters: tuple[str, ...] = ()
    metadata_available: bool = False


def normalize_extension(ext: str) -> str:
    return ext.strip().lower().lstrip(".")


def resolve_input_files(options: ConvertOptions) -> list[Path]:
    root = Path(os.path.abspath(options.input_path))
    try:
        is_dir = root.is_dir()
        if not is_dir:
            root.stat()
    except OSError:
        raise InputError(f"Cannot read input directory {{{root}}}") from None
    if not is_dir:
        return [root]
    try:
        names = os.listdir(root)
    except OSError:
        raise InputError(f"Could not read files from directory {{{root}}}.") from None
    return iter_image_files(root, names, options.extensions)


def iter_image_files(root: Path, names: Iterable[str], formats: Iterable[str] | None) -> list[Path]:
    patterns = None if formats is None else {normalize_extension(fmt) for fmt in formats}
    files = []
    for name in names:
        path = root / name
        if path.is_dir():
            continue
        if patterns is None or normalize_extension(path.suffix) in patterns:
            files.append(path)
    return files


def build_output_path(source: Path, output_dir: Path | None = None) -> Path:
    parent = source.parent if output_dir is None else output_dir
    return parent / f"{source.stem}{OUTPUT_SUFFIX}"


def build_jobs(files: Iterable[Path], options: ConvertOptions) -> list[ConvertJob]:
    return [ConvertJob(source, build_output_path(source, options.output_dir)) for source in files]
