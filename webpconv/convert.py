from __future__ import annotations

from pathlib import Path
import json
import os
import shutil
import subprocess
import sys
from threading import Lock
from typing import Iterable, Protocol

from PIL import Image, UnidentifiedImageError

from .console import print_error, print_info, print_warning
from .filters import build_filter_plan, join_filters
from .models import ConvertJob, ConvertOptions, ConvertResult, ImageMetadata, build_jobs

WINDOWS_CREATIONFLAGS = (
    getattr(subprocess, "CREATE_NO_WINDOW", 0) if sys.platform.startswith("win") else 0
)
EXIF_ORIENTATION_TAG = 274
TOOL_ENV_OVERRIDES = {
    "exiftool": "WEBPCONV_EXIFTOOL",
    "ffmpeg": "WEBPCONV_FFMPEG",
}
_TOOL_CACHE: dict[tuple[str, ...], str | None] = {}
_TOOL_LOCK = Lock()


class MetadataReader(Protocol):
    name: str

    def read(self, source: Path) -> ImageMetadata | None:
        ...


class Transcoder(Protocol):
    name: str
    executable: str

    def transcode(self, command: list[str], verbose: bool) -> int:
        ...


class ExiftoolReader:
    name = "exiftool"

    def __init__(self, executable: str = "exiftool") -> None:
        self.executable = executable

    def build_command(self, source: Path) -> list[str]:
        return [self.executable, "-json", "-n", str(source)]

    def read(self, source: Path) -> ImageMetadata | None:
        command = self.build_command(source)
        print_info(f"{{{self.name}}} > {' '.join(command)}")
        try:
            result = run_command(command)
        except OSError:
            return None
        if result.returncode != 0:
            return None
        try:
            records = json.loads(result.stdout)
        except ValueError:
            return None
        if not isinstance(records, list) or not records or not isinstance(records[0], dict):
            return None
        return ImageMetadata.from_record(records[0])


class PillowReader:
    name = "Pillow"

    def read(self, source: Path) -> ImageMetadata | None:
        try:
            with Image.open(source) as image:
                exif = image.getexif()
        except (OSError, UnidentifiedImageError, Image.DecompressionBombError, ValueError, SyntaxError):
            return None
        record = {}
        orientation = exif.get(EXIF_ORIENTATION_TAG)
        if orientation is not None:
            record["Orientation"] = orientation
        return ImageMetadata.from_record(record)


class FfmpegTranscoder:
    name = "ffmpeg"

    def __init__(self, executable: str = "ffmpeg") -> None:
        self.executable = executable

    def transcode(self, command: list[str], verbose: bool) -> int:
        target = None if verbose else subprocess.DEVNULL
        try:
            result = subprocess.run(
                command,
                stdout=target,
                stderr=target,
                creationflags=WINDOWS_CREATIONFLAGS,
            )
        except OSError:
            return 127
        return result.returncode


def default_reader() -> MetadataReader:
    exiftool = get_tool_executable(["exiftool"])
    if exiftool:
        return ExiftoolReader(exiftool)
    return PillowReader()


def default_transcoder() -> Transcoder:
    return FfmpegTranscoder(get_tool_executable(["ffmpeg"]) or "ffmpeg")


def build_ffmpeg_command(
    executable: str,
    job: ConvertJob,
    options: ConvertOptions,
    filters: list[str],
) -> list[str]:
    command = [
        executable,
        "-noautorotate",
        "-i",
        str(job.source),
        "-y",
        "-vcodec",
        "libwebp",
        "-lossless",
        "1" if options.lossless else "0",
    ]
    if options.lossless:
        command += ["-compression_level", str(options.effective_compression)]
    else:
        command += ["-q:v", str(options.effective_quality)]
    if filters:
        command += ["-vf", join_filters(filters)]
    command.append(str(job.output))
    return command


def convert_file(
    job: ConvertJob,
    options: ConvertOptions,
    reader: MetadataReader,
    transcoder: Transcoder,
) -> ConvertResult:
    print_info(f"Converting {{{job.source}}} to {{{job.output}}}...")
    metadata = reader.read(job.source)
    if metadata is None:
        print_warning(f"Failed to read exif data from {{{job.source}}}, orientation disabled.")
    filters = build_filter_plan(metadata, options)
    try:
        job.output.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        print_error(f"Cannot create output directory {{{job.output.parent}}} for {{{job.source}}}")
        return ConvertResult(job.source, job.output, False, str(exc), tuple(filters), metadata is not None)
    command = build_ffmpeg_command(transcoder.executable, job, options, filters)
    print_info(f"{{{transcoder.name}}} > {' '.join(command)}")
    returncode = transcoder.transcode(command, options.verbose)
    if returncode != 0:
        print_error(f"Failed to convert {{{job.source}}} ({transcoder.name})")
        return ConvertResult(
            job.source,
            job.output,
            False,
            f"{transcoder.name} exited with {returncode}",
            tuple(filters),
            metadata is not None,
        )
    return ConvertResult(job.source, job.output, True, "ok", tuple(filters), metadata is not None)


def convert_files(
    files: Iterable[Path],
    options: ConvertOptions,
    reader: MetadataReader | None = None,
    transcoder: Transcoder | None = None,
) -> list[ConvertResult]:
    reader = reader or default_reader()
    transcoder = transcoder or default_transcoder()
    results = []
    for job in build_jobs(files, options):
        results.append(convert_file(job, options, reader, transcoder))
    return results


def get_tool_executable(names: list[str]) -> str | None:
    key = tuple(names)
    with _TOOL_LOCK:
        cached = _TOOL_CACHE.get(key)
    if cached is not None or key in _TOOL_CACHE:
        return cached
    for name in names:
        override = os.environ.get(TOOL_ENV_OVERRIDES.get(name, ""), "")
        if override:
            return _remember(key, override)
    for name in names:
        system_path = shutil.which(name)
        if system_path:
            return _remember(key, system_path)
    return _remember(key, None)


def clear_tool_cache() -> None:
    with _TOOL_LOCK:
        _TOOL_CACHE.clear()


def _remember(key: tuple[str, ...], value: str | None) -> str | None:
    with _TOOL_LOCK:
        _TOOL_CACHE[key] = value
    return value


def run_command(command: list[str]) -> subprocess.CompletedProcess[bytes]:
    return subprocess.run(command, capture_output=True, creationflags=WINDOWS_CREATIONFLAGS)
