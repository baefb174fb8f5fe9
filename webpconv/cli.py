from __future__ import annotations

from pathlib import Path
import sys
from typing import Sequence

from .console import print_error, print_info
from .convert import convert_files
from .errors import InputError, UsageError
from .models import ConvertOptions, Dimension, normalize_extension, resolve_input_files

USAGE_LINES = [
    "{Usage}: webpconv <{input}> [{options}]",
    "\t{ext}={png,jpg}\t\tExtensions to convert (if input is a directory).",
    "\t{out}={/path/to/output}\tOutput directory (defaults to source directory).",
    "\t{quality}={75}\t\tImage quality (0-100) for lossy compression.",
    "\t{lossless}\t\tUse lossless compression.",
    "\t{compression}={6}\t\tCompression level (0-6) for lossless compression.",
    "\t{scale}={0.5}\t\tScale image by factor (0.5 = 50%).",
    "\t{width}={960}|{source}|{auto}\tResize image to width, defaults to auto width.",
    "\t{height}={540}|{source}|{auto}\tResize image to height, defaults to auto height.",
    "\t{crop}\t\t\tEnable cropping (instead of resize).",
    "\t{centerh}\t\tCenter crop horizontally.",
    "\t{centerv}\t\tCenter crop vertically.",
    "\t{center}\t\t\tCenter crop horizontally and vertically.",
    "\t{verbose}\t\tEnable verbose output.",
]

FLAG_KEYS = {
    "lossless": "lossless",
    "crop": "crop",
    "centerh": "center_h",
    "centerv": "center_v",
    "center": "center",
    "verbose": "verbose",
}
FALSE_VALUES = {"false", "0", "no", "off"}


def print_usage() -> None:
    for line in USAGE_LINES:
        print_info(line, stream=sys.stderr)


def parse_int(value: str, key: str, low: int, high: int) -> int:
    try:
        number = int(value)
    except ValueError:
        number = None
    if number is None or number < low or number > high:
        raise UsageError(f"{{{key}}} must be a number between {{{low}}} and {{{high}}}.")
    return number


def parse_scale(value: str) -> float:
    try:
        scale = float(value)
    except ValueError:
        scale = None
    # nan and inf parse as floats but make no sense as a factor
    if scale is None or not scale > 0 or scale == float("inf"):
        raise UsageError("{scale} must be a number greater than {0}.")
    return scale


def parse_dimension(value: str, key: str) -> Dimension:
    dimension = Dimension.parse(value)
    if dimension is None:
        raise UsageError(f"{{{key}}} must be a number greater than {{0}}, {{source}} or {{auto}}.")
    return dimension


def parse_extensions(value: str) -> frozenset[str]:
    return frozenset(normalize_extension(ext) for ext in value.split(",") if ext.strip())


def split_argument(arg: str) -> tuple[str, str | None]:
    key, sep, value = arg.partition("=")
    return key.strip().lower(), value.strip() if sep else None


def parse_arguments(argv: Sequence[str]) -> ConvertOptions:
    if not argv:
        raise UsageError("No {input} file or directory specified.")
    values: dict[str, object] = {"input_path": Path(argv[0])}
    extra: dict[str, str] = {}
    for arg in argv[1:]:
        key, value = split_argument(arg)
        if key in FLAG_KEYS:
            values[FLAG_KEYS[key]] = value is None or value.lower() not in FALSE_VALUES
            continue
        text = "true" if value is None else value
        if key == "ext":
            values["extensions"] = parse_extensions(text)
        elif key == "out":
            values["output_dir"] = Path(text)
        elif key == "quality":
            values["quality"] = parse_int(text, key, 0, 100)
        elif key == "compression":
            values["compression"] = parse_int(text, key, 0, 6)
        elif key == "scale":
            values["scale"] = parse_scale(text)
        elif key in {"width", "height"}:
            values[key] = parse_dimension(text, key)
        else:
            extra[key] = text
    return ConvertOptions(extra=extra, **values)  # type: ignore[arg-type]


def run(argv: Sequence[str]) -> int:
    options = parse_arguments(argv)
    files = resolve_input_files(options)
    results = convert_files(files, options)
    failed = sum(1 for result in results if not result.success)
    print_info(f"Converted {{{len(results) - failed}}} of {{{len(results)}}} file(s).")
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        code = run(args)
    except UsageError as exc:
        print_usage()
        print_error(str(exc))
        raise SystemExit(1)
    except InputError as exc:
        print_error(str(exc))
        raise SystemExit(1)
    raise SystemExit(code)
