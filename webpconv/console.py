from __future__ import annotations

import re
import sys
from typing import TextIO

ANSI_RED = "\x1b[31m"
ANSI_YELLOW = "\x1b[33m"
ANSI_CYAN = "\x1b[36m"
ANSI_RESET = "\x1b[0m"

_PLACEHOLDER = re.compile(r"\{(.+?)\}")


def format_colors(text: str, color_code: str) -> str:
    # {word} marks the highlighted parts of a message
    return _PLACEHOLDER.sub(lambda match: f"{color_code}{match.group(1)}{ANSI_RESET}", text)


def print_info(message: str, stream: TextIO | None = None) -> None:
    print(format_colors(message, ANSI_CYAN), file=stream or sys.stdout)


def print_warning(message: str) -> None:
    print(format_colors("{Warning}: " + message, ANSI_YELLOW), file=sys.stderr)


def print_error(message: str) -> None:
    print(format_colors("{Error}: " + message, ANSI_RED), file=sys.stderr)
