from __future__ import annotations

import os
import re
import sys
from typing import IO, Any, Mapping, Optional


class Color:
    """ANSI color codes for terminal output"""

    GREEN = '\033[92m'
    RED = '\033[91m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    RESET = '\033[0m'
    BOLD = '\033[1m'


class NullColor:
    GREEN = ""
    RED = ""
    YELLOW = ""
    BLUE = ""
    RESET = ""
    BOLD = ""


_COLOR_TERM_PATTERN = re.compile(r"term(?:-(?:256)?color)?\Z")


def stderr_print(message: str) -> None:
    """Write a diagnostic line to stderr and flush it right away."""

    print(message, file=sys.stderr, flush=True)


def env_flag(name: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True if the specified environment variable is truthy."""

    if environ is None:
        environ = os.environ
    value = environ.get(name)
    if value is None:
        return False

    normalized = value.strip().lower()
    if not normalized:
        return False

    return normalized not in {"0", "false", "no", "off"}


def is_tty(stream: IO[Any]) -> bool:
    isatty = getattr(stream, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty())
    except (OSError, ValueError):
        return False


def guess_color_availability(
    output: IO[Any],
    environ: Optional[Mapping[str, str]] = None,
) -> bool:
    """Return True when ``output`` is a terminal that understands ANSI colors."""

    if environ is None:
        environ = os.environ
    if not is_tty(output):
        return False

    term = environ.get("TERM", "")
    if _COLOR_TERM_PATTERN.search(term) or term == "screen":
        return True
    return environ.get("EMACS") == "t"
