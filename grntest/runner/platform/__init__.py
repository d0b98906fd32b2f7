from __future__ import annotations

import sys
from typing import Callable, Mapping, Optional

from .base import PlatformSupport
from .posix import PosixPlatformSupport
from .windows import WindowsPlatformSupport


def get_platform_support(
    *,
    verbose: bool = False,
    environ: Optional[Mapping[str, str]] = None,
    print_fn: Optional[Callable[[str], None]] = None,
) -> PlatformSupport:
    """Return the platform adapter for the current host."""

    if sys.platform == "win32":
        return WindowsPlatformSupport(verbose=verbose, environ=environ, print_fn=print_fn)
    return PosixPlatformSupport(verbose=verbose, environ=environ, print_fn=print_fn)


__all__ = [
    "PlatformSupport",
    "PosixPlatformSupport",
    "WindowsPlatformSupport",
    "get_platform_support",
]
