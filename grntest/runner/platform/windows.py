from __future__ import annotations

from .base import PlatformSupport


class WindowsPlatformSupport(PlatformSupport):
    """Platform helpers for Windows hosts."""

    @property
    def is_windows(self) -> bool:
        return True

    @property
    def executable_suffix(self) -> str:
        return ".exe"
