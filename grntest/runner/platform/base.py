from __future__ import annotations

import os
from typing import Callable, Mapping, Optional

from ._psutil import load_psutil


def parse_count(text: Optional[str]) -> int:
    """Return ``text`` as a positive base-10 integer, or 1 when it is not one."""

    if text is None:
        return 1
    try:
        value = int(text.strip(), 10)
    except ValueError:
        return 1
    return value if value > 0 else 1


class PlatformSupport:
    """Base class describing platform specific behaviour."""

    def __init__(
        self,
        *,
        verbose: bool = False,
        environ: Optional[Mapping[str, str]] = None,
        print_fn: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.verbose = verbose
        self._environ = environ if environ is not None else os.environ
        self._print = print_fn

    @property
    def is_windows(self) -> bool:
        """Return True when running on Windows."""

        return False

    @property
    def executable_suffix(self) -> str:
        """Return the file name suffix executables carry on this platform."""

        return ""

    def logical_cpu_count(self) -> int:
        """Return the number of logical CPUs, falling back to 1."""

        psutil = load_psutil()
        if psutil is not None:
            try:
                count = psutil.cpu_count(logical=True)
            except Exception:
                count = None
            if isinstance(count, int) and count > 0:
                self._log(f"Detected {count} logical CPU(s) via psutil")
                return count

        count = self._probe_cpu_count()
        self._log(f"Detected {count} logical CPU(s)")
        return count

    def _probe_cpu_count(self) -> int:
        return parse_count(self._environ.get("NUMBER_OF_PROCESSORS"))

    def _log(self, message: str) -> None:
        if self.verbose and self._print is not None:
            self._print(message)
