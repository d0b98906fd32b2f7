from __future__ import annotations

import shutil
import subprocess
from typing import List, Optional

from .base import PlatformSupport, parse_count


class PosixPlatformSupport(PlatformSupport):
    """Platform helpers for Unix-like systems."""

    def _probe_cpu_count(self) -> int:
        # Linux ships nproc, macOS only sysctl.
        nproc_path = shutil.which("nproc")
        if nproc_path:
            return parse_count(self._run_probe([nproc_path]))

        sysctl_path = shutil.which("sysctl")
        if sysctl_path:
            return parse_count(self._run_probe([sysctl_path, "-n", "hw.logicalcpu"]))

        return super()._probe_cpu_count()

    def _run_probe(self, command: List[str]) -> Optional[str]:
        try:
            completed = subprocess.run(
                command,
                check=True,
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (subprocess.SubprocessError, OSError) as exc:
            self._log(f"{command[0]} failed: {exc}")
            return None
        return completed.stdout
