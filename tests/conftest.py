from __future__ import annotations

import os
import stat
import sys
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

from grntest.runner.commands import CommandResolver
from grntest.runner.configuration import ConfigState
from grntest.runner.platform.base import PlatformSupport

posix_only = pytest.mark.skipif(
    sys.platform == "win32", reason="relies on POSIX execute permission bits"
)


class FixedPlatformSupport(PlatformSupport):
    """Platform adapter with a fixed CPU count so tests never spawn nproc."""

    def __init__(self, cpu_count: int = 4, suffix: str = "") -> None:
        super().__init__()
        self._cpu_count = cpu_count
        self._suffix = suffix

    @property
    def executable_suffix(self) -> str:
        return self._suffix

    def logical_cpu_count(self) -> int:
        return self._cpu_count


def write_executable(path: Path, content: str = "#!/bin/sh\nexit 0\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "bin"
    directory.mkdir()
    return directory


@pytest.fixture
def make_executable(bin_dir: Path) -> Callable[[str], Path]:
    def factory(name: str) -> Path:
        return write_executable(bin_dir / name)

    return factory


@pytest.fixture
def search_env(bin_dir: Path) -> Dict[str, str]:
    return {"PATH": str(bin_dir)}


@pytest.fixture
def resolver(search_env: Dict[str, str]) -> CommandResolver:
    return CommandResolver(environ=search_env, executable_suffix="")


@pytest.fixture
def make_state(search_env: Dict[str, str]) -> Callable[..., ConfigState]:
    def factory(
        *,
        cpu_count: int = 4,
        environ: Optional[Dict[str, str]] = None,
        printed: Optional[list] = None,
    ) -> ConfigState:
        env = dict(search_env)
        if environ:
            env.update(environ)
        return ConfigState(
            resolver=CommandResolver(environ=env, executable_suffix=""),
            platform=FixedPlatformSupport(cpu_count),
            environ=env,
            print_fn=printed.append if printed is not None else None,
        )

    return factory


@pytest.fixture
def chdir(monkeypatch: pytest.MonkeyPatch) -> Callable[[Path], None]:
    def change(path: Path) -> None:
        monkeypatch.chdir(os.fspath(path))

    return change
