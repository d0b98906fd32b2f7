from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .platform import get_platform_support


def is_executable_file(path: str) -> bool:
    """Return True if ``path`` names an existing file we are allowed to execute."""

    return os.path.isfile(path) and os.access(path, os.X_OK)


class CommandResolver:
    """Resolve command names to executable paths.

    Nothing is cached: every call stats the filesystem again. Callers that
    need a stable answer keep the resulting :class:`ToolBinding`.
    """

    def __init__(
        self,
        *,
        environ: Optional[Mapping[str, str]] = None,
        executable_suffix: Optional[str] = None,
    ) -> None:
        self._environ = environ if environ is not None else os.environ
        if executable_suffix is None:
            executable_suffix = get_platform_support().executable_suffix
        self.executable_suffix = executable_suffix

    def normalize_command(self, command: str) -> str:
        """Return an absolute path for ``command`` if it is a local executable.

        Commands that are not found relative to the working directory are
        returned unchanged so that ``PATH`` lookup happens at launch time.
        """

        if is_executable_file(command):
            return os.path.abspath(command)

        if self.executable_suffix:
            command_exe = f"{command}{self.executable_suffix}"
            if is_executable_file(command_exe):
                return os.path.abspath(command_exe)

        return command

    def resolve_command_path(self, name: str) -> Optional[str]:
        """Return the first executable named ``name`` on ``PATH``."""

        search_path = self._environ.get("PATH")
        if search_path is None:
            return None

        for directory in search_path.split(os.pathsep):
            raw_candidate = os.path.join(directory, name)
            candidates = [raw_candidate]
            if self.executable_suffix:
                candidates.append(f"{raw_candidate}{self.executable_suffix}")
            for candidate in candidates:
                if is_executable_file(candidate):
                    return candidate
        return None

    def command_exist(self, name: str) -> bool:
        return self.resolve_command_path(name) is not None


@dataclass(frozen=True)
class ToolBinding:
    """A command requested by the user or detected at start-up."""

    requested: str
    resolved_path: str
    available: bool

    @classmethod
    def from_command(cls, command: str, resolver: CommandResolver) -> "ToolBinding":
        """Bind a user supplied ``command``, preferring local files over ``PATH``."""

        resolved = resolver.normalize_command(command)
        if not is_executable_file(resolved):
            found = resolver.resolve_command_path(command)
            if found is not None:
                resolved = found
        return cls(command, resolved, is_executable_file(resolved))

    @classmethod
    def from_search_path(cls, name: str, resolver: CommandResolver) -> "ToolBinding":
        """Bind ``name`` by looking it up on ``PATH`` only."""

        found = resolver.resolve_command_path(name)
        if found is None:
            return cls(name, name, False)
        return cls(name, found, True)

    @property
    def command(self) -> str:
        """Return what should be executed for this binding."""

        return self.resolved_path
