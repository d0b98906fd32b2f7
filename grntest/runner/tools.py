from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .commands import CommandResolver, ToolBinding

INTERNAL_DIFF = "internal"

# Preferred first. The internal differ is always available.
DIFF_CANDIDATES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("cut-diff", ("--context-lines", "10")),
    ("diff", ("-u",)),
)

SUGGEST_CREATE_DATASET = "groonga-suggest-create-dataset"
SYNONYM_GENERATE = "groonga-synonym-generate"

DEFAULT_GDB = "gdb"
DEFAULT_LLDB = "lldb"
DEFAULT_RR = "rr"
DEFAULT_VALGRIND = "valgrind"


@dataclass(frozen=True)
class DiffChoice:
    command: str
    options: Tuple[str, ...] = ()

    @property
    def is_internal(self) -> bool:
        return self.command == INTERNAL_DIFF


class ToolDetector:
    """Pick optional helper tools before any option is applied."""

    def __init__(
        self,
        resolver: CommandResolver,
        *,
        print_fn: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._resolver = resolver
        self._print = print_fn

    def detect_suitable_diff(self) -> DiffChoice:
        for command, options in DIFF_CANDIDATES:
            if self._resolver.command_exist(command):
                self._log(f"Using {command} as diff command")
                return DiffChoice(command, options)
        self._log("No diff command found, using internal differ")
        return DiffChoice(INTERNAL_DIFF)

    def detect_companion(self, name: str) -> ToolBinding:
        """Return a binding for ``name``; unavailable tools only disable their tests."""

        binding = ToolBinding.from_search_path(name, self._resolver)
        if not binding.available:
            self._log(f"{name} not found, tests that need it will not work")
        return binding

    def _log(self, message: str) -> None:
        if self._print is not None:
            self._print(message)
