from __future__ import annotations

from typing import List

from .base import DiagnosticsWrapper


class GdbWrapper(DiagnosticsWrapper):
    name = "gdb"

    def wrapper_arguments(self) -> List[str]:
        return ["--args"]


class LldbWrapper(DiagnosticsWrapper):
    name = "lldb"

    def wrapper_arguments(self) -> List[str]:
        return ["--"]


class RrWrapper(DiagnosticsWrapper):
    name = "rr"

    def wrapper_arguments(self) -> List[str]:
        return ["record"]


class ValgrindWrapper(DiagnosticsWrapper):
    name = "valgrind"

    def __init__(self, command: str, *, gen_suppressions: bool = False) -> None:
        super().__init__(command)
        self.gen_suppressions = gen_suppressions

    def wrapper_arguments(self) -> List[str]:
        arguments = ["--leak-check=full", "--show-reachable=yes"]
        if self.gen_suppressions:
            arguments.append("--gen-suppressions=all")
        return arguments
