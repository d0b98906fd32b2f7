from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence


class DiagnosticsWrapper(ABC):
    """Run the testee under a debugger, recorder or memory checker."""

    name = ""

    def __init__(self, command: str) -> None:
        self.command = command

    @property
    def enabled(self) -> bool:
        return True

    @abstractmethod
    def wrapper_arguments(self) -> List[str]:
        """Return the arguments placed between the wrapper and the testee."""

    def wrap(self, testee_command: Sequence[str]) -> List[str]:
        """Return ``testee_command`` prefixed with the wrapper invocation."""

        return [self.command, *self.wrapper_arguments(), *testee_command]


class NullDiagnosticsWrapper(DiagnosticsWrapper):
    """Used when no wrapper was requested; the testee runs directly."""

    def __init__(self) -> None:
        super().__init__("")

    @property
    def enabled(self) -> bool:
        return False

    def wrapper_arguments(self) -> List[str]:
        return []

    def wrap(self, testee_command: Sequence[str]) -> List[str]:
        return list(testee_command)
