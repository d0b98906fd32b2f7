from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Sequence

from grntest.debuggers import get_diagnostics_wrapper

from .configuration import RunRequest
from .discovery import TestCase
from .utils import Color, NullColor


class SuiteRunner(ABC):
    """Executes selected test suites. Implemented outside this package."""

    def __init__(self, request: RunRequest) -> None:
        self.request = request

    @abstractmethod
    def run(self, test_suites: Dict[str, Sequence[TestCase]]) -> bool:
        """Run ``test_suites`` and return True when every test passed."""


class PlanSuiteRunner(SuiteRunner):
    """Report the resolved plan instead of executing it."""

    def run(self, test_suites: Dict[str, Sequence[TestCase]]) -> bool:
        request = self.request
        color = Color if request.use_color else NullColor
        wrapper = get_diagnostics_wrapper(request.diagnostics)
        testee_command = wrapper.wrap([request.groonga.command])

        lines = [
            f"{color.BOLD}grntest plan{color.RESET}",
            f"Testee: {request.testee} ({request.interface})",
            f"Command: {' '.join(testee_command)}",
            f"Diff: {' '.join([request.diff, *request.diff_options])}",
            f"Reporter: {request.reporter}, workers: {request.n_workers}",
            f"Timeout per test: {request.timeout}s",
        ]
        if request.plugins_directory is not None:
            lines.append(f"Plugins directory: {request.plugins_directory}")
        for group_name, test_cases in test_suites.items():
            lines.append(f"{color.BLUE}{group_name}{color.RESET} ({len(test_cases)})")
            lines.extend(f"  {test_case.path}" for test_case in test_cases)
        if not test_suites:
            lines.append(f"{color.YELLOW}No tests selected{color.RESET}")

        output = request.output
        for line in lines:
            output.write(f"{line}\n")
        output.flush()
        return True
