from __future__ import annotations

from .commands import CommandResolver, ToolBinding
from .configuration import ConfigState, RunRequest
from .discovery import TestCase, load_tests
from .patterns import SelectionSet, parse_name_or_pattern, select_tests, selected
from .suite import PlanSuiteRunner, SuiteRunner

__all__ = [
    "CommandResolver",
    "ConfigState",
    "PlanSuiteRunner",
    "RunRequest",
    "SelectionSet",
    "SuiteRunner",
    "TestCase",
    "ToolBinding",
    "load_tests",
    "parse_name_or_pattern",
    "select_tests",
    "selected",
]
