"""Test and suite name selection.

A name given as ``/.../`` is a case-insensitive regular expression searched
anywhere in the candidate name. Anything else must match exactly.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple, Union

from .discovery import TestCase

_REGEX_LITERAL = re.compile(r"/(.+)/")


@dataclass(frozen=True)
class LiteralPattern:
    text: str

    def matches(self, name: str) -> bool:
        return name == self.text

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class RegexPattern:
    source: str
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regex", re.compile(self.source, re.IGNORECASE))

    def matches(self, name: str) -> bool:
        return self.regex.search(name) is not None

    def __str__(self) -> str:
        return f"/{self.source}/"


Pattern = Union[LiteralPattern, RegexPattern]


def parse_name_or_pattern(name: str) -> Pattern:
    """Return a pattern for ``name``; raises ``re.error`` for a broken regex."""

    match = _REGEX_LITERAL.fullmatch(name)
    if match is None:
        return LiteralPattern(name)
    return RegexPattern(match.group(1))


def selected(name: str, include: Sequence[Pattern], exclude: Sequence[Pattern]) -> bool:
    if include and not any(pattern.matches(name) for pattern in include):
        return False
    return not any(pattern.matches(name) for pattern in exclude)


@dataclass(frozen=True)
class SelectionSet:
    include: Tuple[Pattern, ...] = ()
    exclude: Tuple[Pattern, ...] = ()

    @classmethod
    def from_lists(cls, include: Iterable[Pattern], exclude: Iterable[Pattern]) -> "SelectionSet":
        return cls(tuple(include), tuple(exclude))

    def selected(self, name: str) -> bool:
        return selected(name, self.include, self.exclude)

    def describe(self) -> str:
        parts = []
        if self.include:
            parts.append("include " + ", ".join(str(p) for p in self.include))
        if self.exclude:
            parts.append("exclude " + ", ".join(str(p) for p in self.exclude))
        return "; ".join(parts) if parts else "all"


def select_tests(
    test_suites: Dict[str, List[TestCase]],
    tests: SelectionSet,
    suites: SelectionSet,
) -> Dict[str, Tuple[TestCase, ...]]:
    """Return the suites and test cases passing both predicates.

    Suites without any selected test case are dropped.
    """

    filtered: Dict[str, Tuple[TestCase, ...]] = {}
    for group_name, test_cases in test_suites.items():
        if not suites.selected(group_name):
            continue
        kept = tuple(case for case in test_cases if tests.selected(case.name))
        if kept:
            filtered[group_name] = kept
    return filtered
