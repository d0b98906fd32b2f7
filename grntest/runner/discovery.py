from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

DEFAULT_GROUP_NAME = "."
TEST_FILE_EXTENSION = ".test"


@dataclass(frozen=True)
class TestCase:
    """A single ``.test`` file and the suite it belongs to."""

    __test__ = False

    path: Path
    group_name: str

    @property
    def name(self) -> str:
        file_name = self.path.name
        if file_name.endswith(TEST_FILE_EXTENSION):
            return file_name[: -len(TEST_FILE_EXTENSION)]
        return file_name


def load_tests(
    targets: Iterable[Union[str, os.PathLike]],
    *,
    extension: str = TEST_FILE_EXTENSION,
    print_fn: Optional[Callable[[str], None]] = None,
) -> Dict[str, List[TestCase]]:
    """Expand ``targets`` into test cases keyed by suite name.

    Files given directly belong to the ``"."`` suite. Files found under a
    directory target belong to the suite named after their directory relative
    to that target. Missing targets are skipped and overlapping targets are
    not deduplicated.
    """

    tests: Dict[str, List[TestCase]] = {DEFAULT_GROUP_NAME: []}
    for target in targets:
        if not os.path.exists(target):
            if print_fn is not None:
                print_fn(f"Skipping missing test target: {target}")
            continue
        target_path = Path(os.path.normpath(target))
        if target_path.is_dir():
            _load_tests_under_directory(tests, target_path, extension)
        else:
            tests[DEFAULT_GROUP_NAME].append(TestCase(target_path, DEFAULT_GROUP_NAME))

    if print_fn is not None:
        total = sum(len(cases) for cases in tests.values())
        print_fn(f"Found {total} test(s) in {len(tests)} suite(s)")
    return tests


def _load_tests_under_directory(
    tests: Dict[str, List[TestCase]],
    test_directory: Path,
    extension: str,
) -> None:
    # Sorted so the run order does not depend on the filesystem.
    test_file_paths = sorted(
        path
        for path in test_directory.rglob(f"*{extension}")
        if path.is_file() and not _is_hidden(path.relative_to(test_directory))
    )
    for test_file_path in test_file_paths:
        group_name = str(test_file_path.parent.relative_to(test_directory))
        tests.setdefault(group_name, []).append(TestCase(test_file_path, group_name))


def _is_hidden(relative_path: Path) -> bool:
    return any(part.startswith(".") for part in relative_path.parts)
