from __future__ import annotations

import os
import random
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .commands import CommandResolver, ToolBinding, is_executable_file
from .discovery import TestCase, load_tests
from .patterns import Pattern, SelectionSet, select_tests
from .platform import PlatformSupport, get_platform_support
from .tools import (
    DEFAULT_GDB,
    DEFAULT_LLDB,
    DEFAULT_RR,
    DEFAULT_VALGRIND,
    SUGGEST_CREATE_DATASET,
    SYNONYM_GENERATE,
    ToolDetector,
)
from .utils import env_flag, guess_color_availability, stderr_print

DEBUG_ENV = "GRNTEST_DEBUG"

INTERFACES = ("stdio", "http")
INPUT_TYPES = ("json", "apache-arrow")
OUTPUT_TYPES = ("json", "msgpack", "apache-arrow")
TESTEES = ("groonga", "groonga-httpd", "groonga-nginx")
REPORTERS = (
    "mark",
    "buffered-mark",
    "stream",
    "inplace",
    "progress",
    "benchmark-json",
)


@dataclass(frozen=True)
class DiagnosticsSettings:
    """Wrapper commands the testee should run under; None means disabled."""

    gdb: Optional[str] = None
    lldb: Optional[str] = None
    rr: Optional[str] = None
    valgrind: Optional[str] = None
    valgrind_gen_suppressions: bool = False

    @property
    def generate_valgrind_suppressions(self) -> bool:
        return self.valgrind is not None and self.valgrind_gen_suppressions


@dataclass(frozen=True)
class RunRequest:
    """Everything the suite runner needs, fixed once configuration is done."""

    groonga: ToolBinding
    groonga_httpd: ToolBinding
    ngx_http_groonga_module_so: Optional[str]
    groonga_suggest_create_dataset: ToolBinding
    groonga_synonym_generate: ToolBinding
    testee: str
    interface: str
    use_http_post: bool
    use_http_chunked: bool
    input_type: str
    output_type: str
    base_directory: Path
    database_path: Optional[str]
    diff: str
    diff_options: Tuple[str, ...]
    reporter: str
    n_workers: int
    diagnostics: DiagnosticsSettings
    keep_database: bool
    stop_on_failure: bool
    suppress_omit_log: bool
    suppress_backtrace: bool
    debug: bool
    output: IO[Any]
    use_color: bool
    timeout: float
    read_timeout: float
    shutdown_wait_timeout: float
    n_retries: int
    random_seed: Optional[int]
    plugins_directory: Optional[Path]
    test_suites: Dict[str, Tuple[TestCase, ...]]

    @property
    def n_tests(self) -> int:
        return sum(len(cases) for cases in self.test_suites.values())

    def create_random(self) -> random.Random:
        """Return a generator seeded with ``random_seed`` (unseeded when None)."""

        return random.Random(self.random_seed)


class ConfigState:
    """Mutable settings collected while the command line is applied.

    Optional tools and the diff command are detected here, before any option
    can override them.
    """

    def __init__(
        self,
        *,
        resolver: Optional[CommandResolver] = None,
        platform: Optional[PlatformSupport] = None,
        environ: Optional[Mapping[str, str]] = None,
        print_fn: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._environ = environ if environ is not None else os.environ
        self._print = print_fn if print_fn is not None else stderr_print
        self.debug = env_flag(DEBUG_ENV, self._environ)
        self._held_messages: List[str] = []
        self.resolver = resolver if resolver is not None else CommandResolver(environ=self._environ)
        self.platform = platform if platform is not None else get_platform_support(
            verbose=self.debug,
            environ=self._environ,
            print_fn=self._print,
        )

        self.groonga = ToolBinding.from_search_path("groonga", self.resolver)
        self.groonga_httpd = ToolBinding.from_search_path("groonga-httpd", self.resolver)
        self.custom_groonga_httpd = False
        self.ngx_http_groonga_module_so: Optional[str] = None

        detector = ToolDetector(self.resolver, print_fn=self.log)
        self.groonga_suggest_create_dataset = detector.detect_companion(SUGGEST_CREATE_DATASET)
        self.groonga_synonym_generate = detector.detect_companion(SYNONYM_GENERATE)
        diff_choice = detector.detect_suitable_diff()
        self.diff = diff_choice.command
        self.diff_options: List[str] = list(diff_choice.options)
        self._diff_options_specified = False

        self.interface = "stdio"
        self.use_http_post = False
        self.use_http_chunked = False
        self.input_type = "json"
        self.output_type = "json"
        self.testee = "groonga"
        self.base_directory = Path(".")
        self.database_path: Optional[str] = None
        self._reporter: Optional[str] = None
        self._n_workers: Optional[int] = None
        self.output: IO[Any] = sys.stdout
        self.keep_database = False
        self._use_color: Optional[bool] = None
        self.stop_on_failure = False
        self.suppress_omit_log = True
        self.suppress_backtrace = True

        self.test_patterns: List[Pattern] = []
        self.test_suite_patterns: List[Pattern] = []
        self.exclude_test_patterns: List[Pattern] = []
        self.exclude_test_suite_patterns: List[Pattern] = []

        self.gdb: Optional[str] = None
        self.default_gdb = DEFAULT_GDB
        self.lldb: Optional[str] = None
        self.default_lldb = DEFAULT_LLDB
        self.rr: Optional[str] = None
        self.default_rr = DEFAULT_RR
        self.valgrind: Optional[str] = None
        self.default_valgrind = DEFAULT_VALGRIND
        self.valgrind_gen_suppressions = False

        self.timeout = 5.0
        self.read_timeout = 3.0
        self.shutdown_wait_timeout = 5.0
        self.n_retries = 0
        self.random_seed: Optional[int] = None

    def log(self, message: str) -> None:
        """Emit ``message`` on stderr when debug output is enabled.

        Messages logged while debug output is off are held, so a later
        ``--debug`` still shows what tool detection found.
        """

        if self.debug:
            self._print(message)
        else:
            self._held_messages.append(message)

    def set_debug(self, enabled: bool) -> None:
        self.debug = enabled
        self.platform.verbose = enabled
        if enabled:
            held, self._held_messages = self._held_messages, []
            for message in held:
                self._print(message)

    def bind_command(self, command: str) -> ToolBinding:
        return ToolBinding.from_command(command, self.resolver)

    def set_groonga_httpd(self, command: str) -> None:
        self.groonga_httpd = self.bind_command(command)
        self.custom_groonga_httpd = True

    def set_testee(self, testee: str) -> None:
        self.testee = testee
        if testee == "groonga-httpd":
            self.interface = "http"
        elif testee == "groonga-nginx":
            self.interface = "http"
            if not self.custom_groonga_httpd:
                self.groonga_httpd = ToolBinding.from_search_path("nginx", self.resolver)

    def set_diff(self, diff: str) -> None:
        self.diff = diff
        self.diff_options.clear()
        self._diff_options_specified = False

    def add_diff_option(self, option: str) -> None:
        # The first explicit option replaces the detected defaults.
        if not self._diff_options_specified:
            self.diff_options.clear()
            self._diff_options_specified = True
        self.diff_options.append(option)

    def enable_benchmark(self) -> None:
        self.n_workers = 1
        self.reporter = "benchmark-json"

    @property
    def n_workers(self) -> int:
        if self._n_workers is None:
            self._n_workers = self.platform.logical_cpu_count()
        return self._n_workers

    @n_workers.setter
    def n_workers(self, value: int) -> None:
        self._n_workers = value

    @property
    def reporter(self) -> str:
        if self._reporter is not None:
            return self._reporter
        if self.n_workers == 1:
            return "mark"
        return "progress"

    @reporter.setter
    def reporter(self, value: Optional[str]) -> None:
        self._reporter = value

    @property
    def use_color(self) -> bool:
        if self._use_color is None:
            self._use_color = guess_color_availability(self.output, self._environ)
        return self._use_color

    @use_color.setter
    def use_color(self, value: Optional[bool]) -> None:
        self._use_color = value

    @property
    def test_selection(self) -> SelectionSet:
        return SelectionSet.from_lists(self.test_patterns, self.exclude_test_patterns)

    @property
    def test_suite_selection(self) -> SelectionSet:
        return SelectionSet.from_lists(self.test_suite_patterns, self.exclude_test_suite_patterns)

    def target_test(self, test_name: str) -> bool:
        return self.test_selection.selected(test_name)

    def target_test_suite(self, test_suite_name: str) -> bool:
        return self.test_suite_selection.selected(test_suite_name)

    def plugins_directory(self) -> Optional[Path]:
        """Return the plugins directory that belongs to the groonga binary.

        An installed layout (``PREFIX/lib/groonga/plugins``) wins over a build
        tree layout (``BUILD/plugins``) when both exist.
        """

        resolved_path = self.groonga.resolved_path
        if not is_executable_file(resolved_path):
            resolved_path = self.resolver.resolve_command_path(resolved_path)
            if resolved_path is None:
                return None
        groonga_path = Path(resolved_path).absolute()
        base_dir = groonga_path.parent.parent
        installed_plugins_dir = base_dir / "lib" / "groonga" / "plugins"
        build_plugins_dir = base_dir / "plugins"
        if installed_plugins_dir.exists():
            return installed_plugins_dir
        return build_plugins_dir

    def diagnostics(self) -> DiagnosticsSettings:
        return DiagnosticsSettings(
            gdb=self.gdb,
            lldb=self.lldb,
            rr=self.rr,
            valgrind=self.valgrind,
            valgrind_gen_suppressions=self.valgrind_gen_suppressions,
        )

    def build_run_request(self, targets: Sequence[Union[str, os.PathLike]]) -> RunRequest:
        """Discover and select tests under ``targets`` and freeze the settings."""

        test_suites = load_tests(targets, print_fn=self.log if self.debug else None)
        selected = select_tests(test_suites, self.test_selection, self.test_suite_selection)
        self.log(
            f"Selected {sum(len(cases) for cases in selected.values())} test(s) "
            f"(tests: {self.test_selection.describe()}, "
            f"suites: {self.test_suite_selection.describe()})"
        )
        return RunRequest(
            groonga=self.groonga,
            groonga_httpd=self.groonga_httpd,
            ngx_http_groonga_module_so=self.ngx_http_groonga_module_so,
            groonga_suggest_create_dataset=self.groonga_suggest_create_dataset,
            groonga_synonym_generate=self.groonga_synonym_generate,
            testee=self.testee,
            interface=self.interface,
            use_http_post=self.use_http_post,
            use_http_chunked=self.use_http_chunked,
            input_type=self.input_type,
            output_type=self.output_type,
            base_directory=self.base_directory,
            database_path=self.database_path,
            diff=self.diff,
            diff_options=tuple(self.diff_options),
            reporter=self.reporter,
            n_workers=self.n_workers,
            diagnostics=self.diagnostics(),
            keep_database=self.keep_database,
            stop_on_failure=self.stop_on_failure,
            suppress_omit_log=self.suppress_omit_log,
            suppress_backtrace=self.suppress_backtrace,
            debug=self.debug,
            output=self.output,
            use_color=self.use_color,
            timeout=self.timeout,
            read_timeout=self.read_timeout,
            shutdown_wait_timeout=self.shutdown_wait_timeout,
            n_retries=self.n_retries,
            random_seed=self.random_seed,
            plugins_directory=self.plugins_directory(),
            test_suites=selected,
        )
