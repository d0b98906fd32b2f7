#!/usr/bin/env python3
"""
grntest command line

Resolves the Groonga binaries, helper tools and test files named on the
command line into a run plan and hands it to a suite runner.

Usage:
    grntest [options] TEST_FILE_OR_DIRECTORY...

Options are applied in the order they are given, so ``--testee`` after
``--groonga-httpd`` keeps the custom command while the reverse order does not.
"""
from __future__ import annotations

import argparse
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Union

from grntest import __version__
from grntest.runner.configuration import (
    INPUT_TYPES,
    INTERFACES,
    OUTPUT_TYPES,
    REPORTERS,
    TESTEES,
    ConfigState,
    RunRequest,
)
from grntest.runner.patterns import Pattern, parse_name_or_pattern
from grntest.runner.suite import PlanSuiteRunner, SuiteRunner

# Flags whose command argument is optional. Given bare they must not swallow
# the following test target.
OPTIONAL_COMMAND_FLAGS = ("--gdb", "--lldb", "--rr", "--valgrind")

Handler = Callable[[ConfigState, Any], None]
RunnerFactory = Callable[[RunRequest], SuiteRunner]


@dataclass(frozen=True)
class Configured:
    """The command line was applied; ``targets`` are the remaining arguments."""

    state: ConfigState
    targets: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExitRequest:
    """Processing should stop and ``message`` should be printed."""

    message: str
    status: int = 0


ParseOutcome = Union[Configured, ExitRequest]


class _StateAction(argparse.Action):
    """Apply an option to the ConfigState as soon as argparse sees it."""

    def __init__(self, option_strings, dest, handler: Handler, **kwargs) -> None:
        self.handler = handler
        kwargs.setdefault("default", argparse.SUPPRESS)
        super().__init__(option_strings, dest, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        try:
            self.handler(namespace.state, values)
        except OSError as exc:
            raise argparse.ArgumentError(self, str(exc)) from exc


class _VersionRequested(Exception):
    """Raised by ``--version`` to stop applying the rest of the command line."""


class _VersionAction(argparse.Action):
    def __init__(self, option_strings, dest, **kwargs) -> None:
        super().__init__(option_strings, dest, nargs=0, default=argparse.SUPPRESS, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        raise _VersionRequested(__version__)


def _pattern(text: str) -> Pattern:
    try:
        return parse_name_or_pattern(text)
    except re.error as exc:
        raise argparse.ArgumentTypeError(f"invalid regular expression {text}: {exc}")


def _choices_label(choices: Sequence[str]) -> str:
    return f"[{', '.join(choices)}]"


class _BooleanAction(_StateAction):
    def __call__(self, parser, namespace, values, option_string=None) -> None:
        self.handler(namespace.state, self.const)


def create_option_parser(state: ConfigState) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grntest",
        usage="%(prog)s [options] TEST_FILE_OR_DIRECTORY...",
        description="Run Groonga tests",
        allow_abbrev=False,
    )
    parser.add_argument("targets", nargs="*", metavar="TEST_FILE_OR_DIRECTORY",
                        help=argparse.SUPPRESS)

    def option(flag: str, handler: Handler, help: str, **kwargs) -> None:
        parser.add_argument(flag, action=_StateAction, handler=handler, help=help, **kwargs)

    def boolean(name: str, handler: Handler, help: str, *, negative_only: bool = False) -> None:
        if not negative_only:
            parser.add_argument(f"--{name}", action=_BooleanAction, handler=handler,
                                nargs=0, const=True, help=help)
        parser.add_argument(f"--no-{name}", action=_BooleanAction, handler=handler,
                            nargs=0, const=False,
                            help=help if negative_only else argparse.SUPPRESS)

    def bind(attribute: str) -> Handler:
        def handler(state: ConfigState, value: Any) -> None:
            setattr(state, attribute, value)
        return handler

    def bind_command(attribute: str) -> Handler:
        def handler(state: ConfigState, command: str) -> None:
            setattr(state, attribute, state.bind_command(command))
        return handler

    def bind_wrapper(attribute: str) -> Handler:
        def handler(state: ConfigState, command: str) -> None:
            setattr(state, attribute, command or getattr(state, f"default_{attribute}"))
        return handler

    def append_pattern(attribute: str) -> Handler:
        def handler(state: ConfigState, pattern: Pattern) -> None:
            getattr(state, attribute).append(pattern)
        return handler

    def open_output(state: ConfigState, path: str) -> None:
        if state.output is not sys.stdout:
            state.output.close()
        state.output = open(path, "w", encoding="utf-8")

    def set_random_seed(state: ConfigState, seed: int) -> None:
        state.random_seed = seed

    def set_benchmark(state: ConfigState, enabled: bool) -> None:
        if enabled:
            state.enable_benchmark()

    option("--groonga", bind_command("groonga"),
           f"Use COMMAND as groonga command ({state.groonga.command})", metavar="COMMAND")
    option("--groonga-httpd", lambda s, c: s.set_groonga_httpd(c),
           f"Use COMMAND as groonga-httpd command for groonga-httpd tests "
           f"({state.groonga_httpd.command})", metavar="COMMAND")
    option("--ngx-http-groonga-module-so", bind("ngx_http_groonga_module_so"),
           f"Use PATH as ngx_http_groonga_module.so for groonga-nginx tests "
           f"({state.ngx_http_groonga_module_so})", metavar="PATH")
    option("--groonga-suggest-create-dataset", bind_command("groonga_suggest_create_dataset"),
           f"Use COMMAND as groonga_suggest_create_dataset command "
           f"({state.groonga_suggest_create_dataset.command})", metavar="COMMAND")
    option("--groonga-synonym-generate", bind_command("groonga_synonym_generate"),
           f"Use COMMAND as groonga_synonym_generate command "
           f"({state.groonga_synonym_generate.command})", metavar="COMMAND")

    option("--interface", bind("interface"),
           f"Use INTERFACE for communicating Groonga {_choices_label(INTERFACES)} "
           f"({state.interface})", choices=INTERFACES, metavar="INTERFACE")
    boolean("use-http-post", bind("use_http_post"),
            f"Use POST to send command by HTTP ({state.use_http_post})")
    boolean("use-http-chunked", bind("use_http_chunked"),
            f"Use chunked Transfer-Encoding to send body by HTTP ({state.use_http_chunked})")
    option("--input-type", bind("input_type"),
           f"Use TYPE as the input type on load {_choices_label(INPUT_TYPES)} "
           f"({state.input_type})", choices=INPUT_TYPES, metavar="TYPE")
    option("--output-type", bind("output_type"),
           f"Use TYPE as the output type {_choices_label(OUTPUT_TYPES)} "
           f"({state.output_type})", choices=OUTPUT_TYPES, metavar="TYPE")
    option("--testee", lambda s, t: s.set_testee(t),
           f"Test against TESTEE {_choices_label(TESTEES)} ({state.testee})",
           choices=TESTEES, metavar="TESTEE")

    option("--base-directory", lambda s, d: setattr(s, "base_directory", Path(d)),
           f"Use DIRECTORY as a base directory of relative path ({state.base_directory})",
           metavar="DIRECTORY")
    option("--database", bind("database_path"),
           "Use existing database at PATH instead of creating a new database "
           "(creating a new database)", metavar="PATH")
    option("--diff", lambda s, d: s.set_diff(d),
           f"Use DIFF as diff command. Use --diff=internal to use internal differ "
           f"({state.diff})", metavar="DIFF")
    option("--diff-option", lambda s, o: s.add_diff_option(o),
           f"Use OPTION as diff command option, written as --diff-option=OPTION "
           f"when OPTION starts with - ({' '.join(state.diff_options)})",
           metavar="OPTION")
    option("--reporter", bind("reporter"),
           f"Report test result by REPORTER {_choices_label(REPORTERS)} (auto)",
           choices=REPORTERS, metavar="REPORTER")

    pattern_help = ("If NAME is /.../, NAME is treated as regular expression. "
                    "This option can be used multiple times")
    option("--test", append_pattern("test_patterns"),
           f"Run only test that name is NAME. {pattern_help}", type=_pattern, metavar="NAME")
    option("--test-suite", append_pattern("test_suite_patterns"),
           f"Run only test suite that name is NAME. {pattern_help}", type=_pattern, metavar="NAME")
    option("--exclude-test", append_pattern("exclude_test_patterns"),
           f"Exclude test that name is NAME. {pattern_help}", type=_pattern, metavar="NAME")
    option("--exclude-test-suite", append_pattern("exclude_test_suite_patterns"),
           f"Exclude test suite that name is NAME. {pattern_help}", type=_pattern, metavar="NAME")

    option("--n-workers", bind("n_workers"),
           "Use N workers to run tests (number of logical CPUs)", type=int, metavar="N")

    option("--gdb", bind_wrapper("gdb"),
           f"Run Groonga on gdb and use COMMAND as gdb ({state.default_gdb})", metavar="COMMAND")
    option("--lldb", bind_wrapper("lldb"),
           f"Run Groonga on lldb and use COMMAND as lldb ({state.default_lldb})", metavar="COMMAND")
    option("--rr", bind_wrapper("rr"),
           f"Run Groonga on 'rr record' and use COMMAND as rr ({state.default_rr})",
           metavar="COMMAND")
    option("--valgrind", bind_wrapper("valgrind"),
           f"Run Groonga on valgrind and use COMMAND as valgrind ({state.default_valgrind})",
           metavar="COMMAND")
    boolean("valgrind-gen-suppressions", bind("valgrind_gen_suppressions"),
            f"Generate suppressions for Valgrind ({state.valgrind_gen_suppressions})")

    boolean("keep-database", bind("keep_database"),
            f"Keep used database for debug after test is finished ({state.keep_database})")
    boolean("stop-on-failure", bind("stop_on_failure"),
            f"Stop immediately on the first non success test ({state.stop_on_failure})")
    boolean("suppress-omit-log", bind("suppress_omit_log"),
            f"Show omit logs instead of suppressing them ({state.suppress_omit_log})",
            negative_only=True)
    boolean("suppress-backtrace", bind("suppress_backtrace"),
            f"Show backtraces instead of suppressing them ({state.suppress_backtrace})",
            negative_only=True)

    option("--output", open_output, "Output to OUTPUT (stdout)", metavar="OUTPUT")
    boolean("use-color", bind("use_color"), "Enable colorized output (auto)")

    option("--timeout", bind("timeout"),
           f"Timeout for each test ({state.timeout})", type=float, metavar="SECOND")
    option("--read-timeout", bind("read_timeout"),
           f"Timeout for each read in test ({state.read_timeout})", type=float, metavar="SECOND")
    boolean("debug", lambda s, enabled: s.set_debug(enabled),
            f"Enable debug information ({state.debug})")
    option("--n-retries", bind("n_retries"),
           f"Retry N times on failure ({state.n_retries})", type=int, metavar="N")
    option("--shutdown-wait-timeout", bind("shutdown_wait_timeout"),
           f"Timeout for waiting shutdown ({state.shutdown_wait_timeout})",
           type=float, metavar="SECOND")
    option("--random-seed", set_random_seed, "Seed for random numbers", type=int, metavar="SEED")
    boolean("benchmark", set_benchmark, "Set options for benchmark")

    parser.add_argument("--version", action=_VersionAction, help="Show version and exit")
    return parser


def expand_bare_optional_flags(argv: Sequence[str]) -> List[str]:
    """Rewrite ``--gdb`` to ``--gdb=`` so it never takes the next argument."""

    expanded: List[str] = []
    for index, arg in enumerate(argv):
        if arg == "--":
            expanded.extend(argv[index:])
            break
        expanded.append(f"{arg}=" if arg in OPTIONAL_COMMAND_FLAGS else arg)
    return expanded


def parse_command_line(
    argv: Optional[Sequence[str]] = None,
    *,
    state: Optional[ConfigState] = None,
) -> ParseOutcome:
    """Apply ``argv`` to a ConfigState.

    Returns :class:`ExitRequest` when ``--version`` was given; nothing else is
    resolved in that case. Usage errors exit through argparse.
    """

    if argv is None:
        argv = sys.argv[1:]
    if state is None:
        state = ConfigState()
    parser = create_option_parser(state)
    namespace = argparse.Namespace(state=state)
    try:
        parser.parse_intermixed_args(expand_bare_optional_flags(argv), namespace=namespace)
    except _VersionRequested as request:
        if state.output is not sys.stdout:
            state.output.close()
        return ExitRequest(str(request))
    return Configured(state, list(getattr(namespace, "targets", [])))


def run(
    state: ConfigState,
    targets: Sequence[str],
    runner_factory: Optional[RunnerFactory] = None,
) -> bool:
    """Build the run plan for ``targets`` and execute it."""

    if not targets:
        return True

    request = state.build_run_request(targets)
    if runner_factory is None:
        runner_factory = PlanSuiteRunner
    runner = runner_factory(request)
    return runner.run(request.test_suites)


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    runner_factory: Optional[RunnerFactory] = None,
    state: Optional[ConfigState] = None,
) -> int:
    outcome = parse_command_line(argv, state=state)
    if isinstance(outcome, ExitRequest):
        print(outcome.message)
        return outcome.status

    state = outcome.state
    try:
        succeeded = run(state, outcome.targets, runner_factory)
    finally:
        if state.output is not sys.stdout:
            state.output.close()
    return 0 if succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
