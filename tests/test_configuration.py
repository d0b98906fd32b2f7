from __future__ import annotations

import dataclasses
import io
import os
from pathlib import Path

import pytest
from conftest import posix_only, write_executable

from grntest.runner.commands import ToolBinding
from grntest.runner.configuration import DiagnosticsSettings
from grntest.runner.patterns import parse_name_or_pattern
from grntest.runner.utils import env_flag, guess_color_availability


class FakeTerminal(io.StringIO):
    def isatty(self) -> bool:
        return True


def test_defaults(make_state):
    state = make_state()

    assert state.interface == "stdio"
    assert state.testee == "groonga"
    assert state.input_type == "json"
    assert state.output_type == "json"
    assert state.base_directory == Path(".")
    assert state.database_path is None
    assert state.timeout == 5.0
    assert state.read_timeout == 3.0
    assert state.shutdown_wait_timeout == 5.0
    assert state.n_retries == 0
    assert state.suppress_omit_log
    assert state.suppress_backtrace
    assert not state.keep_database
    assert state.groonga == ToolBinding("groonga", "groonga", False)
    assert state.diff == "internal"
    assert state.diff_options == []


@posix_only
def test_tools_are_detected_at_construction(make_executable, make_state):
    make_executable("diff")
    make_executable("groonga-suggest-create-dataset")

    state = make_state()

    assert state.diff == "diff"
    assert state.diff_options == ["-u"]
    assert state.groonga_suggest_create_dataset.available
    assert not state.groonga_synonym_generate.available


def test_reporter_depends_on_workers(make_state):
    assert make_state(cpu_count=1).reporter == "mark"
    assert make_state(cpu_count=8).reporter == "progress"

    state = make_state(cpu_count=8)
    state.reporter = "stream"
    assert state.reporter == "stream"


def test_n_workers_defaults_to_cpu_count(make_state):
    state = make_state(cpu_count=6)

    assert state.n_workers == 6
    state.n_workers = 2
    assert state.n_workers == 2


def test_benchmark_forces_single_worker_and_benchmark_reporter(make_state):
    state = make_state(cpu_count=8)

    state.enable_benchmark()

    assert state.n_workers == 1
    assert state.reporter == "benchmark-json"


def test_groonga_httpd_testee_switches_to_http(make_state):
    state = make_state()

    state.set_testee("groonga-httpd")

    assert state.testee == "groonga-httpd"
    assert state.interface == "http"
    assert state.groonga_httpd.requested == "groonga-httpd"


def test_groonga_nginx_testee_uses_nginx(make_state):
    state = make_state()

    state.set_testee("groonga-nginx")

    assert state.interface == "http"
    assert state.groonga_httpd.requested == "nginx"


def test_groonga_nginx_testee_keeps_custom_httpd(make_state):
    state = make_state()
    state.set_groonga_httpd("/opt/nginx/sbin/nginx")

    state.set_testee("groonga-nginx")

    assert state.groonga_httpd.requested == "/opt/nginx/sbin/nginx"


@posix_only
def test_first_diff_option_replaces_detected_options(make_executable, make_state):
    make_executable("cut-diff")
    state = make_state()
    assert state.diff_options == ["--context-lines", "10"]

    state.add_diff_option("--context-lines")
    state.add_diff_option("3")

    assert state.diff == "cut-diff"
    assert state.diff_options == ["--context-lines", "3"]


def test_diff_command_clears_options(make_state):
    state = make_state()
    state.add_diff_option("-u")

    state.set_diff("colordiff")
    assert state.diff_options == []

    state.add_diff_option("-U5")
    state.add_diff_option("-w")
    assert state.diff == "colordiff"
    assert state.diff_options == ["-U5", "-w"]


def test_explicit_color_choice_wins(make_state):
    state = make_state(environ={"TERM": "xterm"})
    state.output = FakeTerminal()
    state.use_color = False

    assert state.use_color is False


def test_color_guess_is_cached(make_state):
    state = make_state(environ={"TERM": "xterm-256color"})
    state.output = FakeTerminal()

    assert state.use_color is True
    state.output = io.StringIO()
    assert state.use_color is True


@pytest.mark.parametrize(
    "environ, expected",
    [
        ({"TERM": "xterm"}, True),
        ({"TERM": "xterm-color"}, True),
        ({"TERM": "xterm-256color"}, True),
        ({"TERM": "screen"}, True),
        ({"TERM": "screen-256color"}, False),
        ({"TERM": "dumb"}, False),
        ({"TERM": "dumb", "EMACS": "t"}, True),
        ({}, False),
    ],
)
def test_guess_color_availability_on_terminal(environ, expected):
    assert guess_color_availability(FakeTerminal(), environ) is expected


def test_guess_color_availability_requires_terminal():
    assert guess_color_availability(io.StringIO(), {"TERM": "xterm"}) is False


@pytest.mark.parametrize(
    "value, expected",
    [("1", True), ("yes", True), ("0", False), ("off", False), ("", False)],
)
def test_env_flag(value, expected):
    assert env_flag("GRNTEST_DEBUG", {"GRNTEST_DEBUG": value}) is expected
    assert env_flag("GRNTEST_DEBUG", {}) is False


@posix_only
def test_plugins_directory_prefers_installed_layout(tmp_path, make_state):
    prefix = tmp_path / "prefix"
    groonga = write_executable(prefix / "bin" / "groonga")
    (prefix / "lib" / "groonga" / "plugins").mkdir(parents=True)
    (prefix / "plugins").mkdir()
    state = make_state()
    state.groonga = state.bind_command(str(groonga))

    assert state.plugins_directory() == prefix / "lib" / "groonga" / "plugins"


@posix_only
def test_plugins_directory_falls_back_to_build_tree(tmp_path, make_state):
    build = tmp_path / "build"
    groonga = write_executable(build / "src" / "groonga")
    state = make_state()
    state.groonga = state.bind_command(str(groonga))

    assert state.plugins_directory() == build / "plugins"


@posix_only
def test_plugins_directory_uses_search_path(tmp_path, bin_dir, make_executable, make_state):
    make_executable("groonga")
    state = make_state()
    state.groonga = ToolBinding("groonga", "groonga", False)

    assert state.plugins_directory() == bin_dir.parent / "plugins"


@posix_only
def test_plugins_directory_with_relative_search_path(tmp_path, chdir, make_state):
    prefix = tmp_path / "prefix"
    write_executable(prefix / "bin" / "groonga")
    (prefix / "lib" / "groonga" / "plugins").mkdir(parents=True)
    chdir(prefix)
    state = make_state(environ={"PATH": "bin"})

    assert state.groonga == ToolBinding("groonga", os.path.join("bin", "groonga"), True)
    assert state.plugins_directory().resolve() == (prefix / "lib" / "groonga" / "plugins").resolve()


def test_debug_replays_held_messages_and_enables_platform_logging(make_state):
    printed = []
    state = make_state(printed=printed)
    assert printed == []

    state.set_debug(True)

    assert state.platform.verbose
    assert "No diff command found, using internal differ" in printed

def test_plugins_directory_unknown_groonga(make_state):
    assert make_state().plugins_directory() is None


def test_diagnostics_settings(make_state):
    state = make_state()
    state.valgrind_gen_suppressions = True
    assert not state.diagnostics().generate_valgrind_suppressions

    state.valgrind = "valgrind"
    assert state.diagnostics() == DiagnosticsSettings(valgrind="valgrind", valgrind_gen_suppressions=True)
    assert state.diagnostics().generate_valgrind_suppressions


def test_target_predicates(make_state):
    state = make_state()
    state.test_patterns.append(parse_name_or_pattern("/a/"))
    state.exclude_test_patterns.append(parse_name_or_pattern("ab"))
    state.exclude_test_suite_patterns.append(parse_name_or_pattern("/^load/"))

    assert state.target_test("axc")
    assert not state.target_test("ab")
    assert not state.target_test("zzz")
    assert state.target_test_suite("select")
    assert not state.target_test_suite("Load/array")


def test_build_run_request(tmp_path, make_state):
    root = tmp_path / "suite"
    for relative in ("status.test", "select/basic.test", "select/sort.test", "load/basic.test"):
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")
    state = make_state(cpu_count=1)
    state.test_suite_patterns.append(parse_name_or_pattern("/^(select|load)$/"))
    state.exclude_test_patterns.append(parse_name_or_pattern("sort"))
    state.random_seed = 29
    state.use_color = False

    request = state.build_run_request([root])

    assert {group: [case.name for case in cases] for group, cases in request.test_suites.items()} == {
        "load": ["basic"],
        "select": ["basic"],
    }
    assert request.n_tests == 2
    assert request.reporter == "mark"
    assert request.n_workers == 1
    assert request.use_color is False
    assert request.diagnostics == DiagnosticsSettings()
    assert request.create_random().random() == request.create_random().random()
    with pytest.raises(dataclasses.FrozenInstanceError):
        request.timeout = 10.0  # type: ignore[misc]


def test_build_run_request_snapshots_options(tmp_path, make_state):
    state = make_state()
    state.use_color = False
    state.add_diff_option("-u")

    request = state.build_run_request([tmp_path])
    state.add_diff_option("-w")

    assert request.diff_options == ("-u",)
    assert request.test_suites == {}


def test_debug_environment_flag_enables_logging(tmp_path, make_state):
    printed = []
    state = make_state(environ={"GRNTEST_DEBUG": "1"}, printed=printed)
    state.use_color = False

    state.build_run_request([tmp_path / "missing"])

    assert state.debug
    assert "No diff command found, using internal differ" in printed
    assert f"Skipping missing test target: {tmp_path / 'missing'}" in printed
    assert printed[-1].startswith("Selected 0 test(s)")


def test_no_logging_without_debug(tmp_path, make_state):
    printed = []
    state = make_state(printed=printed)
    state.use_color = False

    state.build_run_request([tmp_path / "missing"])

    assert printed == []
