"""Tests for sessions, the module level API and grouped loading."""

import io
import json
import sys
import textwrap

import pytest

import tally
from tally.assertions import eq
from tally.errors import ConfigurationError
from tally.reports import JUnitReporter, TerminalReporter
from tally.session import Session


UNIT_TEMPLATE = """
import tally
from tally.assertions import eq

with tally.suite({suite!r}):
    tally.add({test!r}, lambda: eq(1, 1))

tally.run()
"""


def write_unit(directory, name, suite, test):
    path = directory / f"{name}.py"
    path.write_text(textwrap.dedent(UNIT_TEMPLATE.format(suite=suite, test=test)))
    return path


class TestRun:
    def test_run_returns_failed_count(self):
        session = Session()
        session.add("passes", lambda: eq(1, 1))
        session.add("fails", lambda: eq(1, 2))

        assert session.run({"uncolored": True}, file=io.StringIO()) == 1

    def test_run_resets_state(self):
        session = Session()
        session.start_suite("left open")
        session.configure_plugin({"plugin_name": "p", "custom_data": 1})
        session.add("t", lambda: None)

        session.run({"uncolored": True}, file=io.StringIO())

        assert len(session.registry) == 0
        assert session.suites.depth == 0
        assert not session.plugins.is_configured("p")
        assert session.get_custom_data() is None

    def test_state_reset_even_when_options_are_bad(self):
        session = Session()
        session.add("t", lambda: None)

        with pytest.raises(ConfigurationError):
            session.run({"output": "pdf"})

        assert len(session.registry) == 0

    def test_consecutive_runs_are_identical(self):
        session = Session()

        def define():
            with session.suite("s"):
                session.add("a", lambda: eq(1, 1))
                session.add("b", lambda: eq(1, 2))

        outputs = []
        for _ in range(2):
            define()
            buffer = io.StringIO()
            session.run(["--uncolored"], file=buffer)
            outputs.append(buffer.getvalue())

        assert outputs[0] == outputs[1]

    def test_caller_defaults(self):
        session = Session()
        session.add("t", lambda: eq(1, 1))
        buffer = io.StringIO()

        session.run(None, {"output": "junit", "times": False}, file=buffer)

        assert buffer.getvalue().startswith('<?xml version="1.0"')

    def test_help_prints_options_and_exits(self, capsys):
        session = Session()
        session.add("never", lambda: pytest.fail("help should not run tests"))

        with pytest.raises(SystemExit) as info:
            session.run(["--help", "--uncolored"], help_title="my tests")

        assert info.value.code == 0
        out = capsys.readouterr().out
        assert "my tests" in out
        assert "--output" in out
        assert len(session.registry) == 0

    def test_reporter_for(self):
        session = Session()
        assert isinstance(session.reporter_for({"output": "terminal"}, io.StringIO()), TerminalReporter)
        assert isinstance(session.reporter_for({"output": "junit"}), JUnitReporter)
        with pytest.raises(ConfigurationError, match="unknown output format"):
            session.reporter_for({"output": "tap"})

    def test_run_with_reporter(self):
        session = Session()
        session.add("t", lambda: eq(1, 2))
        buffer = io.StringIO()

        assert session.run_with(TerminalReporter(uncolored=True, file=buffer)) == 1
        assert "not ok t" in buffer.getvalue()
        assert len(session.registry) == 0


class TestSuites:
    def test_with_suite(self):
        session = Session()
        session.with_suite("s", lambda: session.add("inside", lambda: None))
        session.add("outside", lambda: None)

        inside, outside = list(session.registry)
        assert inside.suite.labels == ("s",)
        assert outside.suite.labels == ()

    def test_stop_suite_returns_parent(self):
        session = Session()
        outer = session.start_suite("outer")
        session.start_suite("inner")

        assert session.stop_suite("inner") == outer
        assert session.stop_suite().is_root

    def test_stop_without_start(self):
        with pytest.raises(ConfigurationError, match="unmatched suite boundaries"):
            Session().stop_suite()


class TestModuleApi:
    def test_default_session_round_trip(self):
        with tally.suite("module"):
            tally.add("t", lambda: eq(tally.get_custom_data(), None))
        buffer = io.StringIO()

        assert tally.run(["-c"], file=buffer) == 0
        assert buffer.getvalue().startswith("module\nok t [1 pass]\n")

    def test_custom_data_through_default_session(self):
        seen = []
        tally.configure_plugin({"plugin_name": "p", "custom_data": {"dir": "x"}})
        tally.add("t", lambda: seen.append(tally.get_custom_data()))

        tally.run(["-c"], file=io.StringIO())

        assert seen == [{"dir": "x"}]

    def test_plugin_summary_runs_once(self):
        calls = []
        tally.plugin_summary("count", lambda: calls.append(1))
        tally.plugin_summary("count", lambda: calls.append(2))

        tally.run(["-c"], file=io.StringIO())

        assert calls == [1]

    def test_start_and_stop_suite(self):
        tally.start_suite("a")
        tally.add("t", lambda: None)
        tally.stop_suite("a")

        (record,) = list(tally.get_default_session().registry)
        assert record.suite.labels == ("a",)


class TestGrouped:
    def test_files_accumulate_into_one_run(self, tmp_path):
        first = write_unit(tmp_path, "grouped_first_unit", "first", "one")
        second = write_unit(tmp_path, "grouped_second_unit", "second", "two")

        tally.grouped(str(first), second)
        buffer = io.StringIO()
        result = tally.run(["--uncolored"], file=buffer)

        assert result == 0
        assert buffer.getvalue() == (
            "first\n"
            "ok one [1 pass]\n"
            "second\n"
            "ok two [1 pass]\n"
            "--------------------------\n"
            "all tests pass: 2\n"
            "assertions: 2\n"
        )

    def test_run_inside_group_returns_none(self):
        session = Session()
        session._grouping = 1
        session.start_suite("open")
        session.add("t", lambda: None)

        assert session.run() is None
        assert session.suites.depth == 0
        assert len(session.registry) == 1

    def test_dotted_module_names(self, tmp_path, monkeypatch):
        write_unit(tmp_path, "grouped_dotted_unit", "dotted", "three")
        monkeypatch.syspath_prepend(str(tmp_path))

        tally.grouped("grouped_dotted_unit")

        (record,) = list(tally.get_default_session().registry)
        assert record.name == "three"

    def test_same_file_twice_registers_twice(self, tmp_path):
        unit = write_unit(tmp_path, "grouped_twice_unit", "again", "t")

        tally.grouped(unit, unit)

        assert len(tally.get_default_session().registry) == 2

    def test_missing_module(self):
        with pytest.raises(ImportError):
            tally.grouped("no_such_tally_unit_anywhere")

    def test_units_register_into_the_grouping_session(self, tmp_path):
        unit = write_unit(tmp_path, "grouped_separate_unit", "separate", "four")
        session = Session()

        session.grouped(unit)

        (record,) = list(session.registry)
        assert record.name == "four"
        assert record.suite.labels == ("separate",)
        assert len(tally.get_default_session().registry) == 0

    def test_module_api_returns_to_default_after_grouping(self, tmp_path):
        session = Session()
        session.grouped(write_unit(tmp_path, "grouped_then_default_unit", "s", "t"))

        tally.add("later", lambda: None)

        assert tally.current_session() is tally.get_default_session()
        assert [r.name for r in tally.get_default_session().registry] == ["later"]

    def test_unit_named_like_a_standard_module(self, tmp_path):
        unit = write_unit(tmp_path, "json", "shadow", "t")

        tally.grouped(unit)

        assert sys.modules["json"] is json
        assert json.dumps([1]) == "[1]"
        assert len(tally.get_default_session().registry) == 1
