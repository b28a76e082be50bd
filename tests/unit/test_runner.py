"""Tests for the runner core: event order, outcomes and plugin hooks."""

import sys

import pytest

from tally.assertions import eq, truthy
from tally.color import COLORED
from tally.context import get_palette, get_running_session
from tally.reports.base import Reporter
from tally.runner import Runner, RunTotals
from tally.outcomes import ErrorRecord, Errored, Failed, Passed
from tally.session import Session
from tally.suites import ROOT


class RecordingReporter(Reporter):
    """Keeps every event it receives, labelled by suite title or test name."""

    def __init__(self, palette=None):
        if palette is not None:
            self.palette = palette
        self.events = []
        self.results = {}
        self.totals = None

    def start(self):
        self.events.append("start")

    def suite_begin(self, path):
        self.events.append(("begin", path.title() or "<root>"))

    def suite_end(self, path):
        self.events.append(("end", path.title() or "<root>"))

    def test_result(self, name, successes, failures, error):
        self.events.append(("test", name))
        self.results[name] = (successes, failures, error)

    def summary(self, tests_passed, tests_failed, assertions_passed, assertions_failed):
        self.events.append("summary")
        self.totals = (tests_passed, tests_failed, assertions_passed, assertions_failed)


@pytest.fixture
def session():
    return Session()


def run(session, reporter=None):
    reporter = reporter or RecordingReporter()
    result = Runner(session).run(reporter)
    return result, reporter


class TestEventOrder:
    def test_no_tests(self, session):
        result, reporter = run(session)

        assert result == 0
        assert reporter.events == ["start", "summary"]
        assert reporter.totals == (0, 0, 0, 0)

    def test_root_tests_begin_the_root_suite_once(self, session):
        session.add("a", lambda: eq(1, 1))
        session.add("b", lambda: eq(2, 2))

        _, reporter = run(session)

        assert reporter.events == ["start", ("begin", "<root>"), ("test", "a"), ("test", "b"), "summary"]

    def test_sibling_suites(self, session):
        with session.suite("suite 1"):
            session.add("jabberwock", lambda: eq(1, 1))
        with session.suite("suite 2"):
            session.add("mimsy", lambda: eq(1, 1))

        _, reporter = run(session)

        assert reporter.events == [
            "start",
            ("begin", "suite 1"),
            ("test", "jabberwock"),
            ("end", "suite 1"),
            ("begin", "suite 2"),
            ("test", "mimsy"),
            "summary",
        ]

    def test_nested_suites_only_end_when_not_deeper(self, session):
        with session.suite("outer"):
            session.add("t1", lambda: None)
            with session.suite("inner"):
                session.add("t2", lambda: None)
            session.add("t3", lambda: None)

        _, reporter = run(session)

        assert reporter.events == [
            "start",
            ("begin", "outer"),
            ("test", "t1"),
            ("begin", "outer > inner"),
            ("test", "t2"),
            ("end", "outer > inner"),
            ("begin", "outer"),
            ("test", "t3"),
            "summary",
        ]

    def test_same_label_pushed_twice_is_two_suites(self, session):
        with session.suite("s"):
            session.add("a", lambda: None)
        with session.suite("s"):
            session.add("b", lambda: None)

        _, reporter = run(session)

        assert reporter.events.count(("begin", "s")) == 2
        assert ("end", "s") in reporter.events

    def test_tests_run_in_registration_order(self, session):
        order = []
        for name in ("one", "two", "three"):
            session.add(name, lambda name=name: order.append(name))

        run(session)

        assert order == ["one", "two", "three"]


class TestOutcomes:
    def test_results_and_totals(self, session):
        def failing():
            eq(1, 1)
            eq(1, 2)
            eq(3, 4)

        def erroring():
            truthy(True)
            raise RuntimeError("boom")

        session.add("passing", lambda: eq(1, 1))
        session.add("failing", failing)
        session.add("erroring", erroring)

        result, reporter = run(session)

        assert result == 2
        assert reporter.totals == (1, 2, 3, 2)

        assert reporter.results["passing"] == (1, [], None)

        successes, failures, error = reporter.results["failing"]
        assert successes == 1
        assert len(failures) == 2
        assert error is None

        successes, failures, error = reporter.results["erroring"]
        assert successes == 1
        assert failures == []
        assert isinstance(error, ErrorRecord)
        assert error.message.endswith("RuntimeError: boom")
        assert "test_runner.py" in error.message

    def test_error_does_not_stop_the_run(self, session):
        session.add("explodes", lambda: 1 / 0)
        session.add("after", lambda: eq(1, 1))

        result, reporter = run(session)

        assert result == 1
        assert reporter.results["after"] == (1, [], None)

    def test_sys_exit_fails_only_its_own_test(self, session):
        session.add("calls exit", lambda: sys.exit(3))
        session.add("after", lambda: eq(1, 1))

        result, reporter = run(session)

        assert result == 1
        _, _, error = reporter.results["calls exit"]
        assert error.message.endswith("SystemExit: 3")
        assert reporter.results["after"] == (1, [], None)

    def test_ledger_is_fresh_for_each_test(self, session):
        session.add("fails", lambda: eq(1, 2))
        session.add("passes", lambda: None)

        _, reporter = run(session)

        assert reporter.results["passes"] == (0, [], None)

    def test_palette_comes_from_reporter(self, session):
        seen = []
        session.add("colors", lambda: seen.append(get_palette()))

        run(session, RecordingReporter(palette=COLORED))

        assert seen == [COLORED]

    def test_running_session_is_visible(self, session):
        seen = []
        session.add("who", lambda: seen.append(get_running_session()))

        run(session)

        assert seen == [session]
        assert get_running_session() is None


class TestRunTotals:
    def test_errored_counts_as_failed_test(self):
        totals = RunTotals()
        totals.record(Passed(successes=2))
        totals.record(Failed(successes=1, failures=("a", "b")))
        totals.record(Errored(error=ErrorRecord("x"), successes=3, failures=("c",)))

        assert totals == RunTotals(tests_passed=1, tests_failed=2, assertions_passed=6, assertions_failed=3)


class TestPluginData:
    def test_each_test_sees_data_from_its_definition(self, session):
        seen = {}

        session.configure_plugin({"plugin_name": "p", "custom_data": "first"})
        session.add("a", lambda: seen.setdefault("a", session.get_custom_data()))
        session.configure_plugin({"plugin_name": "p", "custom_data": "second"})
        session.add("b", lambda: seen.setdefault("b", session.get_custom_data()))

        run(session)

        assert seen == {"a": "first", "b": "second"}

    def test_data_cleared_after_run(self, session):
        session.configure_plugin({"plugin_name": "p", "custom_data": "data"})
        session.add("a", lambda: None)

        run(session)

        assert session.get_custom_data() is None


class TestSummaryHooks:
    def test_hooks_run_after_summary_in_order(self, session):
        calls = []
        session.plugin_summary("first", lambda: calls.append("first"))
        session.plugin_summary("second", lambda: calls.append("second"))
        session.add("fails", lambda: eq(1, 2))

        result, _ = run(session)

        assert calls == ["first", "second"]
        assert result == 1

    def test_first_non_zero_result_wins(self, session):
        calls = []

        def zero():
            calls.append("zero")
            return 0

        def stop():
            calls.append("stop")
            return "stopped"

        session.plugin_summary("zero", zero)
        session.plugin_summary("stop", stop)
        session.plugin_summary("never", lambda: calls.append("never"))

        result, _ = run(session)

        assert result == "stopped"
        assert calls == ["zero", "stop"]


def test_runner_does_not_reset_the_session(session):
    session.add("kept", lambda: None)

    run(session)

    assert len(session.registry) == 1
    assert session.suites.current == ROOT
