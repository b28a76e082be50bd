"""Tests for the protected call and tagged outcomes."""

import sys

from tally.outcomes import ErrorRecord, Errored, Failed, Passed, classify, protected_call


def test_protected_call_returns_none_when_body_returns():
    assert protected_call(lambda: 42) is None


def test_protected_call_captures_error_with_location():
    def exploding():
        raise ValueError("boom")

    record = protected_call(exploding)

    assert isinstance(record, ErrorRecord)
    assert "test_outcomes.py:" in record.message
    assert record.message.endswith("ValueError: boom")


def test_protected_call_trace_lists_body_frames():
    def inner():
        raise KeyError("missing")

    def outer():
        inner()

    record = protected_call(outer)

    assert record is not None
    assert record.trace.startswith("traceback:")
    assert "in outer" in record.trace
    assert "in inner" in record.trace
    assert "protected_call" not in record.trace


def test_error_without_message_uses_type_name():
    def exploding():
        raise RuntimeError()

    record = protected_call(exploding)

    assert record is not None
    assert record.message.endswith(": RuntimeError")


def test_protected_call_captures_sys_exit():
    record = protected_call(lambda: sys.exit("bye"))

    assert record is not None
    assert record.message.endswith("SystemExit: bye")


def test_keyboard_interrupt_is_not_captured():
    def interrupted():
        raise KeyboardInterrupt

    try:
        protected_call(interrupted)
    except KeyboardInterrupt:
        pass
    else:
        raise AssertionError("KeyboardInterrupt should propagate")


class TestClassify:
    def test_no_failures_passes_even_without_assertions(self):
        assert classify(0, [], None) == Passed(successes=0)

    def test_failures_fail(self):
        outcome = classify(3, ["bad"], None)
        assert isinstance(outcome, Failed)
        assert outcome.failures == ("bad",)
        assert outcome.successes == 3

    def test_error_wins_over_failures(self):
        error = ErrorRecord(message="x.py:1: boom")
        outcome = classify(2, ["bad"], error)
        assert isinstance(outcome, Errored)
        assert outcome.error is error
        assert outcome.successes == 2
        assert outcome.failures == ("bad",)
