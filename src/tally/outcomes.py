"""Tagged results of executing one test body."""

import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any

from tally.formatting import Message, normalize_path


@dataclass(frozen=True)
class ErrorRecord:
    """An error raised by a test body, rendered to plain text."""

    message: str
    trace: str = ""


@dataclass(frozen=True)
class Passed:
    """The body returned and recorded no failures."""

    successes: int = 0


@dataclass(frozen=True)
class Failed:
    """The body returned but at least one assertion failed."""

    successes: int = 0
    failures: tuple[Message, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Errored:
    """The body raised. Assertions made before the raise stay counted."""

    error: ErrorRecord
    successes: int = 0
    failures: tuple[Message, ...] = field(default_factory=tuple)


Outcome = Passed | Failed | Errored


def _error_location(tb: TracebackType | None) -> tuple[str, int] | None:
    frames = traceback.extract_tb(tb)
    if not frames:
        return None
    frame = frames[-1]
    return normalize_path(frame.filename), frame.lineno or 0


def describe_error(error: BaseException, tb: TracebackType | None) -> ErrorRecord:
    """Convert an exception into a ``file:line: Type: message`` record.

    ``tb`` should start at the test body so the harness' own frames are not
    part of the trace.
    """
    detail = str(error)
    summary = f"{type(error).__name__}: {detail}" if detail else type(error).__name__
    location = _error_location(tb)
    message = f"{location[0]}:{location[1]}: {summary}" if location else summary

    lines = ["traceback:"]
    for frame in traceback.extract_tb(tb):
        lines.append(f"{normalize_path(frame.filename)}:{frame.lineno}: in {frame.name}")
    trace = "\n".join(lines) if len(lines) > 1 else ""
    return ErrorRecord(message=message, trace=trace)


def protected_call(fn: Callable[[], Any]) -> ErrorRecord | None:
    """Call ``fn`` and return an error record instead of raising.

    ``Exception`` subclasses and ``SystemExit`` are captured, so a body
    calling ``sys.exit`` fails only its own test. Interrupts still propagate.
    """
    try:
        fn()
    except (Exception, SystemExit) as e:
        tb = e.__traceback__.tb_next if e.__traceback__ is not None else None
        return describe_error(e, tb)
    return None


def classify(successes: int, failures: list[Message], error: ErrorRecord | None) -> Outcome:
    if error is not None:
        return Errored(error=error, successes=successes, failures=tuple(failures))
    if failures:
        return Failed(successes=successes, failures=tuple(failures))
    return Passed(successes=successes)
