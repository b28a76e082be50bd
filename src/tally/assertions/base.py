"""Assertion ledger and the factory that builds assertions on top of it."""

import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from rich.text import Text

from tally.context import get_ledger, get_palette
from tally.errors import ConfigurationError
from tally.formatting import Message, normalize_path, stringify


class MessageBuilder(Protocol):
    """Builds the failure message of an assertion.

    Receives the caller location (``"file:line: "``) followed by the same
    arguments the assertion was called with. A plain string result is shown
    exactly as written; return a rich ``Text`` to add colour.
    """

    def __call__(self, location: Text, *args: Any) -> Message: ...


@dataclass
class Ledger:
    """Successes and failure messages recorded while one test runs.

    Attributes
    ----------
    successes : int
        Number of assertions that held.
    failures : list[Message]
        Failure messages, in the order they were recorded.
    """

    successes: int = 0
    failures: list[Message] = field(default_factory=list)

    def record_success(self) -> None:
        self.successes += 1

    def record_failure(self, message: Message) -> None:
        self.failures.append(message)

    def reset(self) -> None:
        self.successes = 0
        self.failures = []


def default_message(location: Text, *args: Any) -> Text:
    if not args:
        return Text.assemble(location, "assertion failed (no arguments)")

    rendered = Text(", ").join(stringify(a, get_palette().value) for a in args)
    return Text.assemble(location, "assertion failed with arguments: ", rendered)


def caller_location(depth: int = 2) -> Text:
    """Describe the source location ``depth`` frames above this function."""
    frame = sys._getframe(depth)
    palette = get_palette()
    filename = normalize_path(frame.f_code.co_filename)
    return Text.assemble(palette.file(filename), ":", palette.line(frame.f_lineno), ": ")


def create(
    predicate: Callable[..., Any],
    message_builder: MessageBuilder | Callable[..., Message] | None = None,
) -> Callable[..., None]:
    """Create an assertion that records into the running test's ledger.

    The returned callable takes the same arguments as ``predicate``. When the
    predicate returns something truthy a success is recorded, otherwise
    ``message_builder(location, *args)`` describes the failure, where
    ``location`` points at the line that called the assertion.

    Example:
        def equal_ignoring_case(a, b):
            return a.lower() == b.lower()

        def equal_ignoring_case_message(location, a, b):
            return f"{location}strings differ: {a!r} vs. {b!r}"

        assert_same_text = create(equal_ignoring_case, equal_ignoring_case_message)
    """
    build = message_builder or default_message

    def assertion(*args: Any) -> None:
        ledger = get_ledger()
        if ledger is None:
            msg = f"{getattr(predicate, '__name__', 'assertion')} used outside of a running test"
            raise ConfigurationError(msg)

        if predicate(*args):
            ledger.record_success()
        else:
            ledger.record_failure(build(caller_location(2), *args))

    assertion.__name__ = getattr(predicate, "__name__", "assertion")
    assertion.__doc__ = getattr(predicate, "__doc__", None)
    return assertion
