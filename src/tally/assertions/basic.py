"""Built-in assertions: equality, truthiness, tolerance and containment."""

import math
import re
from collections.abc import Callable
from typing import Any

from rich.text import Text

from tally.assertions.base import create
from tally.context import get_palette
from tally.formatting import stringify


DEFAULT_TOLERANCE = 1e-10


def _preamble(text: str | None) -> Text:
    return Text.assemble(get_palette().msg(text), "\n") if text else Text()


# Predicates

def _equals(got: Any, expected: Any, text: str | None = None) -> bool:
    return got == expected


def _nearly_equals(got: float, expected: float, tolerance: float | None = None, text: str | None = None) -> bool:
    return math.fabs(got - expected) <= (DEFAULT_TOLERANCE if tolerance is None else tolerance)


def _string_contains(got: Any, pattern: Any, text: str | None = None) -> bool:
    if not isinstance(got, str) or not isinstance(pattern, str):
        return False
    return re.search(pattern, got) is not None


def _raised_message(fn: Callable[[], Any]) -> str | None:
    try:
        fn()
    except Exception as e:
        return str(e)
    return None


def _error_contains(pattern: str, fn: Callable[[], Any]) -> bool:
    # An empty pattern would match any error at all.
    if pattern == "":
        return False
    message = _raised_message(fn)
    return message is not None and re.search(pattern, message) is not None


# Failure messages

def _equals_message(location: Text, got: Any, expected: Any, text: str | None = None) -> Text:
    palette = get_palette()
    expected_s = stringify(expected, palette.value)
    got_s = stringify(got, palette.fail)

    if "\n" in expected_s.plain or "\n" in got_s.plain:
        comparison = Text.assemble("\nexpected: ", expected_s, ", got: ", got_s)
    elif len(expected_s) + len(got_s) < 48:
        comparison = Text.assemble("expected: ", expected_s, ", got: ", got_s)
    else:
        comparison = Text.assemble("expected: \n", expected_s, ".\ngot: \n", got_s)

    return Text.assemble(_preamble(text), location, comparison)


def _nearly_equals_message(
    location: Text, got: float, expected: float, tolerance: float | None = None, text: str | None = None
) -> Text:
    palette = get_palette()
    tolerance = DEFAULT_TOLERANCE if tolerance is None else tolerance
    comparison = Text.assemble(
        "expected: ", stringify(got, palette.fail),
        " to be nearly ", stringify(expected, palette.value),
        " (tolerance of ", stringify(tolerance, palette.warn),
        ", out by ", stringify(math.fabs(expected - got), palette.fail), ")",
    )
    return Text.assemble(_preamble(text), location, comparison)


def _string_contains_message(location: Text, got: Any, pattern: Any, text: str | None = None) -> Text:
    palette = get_palette()

    if not isinstance(got, str) or not isinstance(pattern, str):
        got_s = stringify(got, palette.pass_ if isinstance(got, str) else palette.fail)
        pattern_s = stringify(pattern, palette.pass_ if isinstance(pattern, str) else palette.fail)
        preamble = _preamble(text or "string_contains: type error")
        body = Text.assemble("expected two strings, got: ", got_s, " and: ", pattern_s)
    else:
        pattern_s = stringify(pattern, palette.value)
        got_s = stringify(got, palette.fail)
        newline1 = "\n" if len(pattern) > 80 or "\n" in pattern else ""
        newline2 = "\n" if len(got) > 80 or "\n" in got else ", "
        preamble = _preamble(text or "string_contains: no match")
        body = Text.assemble(newline1, "matching: ", pattern_s, newline2, "against: ", got_s)

    return Text.assemble(preamble, location, body)


def _error_contains_message(location: Text, pattern: str, fn: Callable[[], Any]) -> Text:
    return _string_contains_message(location, _raised_message(fn), pattern, "error_contains: no match")


def _truth_message(expected: str) -> Callable[..., Text]:
    def message(location: Text, got: Any, text: str | None = None) -> Text:
        palette = get_palette()
        return Text.assemble(
            _preamble(text), location, "expected: ", palette.value(expected), ", got: ", stringify(got, palette.fail)
        )

    return message


def _is_true(got: Any, text: str | None = None) -> bool:
    return got is True


def _truthy(got: Any, text: str | None = None) -> bool:
    return bool(got)


def _falsey(got: Any, text: str | None = None) -> bool:
    return not got


def _is_false(got: Any, text: str | None = None) -> bool:
    return got is False


def _is_none(got: Any, text: str | None = None) -> bool:
    return got is None


# Takes (got, expected, [text]).
equals = create(_equals, _equals_message)
eq = equals

# Take (got, [text]).
truthy = create(_truthy, _truth_message("truthy"))
is_true = create(_is_true, _truth_message("True"))
falsey = create(_falsey, _truth_message("falsey"))
is_false = create(_is_false, _truth_message("False"))
is_none = create(_is_none, _truth_message("None"))

# Takes (got, expected, [tolerance, [text]]).
near = create(_nearly_equals, _nearly_equals_message)
nearly = near

# Takes (got, pattern, [text]); the pattern is a regular expression.
string_contains = create(_string_contains, _string_contains_message)

# Takes (pattern, fn); fn must raise an error whose message matches.
error_contains = create(_error_contains, _error_contains_message)
