"""Role based colouring of report text.

Decorators turn a value into a rich ``Text`` span. The coloured palette
styles the span, the plain palette leaves it unstyled, so both render the
same words. Text is never parsed as markup.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from rich.text import Text


Decorator = Callable[[Any], Text]


def _styled(style: str) -> Decorator:
    def decorate(value: Any) -> Text:
        return Text(str(value), style=style)

    return decorate


def _plain(value: Any) -> Text:
    return Text(str(value))


@dataclass(frozen=True)
class Palette:
    """Decorators keyed by the semantic role of the text."""

    fail: Decorator
    pass_: Decorator
    file: Decorator
    line: Decorator
    suite: Decorator
    msg: Decorator
    warn: Decorator
    value: Decorator


COLORED = Palette(
    fail=_styled("red"),
    pass_=_styled("green"),
    file=_styled("cyan"),
    line=_styled("cyan"),
    suite=_styled("blue"),
    msg=_styled("color(214)"),
    warn=_styled("yellow"),
    value=_styled("magenta"),
)

PLAIN = Palette(
    fail=_plain,
    pass_=_plain,
    file=_plain,
    line=_plain,
    suite=_plain,
    msg=_plain,
    warn=_plain,
    value=_plain,
)


def palette_for(uncolored: bool) -> Palette:
    return PLAIN if uncolored else COLORED
