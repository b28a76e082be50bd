"""Helpers for turning values and locations into report text."""

import os
from typing import Any

from rich.pretty import pretty_repr
from rich.text import Text

from tally.color import Decorator


#: A failure message. Plain strings are always shown literally.
Message = str | Text

_COMPOSITE = (dict, list, tuple, set, frozenset)


def stringify(value: Any, decorate: Decorator | None = None) -> Text:
    """Render a value for a failure message.

    Strings are quoted, containers are pretty printed (possibly over several
    lines) and everything else uses ``repr``. Pass ``decorate`` to colour
    the rendered value; the quotes around strings stay unstyled.
    """
    if isinstance(value, str):
        return Text.assemble('"', decorate(value) if decorate else value, '"')

    if isinstance(value, _COMPOSITE):
        text = pretty_repr(value, max_width=60)
    else:
        text = repr(value)

    return decorate(text) if decorate else Text(text)


def indent(text: Message) -> Message:
    """Indent every line after the first by two spaces."""
    if isinstance(text, Text):
        return Text("\n  ").join(text.split("\n", allow_blank=True))
    return text.replace("\n", "\n  ")


def normalize_path(path: str) -> str:
    """Make a source path relative to the working directory when possible."""
    try:
        relative = os.path.relpath(path)
    except ValueError:
        return path
    if relative.startswith(".."):
        return path
    return relative.replace("./", "")


def plain(message: Message) -> str:
    """The words of a message without any styling."""
    return message.plain if isinstance(message, Text) else str(message)
