"""Suite stack: the nesting of named suites tests are registered in."""

import itertools
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from tally.errors import ConfigurationError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SuitePath:
    """An immutable path of suite labels.

    Two paths are the same suite only if they were created by the same
    push, so equality and hashing use ``id`` alone. Equal labels pushed
    twice give two different suites.
    """

    id: int
    labels: tuple[str, ...] = field(default=(), compare=False)

    def __len__(self) -> int:
        return len(self.labels)

    def __iter__(self) -> Iterator[str]:
        return iter(self.labels)

    @property
    def is_root(self) -> bool:
        return self.id == ROOT.id

    def title(self, separator: str = " > ") -> str:
        return separator.join(self.labels)


ROOT = SuitePath(id=0)
NO_SUITE = SuitePath(id=-1)


class SuiteStack:
    """Tracks the suite labels currently in effect for registration.

    Examples:
        stack = SuiteStack()
        stack.push("parser")
        stack.push("numbers")
        stack.current.labels  # ("parser", "numbers")
        stack.pop()
        stack.current.labels  # ("parser",)
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._paths: list[SuitePath] = [ROOT]

    @property
    def current(self) -> SuitePath:
        return self._paths[-1]

    @property
    def depth(self) -> int:
        return len(self._paths) - 1

    def push(self, label: str) -> SuitePath:
        """Enter a suite nested inside the current one."""
        path = SuitePath(id=next(self._ids), labels=(*self.current.labels, label))
        self._paths.append(path)
        return path

    def pop(self, label: str | None = None) -> SuitePath:
        """Leave the innermost suite, returning to its parent.

        The label is optional and only checked against the innermost suite
        for readability of the calling code.
        """
        if self.depth == 0:
            raise ConfigurationError("unmatched suite boundaries: pop without a matching push")

        path = self._paths.pop()
        if label is not None and label != path.labels[-1]:
            logger.warning("closing suite %r with label %r", path.labels[-1], label)
        return self.current

    def with_suite(self, label: str, fn: Callable[[], Any]) -> None:
        """Run ``fn`` with ``label`` pushed, popping afterwards."""
        self.push(label)
        fn()
        self.pop(label)

    @contextmanager
    def suite(self, label: str) -> Iterator[SuitePath]:
        path = self.push(label)
        yield path
        self.pop(label)

    def reset(self) -> None:
        """Return to the root suite. Ids keep increasing across resets."""
        self._paths = [ROOT]
