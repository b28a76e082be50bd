"""Reporter interface consumed by the runner."""

from abc import ABC, abstractmethod

from tally.color import PLAIN, Palette
from tally.formatting import Message
from tally.outcomes import ErrorRecord
from tally.suites import SuitePath


class Reporter(ABC):
    """Receives suite, test and summary events and produces one output format.

    Events arrive in this order: ``start``, then for every test an optional
    ``suite_end``/``suite_begin`` pair followed by ``test_result``, and
    finally ``summary``.
    """

    #: Palette assertions use for failure messages while this reporter runs.
    palette: Palette = PLAIN

    def start(self) -> None:
        """Called once before the first test runs."""

    @abstractmethod
    def suite_begin(self, path: SuitePath) -> None: ...

    @abstractmethod
    def test_result(
        self,
        name: str,
        successes: int,
        failures: list[Message],
        error: ErrorRecord | None,
    ) -> None: ...

    def suite_end(self, path: SuitePath) -> None:
        """Called when the runner leaves a suite for a shallower or sibling one."""

    @abstractmethod
    def summary(
        self,
        tests_passed: int,
        tests_failed: int,
        assertions_passed: int,
        assertions_failed: int,
    ) -> None: ...
