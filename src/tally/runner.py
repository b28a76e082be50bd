"""Runner core: executes registered tests and drives a reporter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tally.assertions.base import Ledger
from tally.context import ledger_scope, palette_scope, session_scope
from tally.outcomes import Errored, Outcome, Passed, classify, protected_call
from tally.registry import TestRecord
from tally.reports.base import Reporter
from tally.suites import NO_SUITE, SuitePath


if TYPE_CHECKING:
    from tally.session import Session


logger = logging.getLogger(__name__)


@dataclass
class RunTotals:
    """Test and assertion counts accumulated over one run."""

    tests_passed: int = 0
    tests_failed: int = 0
    assertions_passed: int = 0
    assertions_failed: int = 0

    def record(self, outcome: Outcome) -> None:
        # Assertion counts are added whatever the verdict of the test.
        self.assertions_passed += outcome.successes
        if isinstance(outcome, Passed):
            self.tests_passed += 1
        else:
            self.tests_failed += 1
            self.assertions_failed += len(outcome.failures)


class Runner:
    """Runs every test of a session, in registration order, against one reporter.

    Examples:
        session = Session()
        session.add("adds", lambda: eq(1 + 1, 2))
        failed = Runner(session).run(TerminalReporter(uncolored=True))
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.totals = RunTotals()

    def run(self, reporter: Reporter) -> Any:
        """Run all tests and plugin summaries.

        Returns the first non-zero value returned by a plugin summary hook,
        otherwise the number of failed tests. Does not reset the session;
        `Session.run` does that.
        """
        self.totals = RunTotals()
        ledger = Ledger()
        current: SuitePath = NO_SUITE

        with session_scope(self.session), palette_scope(reporter.palette):
            reporter.start()

            for record in self.session.registry:
                ledger.reset()
                outcome = self._execute(record, ledger)

                if record.suite != current:
                    if len(record.suite) <= len(current) and current != NO_SUITE:
                        reporter.suite_end(current)
                    reporter.suite_begin(record.suite)
                    current = record.suite

                self.totals.record(outcome)
                error = outcome.error if isinstance(outcome, Errored) else None
                failures = [] if isinstance(outcome, Passed) else list(outcome.failures)
                reporter.test_result(record.name, outcome.successes, failures, error)

            totals = self.totals
            logger.debug(
                "ran %d tests: %d passed, %d failed",
                totals.tests_passed + totals.tests_failed,
                totals.tests_passed,
                totals.tests_failed,
            )
            reporter.summary(
                totals.tests_passed,
                totals.tests_failed,
                totals.assertions_passed,
                totals.assertions_failed,
            )

            for hook in self.session.plugins.summaries:
                result = hook()
                if result is not None and result != 0:
                    logger.debug("summary hook %r ended the run with %r", hook, result)
                    return result

        return self.totals.tests_failed

    def _execute(self, record: TestRecord, ledger: Ledger) -> Outcome:
        """Run one body with its plugin data exposed, isolating any error."""
        plugins = self.session.plugins
        plugins.custom_data = record.plugin_data
        try:
            with ledger_scope(ledger):
                error = protected_call(record.body)
        finally:
            plugins.custom_data = None

        if error is not None:
            logger.debug("test %r raised: %s", record.name, error.message)
        return classify(ledger.successes, ledger.failures, error)


