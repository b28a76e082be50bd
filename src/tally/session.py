"""Sessions own all registration state for a run.

A process-wide default session backs the module level API
(``tally.add``, ``tally.run`` and friends). Separate sessions can be created
for isolated runs, for example to test reports produced by tally itself.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TextIO

from tally.args import describe, verify
from tally.context import get_running_session, session_scope
from tally.errors import ConfigurationError
from tally.plugin import PluginRegistration, PluginRegistry, SummaryHook
from tally.registry import TestRecord, TestRegistry, load_unit
from tally.reports.base import Reporter
from tally.reports.junit import JUnitReporter
from tally.reports.terminal import TerminalReporter
from tally.runner import Runner
from tally.suites import SuitePath, SuiteStack


logger = logging.getLogger(__name__)

RunConfig = Mapping[str, Any] | Sequence[str] | None


class Session:
    """Suite stack, test registry and plugin registry for one run.

    All three are cleared by `reset`, which `run` calls once the report and
    every plugin summary are done, whether the run succeeded or not.
    """

    def __init__(self) -> None:
        self.suites = SuiteStack()
        self.registry = TestRegistry()
        self.plugins = PluginRegistry()
        self._grouping = 0

    # Registration

    def add(self, name: str, body: Callable[[], Any]) -> TestRecord:
        """Register a test. It runs when `run` is called."""
        return self.registry.add(name, body, self.suites.current, self.plugins.custom_data)

    def start_suite(self, label: str) -> SuitePath:
        return self.suites.push(label)

    def stop_suite(self, label: str | None = None) -> SuitePath:
        return self.suites.pop(label)

    def with_suite(self, label: str, fn: Callable[[], Any]) -> None:
        self.suites.with_suite(label, fn)

    @contextmanager
    def suite(self, label: str) -> Iterator[SuitePath]:
        with self.suites.suite(label) as path:
            yield path

    def grouped(self, *units: str | Path) -> None:
        """Load several test files, deferring their own `run` calls.

        While loading, the module level API targets this session and `run`
        only resets the suite stack, so tests accumulate across files. Call
        `run` once afterwards.
        """
        self._grouping += 1
        try:
            with session_scope(self):
                for unit in units:
                    load_unit(unit)
        finally:
            self._grouping -= 1

    # Plugins

    def configure_plugin(self, registration: PluginRegistration | dict[str, Any]) -> None:
        self.plugins.config(registration)

    def plugin_summary(self, name: str, fn: SummaryHook) -> None:
        self.plugins.summary(name, fn)

    def get_custom_data(self) -> Any:
        return self.plugins.get_custom_data()

    # Running

    def reporter_for(self, options: Mapping[str, Any], file: TextIO | None = None) -> Reporter:
        output = options.get("output", "terminal")
        if output == "terminal":
            return TerminalReporter(uncolored=options.get("uncolored", False), terse=options.get("terse", False), file=file)
        if output == "junit":
            return JUnitReporter(file=file, times=options.get("times", True))
        raise ConfigurationError(f"unknown output format: {output!r}")

    def run(
        self,
        config: RunConfig = None,
        defaults: Mapping[str, Any] | None = None,
        *,
        help_title: str | None = None,
        file: TextIO | None = None,
    ) -> Any:
        """Run every registered test and report the results.

        Args:
            config: Argument list (e.g. ``sys.argv[1:]``) or option table.
            defaults: Option defaults that win over tally's own.
            help_title: Heading of the ``--help`` text.
            file: Where to write the report; standard output by default.

        Returns:
            The number of failed tests, or the first non-zero value returned
            by a plugin summary hook. None while tests are being grouped.
        """
        if self._grouping:
            self.suites.reset()
            return None

        try:
            options = verify(
                config,
                self.plugins.arguments,
                self.plugins.defaults,
                self.plugins.abbreviations,
                defaults,
            )
            if options.get("help"):
                describe(
                    self.plugins.arguments,
                    self.plugins.defaults,
                    self.plugins.abbreviations,
                    title=help_title,
                    uncolored=options.get("uncolored", False),
                )
                raise SystemExit(0)

            reporter = self.reporter_for(options, file)
            logger.debug("running %d tests with %s", len(self.registry), type(reporter).__name__)
            return Runner(self).run(reporter)
        finally:
            self.reset()

    def run_with(self, reporter: Reporter) -> Any:
        """Run against an already constructed reporter."""
        try:
            return Runner(self).run(reporter)
        finally:
            self.reset()

    def reset(self) -> None:
        """Forget every test, suite and plugin registration."""
        self.registry.clear()
        self.suites.reset()
        self.plugins = PluginRegistry()


_default_session = Session()


def get_default_session() -> Session:
    """Get the process-wide session used by the module level API."""
    return _default_session


def current_session() -> Session:
    """The session grouping or running right now, else the default one."""
    return get_running_session() or _default_session


def add(name: str, body: Callable[[], Any]) -> TestRecord:
    return current_session().add(name, body)


def start_suite(label: str) -> SuitePath:
    return current_session().start_suite(label)


def stop_suite(label: str | None = None) -> SuitePath:
    return current_session().stop_suite(label)


def with_suite(label: str, fn: Callable[[], Any]) -> None:
    current_session().with_suite(label, fn)


def suite(label: str):
    """Context manager form of `start_suite`/`stop_suite`."""
    return current_session().suite(label)


def grouped(*units: str | Path) -> None:
    current_session().grouped(*units)


def run(
    config: RunConfig = None,
    defaults: Mapping[str, Any] | None = None,
    *,
    help_title: str | None = None,
    file: TextIO | None = None,
) -> Any:
    return current_session().run(config, defaults, help_title=help_title, file=file)


def reset() -> None:
    current_session().reset()


def configure_plugin(registration: PluginRegistration | dict[str, Any]) -> None:
    current_session().configure_plugin(registration)


def plugin_summary(name: str, fn: SummaryHook) -> None:
    current_session().plugin_summary(name, fn)


def get_custom_data() -> Any:
    """Custom data attached to the running test by the last plugin `config`."""
    return current_session().get_custom_data()
