"""Terminal reporter: human readable results using Rich."""

from __future__ import annotations

import re
from typing import TextIO

from rich.console import Console
from rich.text import Text

from tally.color import palette_for
from tally.formatting import Message, indent
from tally.outcomes import ErrorRecord
from tally.reports.base import Reporter
from tally.suites import ROOT, SuitePath


_LOCATED_MESSAGE = re.compile(r"([^:]+):(\d+):(.*)", re.DOTALL)

SEPARATOR = "--------------------------"


class TerminalReporter(Reporter):
    """Writes one line per test with failures and errors expanded below it.

    Consecutive passing tests are not separated, a failing test always gets
    a blank line after it. In terse mode passing tests are hidden and a
    suite header is only printed once a failure inside it is reported.
    """

    PASS_TEXT = "ok"
    FAIL_TEXT = "not ok"

    def __init__(
        self,
        console: Console | None = None,
        *,
        uncolored: bool = False,
        terse: bool = False,
        file: TextIO | None = None,
    ) -> None:
        self.palette = palette_for(uncolored)
        self.console = console or Console(
            file=file,
            color_system=None if uncolored else "auto",
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )
        self.terse = terse
        self._newline_next = False
        self._terse_suite: SuitePath = ROOT
        self._terse_suite_written = False
        self._terse_any_written = False

    def _write(self, *parts: str | Text) -> None:
        """Print one line. Plain strings are printed literally, never as markup."""
        self.console.print(Text.assemble(*parts))

    def _newline_if_needed(self) -> None:
        if self._newline_next:
            self.console.print()
            self._newline_next = False

    def suite_begin(self, path: SuitePath, *, override: bool = False) -> None:
        if self.terse and not override:
            self._terse_suite = path
            self._terse_suite_written = False
            return

        self._newline_if_needed()
        if len(path.labels) == 0:
            self._write(self.palette.suite("default suite"))
            return

        parts: list[str | Text] = []
        for i, label in enumerate(path.labels):
            if i:
                parts.append(" > ")
            parts.append(self.palette.suite(label))
        self._write(*parts)

    def test_result(
        self,
        name: str,
        successes: int,
        failures: list[Message],
        error: ErrorRecord | None,
    ) -> None:
        self._newline_if_needed()
        palette = self.palette

        if error is None and not failures:
            if not self.terse:
                if successes > 0:
                    summary: list[str | Text] = [palette.pass_(successes), " pass"]
                else:
                    summary = [palette.warn("no assertions")]
                self._write(palette.pass_(self.PASS_TEXT), " ", name, " [", *summary, "]")
            return

        if self.terse and not self._terse_suite_written:
            self.suite_begin(self._terse_suite, override=True)
            self._terse_suite_written = True
            self._terse_any_written = True

        title: list[str | Text] = [palette.fail(self.FAIL_TEXT), " ", name]

        if error is not None:
            self._write(*title)
            intro: list[str | Text] = ["  (", palette.fail("ERROR"), ")"]
            match = _LOCATED_MESSAGE.match(error.message)
            if match:
                file, line, rest = match.groups()
                self._write(*intro, " ", palette.file(file), ":", palette.line(line), ":", indent(rest))
            else:
                self._write(*intro, " ", indent(error.message))
            if error.trace:
                self._write("    ", indent(error.trace))
        else:
            self._write(
                *title, " [", palette.fail(len(failures)), " fail, ", palette.pass_(successes), " pass]"
            )
            for n, failure in enumerate(failures, start=1):
                self._write("  (", palette.fail(n), ") ", indent(failure))

        self._newline_next = True

    def summary(
        self,
        tests_passed: int,
        tests_failed: int,
        assertions_passed: int,
        assertions_failed: int,
    ) -> None:
        palette = self.palette

        if not self.terse or self._terse_any_written:
            self._write(SEPARATOR)

        if tests_failed > 0:
            self._write(
                palette.pass_("pass"), ": ", palette.pass_(tests_passed), " tests, ",
                palette.pass_(assertions_passed), " assertions",
            )
            self._write(
                palette.fail("fail"), ": ", palette.fail(tests_failed), " tests, ",
                palette.fail(assertions_failed), " assertions",
            )
        else:
            self._write(palette.pass_("all tests pass"), ": ", palette.pass_(tests_passed))
            self._write(f"assertions: {assertions_passed}")
