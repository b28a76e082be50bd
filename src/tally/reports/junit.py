"""JUnit XML reporter."""

from __future__ import annotations

import platform
import sys
import time
from dataclasses import dataclass
from typing import TextIO
from xml.sax.saxutils import escape

from tally.color import PLAIN
from tally.formatting import Message, plain
from tally.outcomes import ErrorRecord
from tally.reports.base import Reporter
from tally.suites import SuitePath


XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_ATTRIBUTE_ENTITIES = {'"': "&quot;", "\n": "&#10;"}


def _attr(value: object) -> str:
    return escape(str(value), _ATTRIBUTE_ENTITIES)


def _cdata(text: str) -> str:
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


@dataclass
class _Case:
    name: str
    assertions: int
    failures: list[Message] | None = None
    error: ErrorRecord | None = None


class JUnitReporter(Reporter):
    """Buffers results per suite and writes the whole document at summary time.

    Suites appear in the order they were first entered; suites that ended up
    without test cases are left out.
    """

    palette = PLAIN

    def __init__(self, file: TextIO | None = None, *, times: bool = True) -> None:
        self.file = file
        self.times = times
        self._suites: dict[SuitePath, list[_Case]] = {}
        self._current: list[_Case] | None = None
        self._errored_tests = 0
        self._started = time.perf_counter()

    def _write(self, line: str) -> None:
        print(line, file=self.file or sys.stdout)

    def start(self) -> None:
        self._started = time.perf_counter()
        self._write(XML_DECLARATION + "\n")

    def suite_begin(self, path: SuitePath) -> None:
        self._current = self._suites.setdefault(path, [])

    def suite_end(self, path: SuitePath) -> None:
        self._current = self._suites[path]

    def test_result(
        self,
        name: str,
        successes: int,
        failures: list[Message],
        error: ErrorRecord | None,
    ) -> None:
        if self._current is None:
            raise RuntimeError("test_result received before suite_begin")

        case = _Case(name=name, assertions=successes + len(failures))
        if error is not None:
            case.error = error
            self._errored_tests += 1
        elif failures:
            case.failures = list(failures)
        self._current.append(case)

    def summary(
        self,
        tests_passed: int,
        tests_failed: int,
        assertions_passed: int,
        assertions_failed: int,
    ) -> None:
        elapsed = time.perf_counter() - self._started
        time_attr = f' time="{elapsed:g}"' if self.times else ""

        self._write(
            f'<testsuites tests="{tests_passed + tests_failed}" failures="{tests_failed}" '
            f'errors="{self._errored_tests}" assertions="{assertions_passed + assertions_failed}" '
            f'skipped="0"{time_attr}>'
        )

        for path, cases in self._suites.items():
            if not cases:
                continue
            suite_name = _attr("default" if len(path.labels) == 0 else path.title())

            self._write(f'  <testsuite name="{suite_name}">')
            self._write(
                f'    <properties><property name="Python Version" value="{platform.python_version()}" /></properties>'
            )
            for case in cases:
                opening = f'    <testcase name="{_attr(case.name)}" classname="{suite_name}" assertions="{case.assertions}"'
                if case.error is not None:
                    self._write(opening + ">")
                    self._write(f'      <error message="{_attr(case.error.message)}">')
                    self._write(f"        {_cdata(case.error.trace)}")
                    self._write("      </error>")
                    self._write("    </testcase>")
                elif case.failures:
                    self._write(opening + ">")
                    for failure in case.failures:
                        self._write(f'      <failure message="{_attr(plain(failure))}"></failure>')
                    self._write("    </testcase>")
                else:
                    self._write(opening + " />")
            self._write("  </testsuite>")

        self._write("</testsuites>")
