"""Command line entry point: ``tally FILE.py ... [run options]``."""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from tally.errors import ConfigurationError
from tally.session import Session, get_default_session


class CLIApplication:
    """Loads test files into one session and runs them together.

    Arguments ending in ``.py`` are test files; everything else is passed to
    the run as options (``--output junit``, ``-t`` and so on).
    """

    def __init__(self, console: Console | None = None, session: Session | None = None) -> None:
        self.console = console or Console(stderr=True, highlight=False)
        self.session = session or get_default_session()

    def split(self, argv: Sequence[str]) -> tuple[list[str], list[str]]:
        files = [a for a in argv if a.endswith(".py")]
        options = [a for a in argv if not a.endswith(".py")]
        return files, options

    def run(self, argv: Sequence[str] | None = None) -> int:
        argv = list(sys.argv[1:] if argv is None else argv)
        files, options = self.split(argv)
        logging.basicConfig(
            level=logging.WARNING,
            format="%(message)s",
            handlers=[RichHandler(console=self.console, show_time=False, show_path=False)],
        )

        try:
            self.session.grouped(*files)
            result = self.session.run(options, help_title="tally: run the tests in FILE.py ...")
        except (ConfigurationError, ImportError) as e:
            self.console.print(f"[red]error:[/red] {escape(str(e))}")
            return 2
        return exit_code(result)


def exit_code(result: Any) -> int:
    """Map a run result onto a process exit status."""
    if not result:
        return 0
    if isinstance(result, int) and not isinstance(result, bool):
        return min(max(result, 1), 255)
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    return CLIApplication().run(argv)


if __name__ == "__main__":
    sys.exit(main())
