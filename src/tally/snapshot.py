"""Snapshot testing plugin.

Compares text produced by a test against files saved in a snapshot
directory. Unknown snapshots are reported as new; in update mode the user
is asked to approve new and changed snapshots at the end of the run.

Example:
    import sys
    import tally
    from tally import snapshot

    snapshot.configure(sys.argv[1:], {"dir": "tests/snapshots"})

    tally.add("greeting", lambda: snapshot.compare("greeting", greet("ada")))
    tally.add("report", lambda: snapshot.output("report", print_report))

    sys.exit(tally.run(sys.argv[1:]))
"""

from __future__ import annotations

import difflib
import io
import logging
import re
from collections.abc import Callable, Mapping, Sequence
from contextlib import redirect_stdout
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.prompt import Confirm
from rich.text import Text

from tally.args import ArgumentSpec, verify
from tally.assertions.base import create
from tally.color import Palette, palette_for
from tally.config import BASE_ARGUMENTS, base_defaults
from tally.context import get_palette
from tally.errors import ConfigurationError
from tally.formatting import Message
from tally.plugin import PluginRegistration
from tally.session import Session, current_session, get_custom_data


logger = logging.getLogger(__name__)

PLUGIN_NAME = "snapshot"
SUFFIX = ".snap"
DIVIDER = "=================================================="

ARGUMENTS: dict[str, ArgumentSpec] = {
    "dir": ArgumentSpec(type="string", description="directory holding snapshot files"),
    "update": ArgumentSpec(choices=[True, False], description="approve new and changed snapshots interactively"),
}
DEFAULTS: dict[str, Any] = {"update": False}

Transformer = Callable[[str], str]


@dataclass
class SnapshotEntry:
    name: str
    path: Path
    actual: str


class SnapshotStore:
    """Results of the snapshot comparisons made during one run."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False, emoji=False, soft_wrap=True)
        self.palette: Palette = palette_for(False)
        self.reset()

    def reset(self) -> None:
        self.passed: list[str] = []
        self.failed: list[SnapshotEntry] = []
        self.new: list[SnapshotEntry] = []
        self._seen: set[Path] = set()
        self._last_kind: str | None = None
        self._last_entry: SnapshotEntry | None = None

    # Comparisons

    def _directory(self) -> Path:
        directory = get_custom_data()
        if directory is None:
            raise ConfigurationError("no snapshot directory set; call snapshot.configure() before adding tests")
        return Path(directory)

    def compare(self, name: str, actual: str, transformer: Transformer | None = None) -> bool:
        """Compare ``actual`` with the saved snapshot called ``name``."""
        path = self._directory() / f"{name}{SUFFIX}"
        self._last_entry = None

        if path in self._seen:
            logger.warning("duplicate snapshot name, only the first '%s' is compared", name)
            self._last_kind = "duplicate"
            return False
        self._seen.add(path)

        if transformer is not None:
            actual = transformer(actual)
        entry = SnapshotEntry(name=name, path=path, actual=actual)
        self._last_entry = entry

        if not path.exists():
            self._last_kind = "new"
            self.new.append(entry)
            return False

        if path.read_text(encoding="utf-8") == actual:
            self._last_kind = "pass"
            self.passed.append(name)
            return True

        self._last_kind = "fail"
        self.failed.append(entry)
        return False

    def compare_output(self, name: str, fn: Callable[[], Any], transformer: Transformer | None = None) -> bool:
        """Like `compare`, using whatever ``fn`` writes to standard output."""
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            fn()
        return self.compare(name, buffer.getvalue(), transformer)

    def failure_message(self, location: Text, name: str, *_: Any) -> Message:
        palette = get_palette()
        if self._last_kind == "duplicate":
            return Text.assemble(location, "duplicate snapshot name: ", palette.value(repr(name)))
        if self._last_kind == "new":
            return Text.assemble(location, "new test: ", palette.value(repr(name)))

        entry = self._last_entry
        if entry is None:
            return Text.assemble(location, "snapshot ", palette.value(repr(name)), " did not compare")
        return Text.assemble(location, "\n", diff(entry.path, entry.actual, palette))

    # Summary hooks

    def print_new(self) -> None:
        if self.new:
            fail = self.palette.fail
            self.console.print(Text.assemble(fail("new snapshots"), ": ", fail(len(self.new)), " tests"))

    def update(self) -> int:
        """Ask the user to approve new and changed snapshots.

        Returns 1 when the user declines, which ends the run with that result.
        The store is reset either way.
        """
        try:
            return self._review()
        finally:
            self.reset()

    def _review(self) -> int:
        if not self.failed and not self.new:
            return 0

        palette = self.palette
        counts = []
        if self.new:
            counts.append(Text.assemble(str(len(self.new)), " ", palette.pass_("new"), " tests"))
        if self.failed:
            counts.append(Text.assemble(str(len(self.failed)), " ", palette.fail("failed"), " tests"))
        self.console.print(Text.assemble("snapshot actions required.\n", Text(" and ").join(counts), "."))
        if not Confirm.ask("proceed?", console=self.console):
            self.console.print(Text("ok then, exiting..."))
            return 1

        for entry in self.new:
            self.console.print(Text(DIVIDER))
            self.console.print(palette.msg(">>> begin new snapshot"))
            self.console.print(Text(entry.actual), end="")
            self.console.print(palette.msg("<<< end new snapshot"))
            self.console.print(Text.assemble("\nnew test: ", palette.file(entry.name), "."))
            if not self._approve(entry, "approve the snapshot now?"):
                return 1

        for entry in self.failed:
            self.console.print(Text(DIVIDER))
            self.console.print(diff(entry.path, entry.actual, palette))
            self.console.print(Text.assemble("\ntest has changes: ", palette.file(entry.name)))
            if not self._approve(entry, "accept changes?"):
                return 1

        self.console.print(Text.assemble(palette.pass_("done"), "! all files up-to-date."))
        return 0

    def _approve(self, entry: SnapshotEntry, question: str) -> bool:
        if not Confirm.ask(question, console=self.console):
            self.console.print(Text("looks like you have work to do; exiting..."))
            return False

        entry.path.parent.mkdir(parents=True, exist_ok=True)
        entry.path.write_text(entry.actual, encoding="utf-8")
        self.console.print(Text.assemble(self.palette.pass_("accepted"), ": ", self.palette.file(entry.path)))
        return True


def diff(path: Path, actual: str, palette: Palette) -> Text:
    """Unified diff between the saved snapshot and ``actual``."""
    saved = path.read_text(encoding="utf-8") if path.exists() else ""
    lines = difflib.unified_diff(
        saved.splitlines(keepends=True),
        actual.splitlines(keepends=True),
        fromfile=str(path),
        tofile="actual",
    )

    rendered = []
    for line in lines:
        line = line.rstrip("\n")
        if line.startswith("+") and not line.startswith("+++"):
            rendered.append(palette.pass_(line))
        elif line.startswith("-") and not line.startswith("---"):
            rendered.append(palette.fail(line))
        else:
            rendered.append(Text(line))
    return Text("\n").join(rendered)


def normalize(*patterns: str, replacement: str = "[[normalized]]") -> Transformer:
    """Build a transformer replacing every regex match with ``replacement``.

    Useful for paths, line numbers or timings that differ between machines.
    """
    compiled = [re.compile(p) for p in patterns]

    def transform(text: str) -> str:
        for pattern in compiled:
            text = pattern.sub(replacement, text)
        return text

    return transform


_store = SnapshotStore()


def configure(
    config: Mapping[str, Any] | Sequence[str] | None = None,
    defaults: Mapping[str, Any] | None = None,
    *,
    session: Session | None = None,
) -> None:
    """Configure snapshot testing for the tests added after this call.

    Must set ``dir``, either with ``--dir`` on the command line or as a
    ``dir`` element in the config or defaults. Other run options in the
    same argument list are left for ``tally.run``.
    """
    spec = {**ARGUMENTS, "uncolored": BASE_ARGUMENTS["uncolored"]}
    system_defaults = {**DEFAULTS, "uncolored": base_defaults()["uncolored"]}
    options = verify(config, spec, system_defaults, {"c": "uncolored"}, defaults, ignore_unrecognised=True)

    directory = options.get("dir")
    if not directory:
        raise ConfigurationError(
            "you failed to configure the output directory.\n"
            'pass the --dir argument at the terminal, or "dir" element in the config.'
        )

    _store.palette = palette_for(options["uncolored"])
    session = session or current_session()
    session.configure_plugin(
        PluginRegistration(
            plugin_name=PLUGIN_NAME,
            custom_data=str(Path(directory)),
            arguments=ARGUMENTS,
            defaults=DEFAULTS,
        )
    )
    session.plugin_summary("snapshot: print new tests", _store.print_new)
    if options["update"]:
        session.plugin_summary("snapshot: update", _store.update)
    session.plugin_summary("snapshot: reset self", _store.reset)


# Takes (name, actual, [transformer]).
compare = create(_store.compare, _store.failure_message)

# Takes (name, fn, [transformer]); fn's standard output is the snapshot.
output = create(_store.compare_output, _store.failure_message)
