"""Verification of run options given as argument lists or option tables.

Options can come from the command line (``["--output", "junit", "-t"]``)
or from code (``{"output": "junit", "terse": True}``). Both are checked
against the same option definitions, which plugins may extend.
"""

from __future__ import annotations

import argparse
import difflib
from collections.abc import Mapping, Sequence
from typing import Any, Literal

from pydantic import BaseModel, TypeAdapter, ValidationError, model_validator
from rich.console import Console
from rich.table import Table
from rich.text import Text

from tally.errors import ConfigurationError


ArgumentType = Literal["string", "number", "boolean"]

_TYPE_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    "string": TypeAdapter(str),
    "number": TypeAdapter(int | float),
    "boolean": TypeAdapter(bool),
}


class ArgumentSpec(BaseModel):
    """Describes one option: either a set of allowed values or a type.

    Attributes
    ----------
    choices : list[Any] | None
        Discrete values the option may take.
    type : str | None
        One of ``string``, ``number`` or ``boolean`` when any value of that
        type is allowed.
    description : str
        Shown in the help text.
    """

    choices: list[Any] | None = None
    type: ArgumentType | None = None
    description: str = ""

    @model_validator(mode="after")
    def _one_kind(self) -> ArgumentSpec:
        if (self.choices is None) == (self.type is None):
            raise ValueError("an argument needs exactly one of 'choices' or 'type'")
        return self

    @classmethod
    def coerce(cls, value: Any) -> ArgumentSpec:
        """Accept the shorthand forms ``"string"`` and ``[True, False]``."""
        if isinstance(value, ArgumentSpec):
            return value
        if isinstance(value, str):
            return cls(type=value)
        if isinstance(value, (list, tuple)):
            return cls(choices=list(value))
        return cls.model_validate(value)

    @property
    def is_boolean(self) -> bool:
        if self.type is not None:
            return self.type == "boolean"
        return all(isinstance(c, bool) for c in self.choices or [])

    def values_text(self) -> str:
        if self.choices is not None:
            return ", ".join(_token(c) for c in self.choices)
        return self.type or ""

    def convert(self, name: str, raw: str) -> Any:
        """Convert a command line string into a value for this option."""
        value = raw.strip("\"'")
        if value == "":
            raise ConfigurationError(f"malformed argument with '=' syntax for '--{name}'")

        if self.is_boolean:
            if value not in ("true", "false"):
                raise ConfigurationError(f"expected 'true' or 'false' value for '{name}', got: '{value}'")
            return value == "true"

        if self.choices is not None:
            for choice in self.choices:
                if _token(choice) == value:
                    return choice
            return value

        if self.type == "number":
            try:
                return int(value)
            except ValueError:
                try:
                    return float(value)
                except ValueError:
                    raise ConfigurationError(f"couldn't convert argument '{name}' to a number: {value}") from None

        return value

    def check(self, name: str, value: Any) -> Any:
        """Validate a value, raising ConfigurationError when it is not allowed."""
        if self.choices is not None:
            if not any(value == c and type(value) is type(c) for c in self.choices):
                raise ConfigurationError(
                    f"config element '{name}' should be one of: {self.values_text()}.\ngot: {value!r}"
                )
            return value

        try:
            return _TYPE_ADAPTERS[self.type].validate_python(value, strict=True)
        except ValidationError:
            raise ConfigurationError(
                f"config element '{name}' should have type '{self.type}' but is "
                f"'{type(value).__name__}', {value!r}"
            ) from None


def _token(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):  # type: ignore[override]
        raise ConfigurationError(message)


def _suggest(name: str, candidates: Sequence[str]) -> str:
    close = difflib.get_close_matches(name, list(candidates), n=1)
    return f" (did you mean '--{close[0]}'?)" if close else ""


def _unrecognised(name: str, spec: Mapping[str, ArgumentSpec]) -> ConfigurationError:
    return ConfigurationError(f"unrecognized argument: {name}{_suggest(name, list(spec))}")


def _build_parser(spec: Mapping[str, ArgumentSpec], abbreviations: Mapping[str, str]) -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="tally", add_help=False, allow_abbrev=False)
    taken: set[str] = set()

    for name, arg in spec.items():
        flags = [f"--{name}", f"-{name}"]
        flags += [f"-{short}" for short, full in abbreviations.items() if full == name]
        flags = [f for f in dict.fromkeys(flags) if f not in taken]
        taken.update(flags)

        if arg.is_boolean:
            parser.add_argument(*flags, dest=name, nargs="?", const="true", default=argparse.SUPPRESS)
        else:
            parser.add_argument(*flags, dest=name, default=argparse.SUPPRESS)

    return parser


def parse_argv(
    argv: Sequence[str],
    spec: Mapping[str, ArgumentSpec],
    abbreviations: Mapping[str, str] | None = None,
    *,
    ignore_unrecognised: bool = False,
) -> dict[str, Any]:
    """Turn an argument list into an option table."""
    parser = _build_parser(spec, abbreviations or {})
    try:
        namespace, extras = parser.parse_known_args(list(argv))
    except argparse.ArgumentError as e:
        raise ConfigurationError(str(e)) from None

    if extras and not ignore_unrecognised:
        first = extras[0]
        if first.startswith("-"):
            raise _unrecognised(first.lstrip("-").split("=", 1)[0], spec)
        raise ConfigurationError(f"unexpected value: {first}")

    return {name: spec[name].convert(name, raw) for name, raw in vars(namespace).items()}


def verify(
    config: Mapping[str, Any] | Sequence[str] | None,
    spec: Mapping[str, Any],
    defaults: Mapping[str, Any] | None = None,
    abbreviations: Mapping[str, str] | None = None,
    user_defaults: Mapping[str, Any] | None = None,
    *,
    ignore_unrecognised: bool = False,
) -> dict[str, Any]:
    """Build a validated option table.

    Args:
        config: An argument list, an option table, or None.
        spec: Option name to ArgumentSpec (or its shorthand).
        defaults: System defaults, applied last.
        abbreviations: Short name to full option name.
        user_defaults: Defaults supplied by the caller; these win over
            system defaults.
        ignore_unrecognised: Drop unknown options instead of failing.

    Raises:
        ConfigurationError: For unknown options, malformed arguments,
            wrong types or values outside the allowed set.
    """
    specs = {name: ArgumentSpec.coerce(s) for name, s in spec.items()}
    abbreviations = abbreviations or {}

    if config is None:
        options: dict[str, Any] = {}
    elif isinstance(config, Mapping):
        options = {}
        for key, value in config.items():
            name = abbreviations.get(key, key)
            if name in specs:
                options[name] = value
            elif not ignore_unrecognised:
                raise _unrecognised(name, specs)
    elif isinstance(config, Sequence) and not isinstance(config, str):
        options = parse_argv(config, specs, abbreviations, ignore_unrecognised=ignore_unrecognised)
    else:
        raise ConfigurationError(f"expected an argument list or an option table, got {type(config).__name__}")

    for source in (user_defaults, defaults):
        for key, value in (source or {}).items():
            if key in specs and options.get(key) is None:
                options[key] = value

    return {name: specs[name].check(name, value) for name, value in options.items()}


def describe(
    spec: Mapping[str, Any],
    defaults: Mapping[str, Any] | None = None,
    abbreviations: Mapping[str, str] | None = None,
    *,
    title: str | None = None,
    console: Console | None = None,
    uncolored: bool = False,
) -> None:
    """Print a help table describing every option."""
    console = console or Console(highlight=False, color_system=None if uncolored else "auto")
    defaults = defaults or {}
    shorts = {full: short for short, full in (abbreviations or {}).items()}

    table = Table(title=title, show_edge=False, box=None, pad_edge=False)
    table.add_column("option", style="cyan", no_wrap=True)
    table.add_column("short", style="cyan")
    table.add_column("values")
    table.add_column("default", style="magenta")
    table.add_column("description")

    for name in sorted(spec):
        arg = ArgumentSpec.coerce(spec[name])
        short = f"-{shorts[name]}" if name in shorts else ""
        default = _token(defaults[name]) if name in defaults else ""
        table.add_row(*(Text(cell) for cell in (f"--{name}", short, arg.values_text(), default, arg.description)))

    console.print(table)
