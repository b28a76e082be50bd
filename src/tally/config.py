"""Core run options and their environment backed defaults."""

from typing import Any, Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from tally.args import ArgumentSpec
from tally.errors import ConfigurationError


BASE_ARGUMENTS: dict[str, ArgumentSpec] = {
    "output": ArgumentSpec(choices=["terminal", "junit"], description="choose the output format"),
    "uncolored": ArgumentSpec(choices=[True, False], description="disable colors"),
    "terse": ArgumentSpec(choices=[True, False], description="don't print passing tests"),
    "times": ArgumentSpec(choices=[True, False], description="record times in junit output"),
    "help": ArgumentSpec(choices=[True, False], description="print this message"),
}

BASE_ABBREVIATIONS: dict[str, str] = {
    "c": "uncolored",
    "t": "terse",
    "h": "help",
    "o": "output",
}


class RunSettings(BaseSettings):
    """Defaults for run options.

    Loads from environment variables (or a ``.env`` file) automatically:
        TALLY_OUTPUT, TALLY_UNCOLORED, TALLY_TERSE, TALLY_TIMES, NO_COLOR

    Any value of ``NO_COLOR``, even an empty one, disables colours.
    """

    output: Literal["terminal", "junit"] = "terminal"
    uncolored: bool = False
    terse: bool = False
    times: bool = True
    no_color: str | None = Field(default=None, validation_alias="NO_COLOR")

    model_config = SettingsConfigDict(
        env_prefix="TALLY_",
        env_file=".env",
        extra="ignore",
    )


def base_defaults() -> dict[str, Any]:
    """Run option defaults, read from the environment on every call."""
    try:
        settings = RunSettings()
    except ValidationError as e:
        raise ConfigurationError(f"invalid environment setting: {e}") from None
    return {
        "output": settings.output,
        "uncolored": settings.uncolored or settings.no_color is not None,
        "terse": settings.terse,
        "times": settings.times,
        "help": False,
    }
