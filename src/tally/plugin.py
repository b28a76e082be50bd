"""Plugin registry: argument specs, custom data and summary hooks."""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tally.args import ArgumentSpec
from tally.config import BASE_ABBREVIATIONS, BASE_ARGUMENTS, base_defaults
from tally.errors import ConfigurationError


logger = logging.getLogger(__name__)

SummaryHook = Callable[[], Any]


class PluginRegistration(BaseModel):
    """What a plugin supplies when it configures itself.

    Attributes
    ----------
    plugin_name : str
        Identifies the plugin; repeated registrations under one name only
        update ``custom_data``.
    custom_data : Any
        Opaque value attached to every test added after this registration.
    arguments : dict[str, ArgumentSpec]
        Extra run options the plugin understands.
    defaults : dict[str, Any]
        Defaults for those options.
    abbreviations : dict[str, str]
        Short option names, mapped to full option names.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    plugin_name: str = Field(min_length=1)
    custom_data: Any = None
    arguments: dict[str, ArgumentSpec] = Field(default_factory=dict)
    defaults: dict[str, Any] = Field(default_factory=dict)
    abbreviations: dict[str, str] = Field(default_factory=dict)

    @field_validator("arguments", mode="before")
    @classmethod
    def _coerce_arguments(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {name: ArgumentSpec.coerce(spec) for name, spec in value.items()}
        return value


class PluginRegistry:
    """Shared state plugins hook into.

    Holds the merged option definitions and one slot of "active" custom
    data. Summary hooks run after every report, in registration order.
    """

    def __init__(self) -> None:
        self.arguments: dict[str, ArgumentSpec] = dict(BASE_ARGUMENTS)
        self._defaults: dict[str, Any] | None = None
        self.abbreviations: dict[str, str] = dict(BASE_ABBREVIATIONS)
        self.custom_data: Any = None
        self._configured: set[str] = set()
        self._summaries: dict[str, SummaryHook] = {}
        self._summaries_ordered: list[SummaryHook] = []

    @property
    def defaults(self) -> dict[str, Any]:
        """Option defaults, read from the environment when first needed."""
        if self._defaults is None:
            self._defaults = base_defaults()
        return self._defaults

    def config(self, registration: PluginRegistration | dict[str, Any]) -> None:
        """Register or re-register a plugin.

        Custom data is always replaced, so tests added from here on carry
        the new value. Arguments are only merged the first time a plugin
        name is seen.
        """
        if not isinstance(registration, PluginRegistration):
            try:
                registration = PluginRegistration.model_validate(registration)
            except ValidationError as e:
                raise ConfigurationError(f"your plugin config must supply a 'plugin_name': {e}") from None

        name = registration.plugin_name
        self.custom_data = registration.custom_data

        if name in self._configured:
            return
        self._configured.add(name)

        for arg_name, spec in registration.arguments.items():
            if arg_name in self.arguments:
                logger.warning('"%s" plugin arg "--%s" clashes with existing, disabling.', name, arg_name)
                continue
            self.arguments[arg_name] = spec
            if arg_name in registration.defaults:
                self.defaults[arg_name] = registration.defaults[arg_name]

        for short, full in registration.abbreviations.items():
            existing = self.abbreviations.get(short)
            if existing is not None:
                logger.warning(
                    '"%s" plugin arg "-%s" (abbreviates "--%s") clashes with existing abbreviation for "--%s".',
                    name, short, full, existing,
                )
                continue
            self.abbreviations[short] = full

    def get_custom_data(self) -> Any:
        """Custom data of the running test, as set when it was defined."""
        return self.custom_data

    def summary(self, name: str, fn: SummaryHook) -> None:
        """Register a hook to run after the report. Repeated names are ignored."""
        if name in self._summaries:
            return
        self._summaries[name] = fn
        self._summaries_ordered.append(fn)

    @property
    def summaries(self) -> list[SummaryHook]:
        return list(self._summaries_ordered)

    def is_configured(self, name: str) -> bool:
        return name in self._configured
