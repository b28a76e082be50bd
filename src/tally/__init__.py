"""Tally - a small unit-test harness with terminal and JUnit reports."""

from . import assertions
from .assertions import create
from .errors import ConfigurationError, TallyError
from .plugin import PluginRegistration
from .reports import JUnitReporter, Reporter, TerminalReporter
from .session import (
    Session,
    add,
    configure_plugin,
    current_session,
    get_custom_data,
    get_default_session,
    grouped,
    plugin_summary,
    reset,
    run,
    start_suite,
    stop_suite,
    suite,
    with_suite,
)
from .suites import SuitePath
from .version import __version__


__all__ = [
    # Registration
    "add",
    "start_suite",
    "stop_suite",
    "suite",
    "with_suite",
    "grouped",
    # Running
    "run",
    "reset",
    "Session",
    "get_default_session",
    "current_session",
    "SuitePath",
    # Assertions
    "assertions",
    "create",
    # Plugins
    "PluginRegistration",
    "configure_plugin",
    "plugin_summary",
    "get_custom_data",
    # Reports
    "Reporter",
    "TerminalReporter",
    "JUnitReporter",
    # Errors
    "ConfigurationError",
    "TallyError",
]
