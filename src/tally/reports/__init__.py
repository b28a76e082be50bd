"""Report renderers."""

from .base import Reporter
from .junit import JUnitReporter
from .terminal import TerminalReporter


__all__ = ["JUnitReporter", "Reporter", "TerminalReporter"]
