"""Exceptions raised by the tally engine."""


class TallyError(Exception):
    """Base class for errors raised by tally itself."""


class ConfigurationError(TallyError):
    """The harness was configured incorrectly.

    Raised for unmatched suite boundaries, invalid plugin registrations,
    invalid run options and assertions used outside of a running test.
    These abort the whole run.
    """
