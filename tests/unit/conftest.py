import pytest

import tally


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Run every test without option overrides from the environment."""
    for name in ("NO_COLOR", "TALLY_OUTPUT", "TALLY_UNCOLORED", "TALLY_TERSE", "TALLY_TIMES"):
        monkeypatch.delenv(name, raising=False)
    tally.reset()
    yield
    tally.reset()
