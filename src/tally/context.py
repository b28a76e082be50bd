from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING

from tally.color import PLAIN, Palette


if TYPE_CHECKING:
    from tally.assertions.base import Ledger
    from tally.session import Session


LEDGER: ContextVar[Ledger | None] = ContextVar("ledger", default=None)
PALETTE: ContextVar[Palette] = ContextVar("palette", default=PLAIN)
SESSION_CONTEXT: ContextVar[Session | None] = ContextVar("session_context", default=None)


def get_ledger() -> Ledger | None:
    """Get the ledger of the running test, or None if no test is running."""
    return LEDGER.get()


def get_palette() -> Palette:
    """Get the palette failure messages should be coloured with."""
    return PALETTE.get()


def get_running_session() -> Session | None:
    """Get the session loading or running tests, or None outside both.

    The module level API targets this session while it is set.
    """
    return SESSION_CONTEXT.get()


@contextmanager
def ledger_scope(ledger: Ledger) -> Iterator[None]:
    """Temporarily bind `LEDGER` for the duration of the ``with`` block.

    Parameters
    ----------
    ledger : Ledger
        The ledger assertions should record into.
    """
    token = LEDGER.set(ledger)
    try:
        yield
    finally:
        LEDGER.reset(token)


@contextmanager
def palette_scope(palette: Palette) -> Iterator[None]:
    """Temporarily set `PALETTE` for the duration of the ``with`` block."""
    token = PALETTE.set(palette)
    try:
        yield
    finally:
        PALETTE.reset(token)


@contextmanager
def session_scope(session: Session) -> Iterator[None]:
    """Temporarily set `SESSION_CONTEXT` for the duration of the ``with`` block."""
    token = SESSION_CONTEXT.set(session)
    try:
        yield
    finally:
        SESSION_CONTEXT.reset(token)
