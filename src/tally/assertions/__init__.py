"""Assertions that record into the running test's ledger."""

from .base import Ledger, MessageBuilder, create, default_message
from .basic import (
    equals,
    eq,
    error_contains,
    falsey,
    is_false,
    is_none,
    is_true,
    near,
    nearly,
    string_contains,
    truthy,
)


__all__ = [
    "Ledger",
    "MessageBuilder",
    "create",
    "default_message",
    "eq",
    "equals",
    "error_contains",
    "falsey",
    "is_false",
    "is_none",
    "is_true",
    "near",
    "nearly",
    "string_contains",
    "truthy",
]
