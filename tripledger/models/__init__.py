"""Pydantic domain models for the trip ledger."""

from .constants import (
    DEFAULT_CATEGORIES,
    DEFAULT_PAYMENT_METHODS,
    SCHEMA_VERSION,
)  # re-export
from .expense import Expense, ExpenseIn
from .settings import SettingsLists
from .snapshot import Snapshot, SnapshotConfig
from .trip import Trip, TripIn

__all__ = [
    "DEFAULT_CATEGORIES",
    "DEFAULT_PAYMENT_METHODS",
    "SCHEMA_VERSION",
    "Expense",
    "ExpenseIn",
    "SettingsLists",
    "Snapshot",
    "SnapshotConfig",
    "Trip",
    "TripIn",
]
