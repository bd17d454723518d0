"""
Core Utilities Package

Shared primitives and interfaces used across the tracker.

This package provides:
- Money and date primitives with integer minor-unit arithmetic
- Configuration management for environment-specific settings
- The error hierarchy
- The TransactionSource and LedgerStore collaborator protocols
"""

from .config import Config, Environment, SourceKind, get_config, reload_config
from .currency import format_amount, minor_units_to_str, parse_amount_to_minor_units
from .datastore import LedgerStore, Row
from .dates import FinancialDate
from .errors import (
    CardTrackerError,
    ConfigError,
    FetchError,
    InvariantViolation,
    LoadError,
    PersistError,
    StoreReadError,
)
from .models import Card, FetchedTransaction
from .money import Money
from .source import TransactionSource

__all__ = [
    "Card",
    "CardTrackerError",
    # Configuration
    "Config",
    "ConfigError",
    "Environment",
    "FetchError",
    "FetchedTransaction",
    "FinancialDate",
    "InvariantViolation",
    "LedgerStore",
    "LoadError",
    "Money",
    "PersistError",
    "Row",
    "SourceKind",
    "StoreReadError",
    "TransactionSource",
    # Currency utilities
    "format_amount",
    "get_config",
    "minor_units_to_str",
    "parse_amount_to_minor_units",
    "reload_config",
]
