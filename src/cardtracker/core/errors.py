#!/usr/bin/env python3
"""
Error Types for the Credit Card Tracker

All errors raised by the tracker derive from CardTrackerError so callers can
tell tracker failures apart from programming errors.
"""


class CardTrackerError(Exception):
    """Base class for all tracker errors."""


class ConfigError(CardTrackerError):
    """Configuration is missing or invalid."""


class LoadError(CardTrackerError):
    """A single persisted row could not be parsed."""

    def __init__(self, message: str, row_number: int | None = None, record_id: str | None = None):
        super().__init__(message)
        self.row_number = row_number
        self.record_id = record_id


class StoreReadError(CardTrackerError):
    """The ledger store could not be read at all."""


class FetchError(CardTrackerError):
    """The transaction source failed for a card."""


class PersistError(CardTrackerError):
    """The ledger store rejected or failed a write."""


class InvariantViolation(CardTrackerError):
    """
    A ledger invariant does not hold.

    Indicates a logic defect rather than an external condition, so it carries
    enough context to find the offending records.
    """

    def __init__(self, message: str, card_id: str | None = None, record_ids: list[str] | None = None):
        self.card_id = card_id
        self.record_ids = list(record_ids or [])
        details = message
        if card_id:
            details = f"{details} (card {card_id})"
        if self.record_ids:
            details = f"{details} [records: {', '.join(self.record_ids)}]"
        super().__init__(details)
