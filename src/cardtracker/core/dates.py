#!/usr/bin/env python3
"""
FinancialDate Primitive Type

Immutable calendar date. Time of day has no significance for matching, so
timestamps from the data source are reduced to their date.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta


@dataclass(frozen=True, order=True)
class FinancialDate:
    """Immutable financial date wrapper with consistent formatting."""

    date: date

    @classmethod
    def from_string(cls, date_str: str) -> "FinancialDate":
        """
        Parse an ISO date ("2025-01-31") or ISO timestamp
        ("2025-01-31T00:00:00Z", "2025-01-31T09:15:00+01:00").

        Raises:
            ValueError: If the string is not an ISO date or timestamp
        """
        text = str(date_str).strip()
        if not text:
            raise ValueError("empty date")

        if len(text) == 10:
            return cls(date=date.fromisoformat(text))

        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return cls(date=datetime.fromisoformat(text).date())

    @classmethod
    def today(cls) -> "FinancialDate":
        """Get today's date."""
        return cls(date=date.today())

    def to_iso_string(self) -> str:
        """Format as YYYY-MM-DD."""
        return self.date.isoformat()

    def days_between(self, other: "FinancialDate") -> int:
        """Absolute number of days between two dates."""
        return abs((other.date - self.date).days)

    def minus_days(self, days: int) -> "FinancialDate":
        return FinancialDate(date=self.date - timedelta(days=days))

    def __str__(self) -> str:
        return self.to_iso_string()

    def __repr__(self) -> str:
        return f"FinancialDate(date={self.date!r})"
