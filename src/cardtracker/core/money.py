#!/usr/bin/env python3
"""
Money Primitive Type

Immutable signed amount in integer minor units. The sign carries direction:
negative amounts are debits (spend), positive amounts are credits (payments,
refunds).
"""

from dataclasses import dataclass
from decimal import Decimal

from .currency import decimal_to_minor_units, minor_units_to_str, parse_amount_to_minor_units


@dataclass(frozen=True)
class Money:
    """
    Immutable money value in minor units.

    Examples:
        >>> spend = Money.from_string("-50.00")
        >>> spend.minor_units
        -5000
        >>> spend.abs() == Money.from_string("50")
        True
        >>> str(spend)
        '-50.00'
    """

    minor_units: int

    @classmethod
    def from_minor_units(cls, minor_units: int) -> "Money":
        """Create Money from minor units."""
        return cls(minor_units=minor_units)

    @classmethod
    def from_string(cls, amount_str: str) -> "Money":
        """
        Parse from a decimal string like "-50.00" or "£12.34".

        Raises:
            ValueError: If the string is not a valid amount
        """
        return cls(minor_units=parse_amount_to_minor_units(amount_str))

    @classmethod
    def from_decimal(cls, value: Decimal | int | float | str) -> "Money":
        """Create Money from a major-unit number as reported by the API."""
        return cls(minor_units=decimal_to_minor_units(value))

    def to_minor_units(self) -> int:
        """Get value in minor units."""
        return self.minor_units

    def to_decimal(self) -> Decimal:
        """Get value as a major-unit Decimal."""
        return Decimal(minor_units_to_str(self.minor_units))

    def abs(self) -> "Money":
        """Return the magnitude, which is the matching key."""
        return Money(minor_units=abs(self.minor_units))

    @property
    def is_debit(self) -> bool:
        return self.minor_units < 0

    @property
    def is_credit(self) -> bool:
        return self.minor_units > 0

    def __neg__(self) -> "Money":
        return Money(minor_units=-self.minor_units)

    def __add__(self, other: "Money") -> "Money":
        return Money(minor_units=self.minor_units + other.minor_units)

    def __sub__(self, other: "Money") -> "Money":
        return Money(minor_units=self.minor_units - other.minor_units)

    def __lt__(self, other: "Money") -> bool:
        return self.minor_units < other.minor_units

    def __le__(self, other: "Money") -> bool:
        return self.minor_units <= other.minor_units

    def __gt__(self, other: "Money") -> bool:
        return self.minor_units > other.minor_units

    def __ge__(self, other: "Money") -> bool:
        return self.minor_units >= other.minor_units

    def __str__(self) -> str:
        """Format as a plain decimal string, the form the ledger store holds."""
        return minor_units_to_str(self.minor_units)

    def __repr__(self) -> str:
        return f"Money(minor_units={self.minor_units})"
