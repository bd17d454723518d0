#!/usr/bin/env python3
"""
Currency Parsing and Formatting Utilities

Amounts are held as integers in minor currency units (pence, cents) so that
matching compares exact values and never floats.

Currency Systems:
- The Open Banking API reports decimal major units: -50.0 means -£50.00
- Internal calculations use minor units: 100 = £1.00
- The ledger store holds plain decimal strings: "-50.00"
"""

from decimal import Decimal, InvalidOperation

MINOR_UNIT_DIGITS = 2
MINOR_UNITS_PER_MAJOR = 10**MINOR_UNIT_DIGITS

CURRENCY_SYMBOLS = {
    "GBP": "£",
    "EUR": "€",
    "USD": "$",
}


def parse_amount_to_minor_units(amount_str: str) -> int:
    """
    Parse a decimal amount string to minor units.

    Unlike a lenient parser, anything that is not a plain decimal number is an
    error: a corrupt amount must never silently become zero.

    Args:
        amount_str: String like "-50.00", "£1,234.5" or "12"

    Returns:
        Amount in minor units

    Raises:
        ValueError: If the string is empty, not numeric, or has more than two
            fractional digits

    Examples:
        parse_amount_to_minor_units("-50.00") -> -5000
        parse_amount_to_minor_units("£1,234.5") -> 123450
    """
    clean = str(amount_str).strip()
    for symbol in CURRENCY_SYMBOLS.values():
        clean = clean.replace(symbol, "")
    clean = clean.replace(",", "").strip()

    if not clean:
        raise ValueError("empty amount")

    try:
        value = Decimal(clean)
    except InvalidOperation as e:
        raise ValueError(f"not a number: {amount_str!r}") from e

    if not value.is_finite():
        raise ValueError(f"not a finite number: {amount_str!r}")

    return decimal_to_minor_units(value)


def decimal_to_minor_units(value: Decimal | int | float | str) -> int:
    """
    Convert a decimal major-unit amount to minor units without rounding.

    Floats are converted through their shortest string form, so the API's
    JSON number 12.3 becomes 1230.

    Raises:
        ValueError: If the value has more precision than the minor unit
    """
    if isinstance(value, float):
        value = Decimal(repr(value))
    elif not isinstance(value, Decimal):
        try:
            value = Decimal(value)
        except InvalidOperation as e:
            raise ValueError(f"not a number: {value!r}") from e

    if not value.is_finite():
        raise ValueError(f"not a finite number: {value}")

    scaled = value * MINOR_UNITS_PER_MAJOR
    if scaled != scaled.to_integral_value():
        raise ValueError(f"amount {value} has more than {MINOR_UNIT_DIGITS} decimal places")
    return int(scaled)


def minor_units_to_str(minor_units: int) -> str:
    """
    Convert minor units to a plain decimal string using integer arithmetic.

    Example:
        minor_units_to_str(-5000) -> "-50.00"
    """
    is_negative = minor_units < 0
    abs_units = abs(int(minor_units))

    major = abs_units // MINOR_UNITS_PER_MAJOR
    remainder = abs_units % MINOR_UNITS_PER_MAJOR

    text = f"{major}.{remainder:0{MINOR_UNIT_DIGITS}d}"
    return f"-{text}" if is_negative else text


def format_amount(minor_units: int, currency: str = "GBP") -> str:
    """Format minor units for display, e.g. "£-50.00" or "50.00 CHF"."""
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol:
        return f"{symbol}{minor_units_to_str(minor_units)}"
    return f"{minor_units_to_str(minor_units)} {currency.upper()}"
