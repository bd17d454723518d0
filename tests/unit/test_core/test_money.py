#!/usr/bin/env python3
"""Tests for Money primitive type."""

from decimal import Decimal

import pytest

from cardtracker.core.money import Money


class TestMoneyConstruction:
    """Test Money class construction."""

    @pytest.mark.currency
    def test_from_minor_units(self):
        """Test creating Money from minor units."""
        m = Money.from_minor_units(1234)
        assert m.to_minor_units() == 1234

    @pytest.mark.currency
    def test_from_string(self):
        """Test parsing from decimal strings."""
        assert Money.from_string("-50.00").to_minor_units() == -5000
        assert Money.from_string("£12.34").to_minor_units() == 1234
        assert Money.from_string("1,234.5").to_minor_units() == 123450

    @pytest.mark.currency
    def test_from_string_rejects_garbage(self):
        """Test corrupt amounts are errors, never zero."""
        for bad in ["", "abc", "12.345", "NaN"]:
            with pytest.raises(ValueError):
                Money.from_string(bad)

    @pytest.mark.currency
    def test_from_decimal_float(self):
        """Test API floats convert without binary rounding errors."""
        assert Money.from_decimal(12.3).to_minor_units() == 1230
        assert Money.from_decimal(0.1).to_minor_units() == 10
        assert Money.from_decimal(Decimal("-45.99")).to_minor_units() == -4599


class TestMoneySign:
    """Test debit/credit direction."""

    @pytest.mark.currency
    def test_negative_is_debit(self):
        """Test negative amounts are debits."""
        m = Money.from_string("-20.00")
        assert m.is_debit
        assert not m.is_credit

    @pytest.mark.currency
    def test_zero_is_neither(self):
        """Test zero is neither a debit nor a credit."""
        m = Money.from_minor_units(0)
        assert not m.is_debit
        assert not m.is_credit

    @pytest.mark.currency
    def test_abs_and_negation(self):
        """Test magnitude and negation."""
        m = Money.from_minor_units(-500)
        assert m.abs() == Money.from_minor_units(500)
        assert -m == Money.from_minor_units(500)


class TestMoneyArithmetic:
    """Test Money arithmetic and comparison."""

    @pytest.mark.currency
    def test_addition_and_subtraction(self):
        """Test adding and subtracting Money objects."""
        a = Money.from_minor_units(100)
        b = Money.from_minor_units(30)
        assert (a + b).to_minor_units() == 130
        assert (a - b).to_minor_units() == 70

    @pytest.mark.currency
    def test_comparison(self):
        """Test Money ordering."""
        assert Money.from_minor_units(50) < Money.from_minor_units(100)
        assert Money.from_minor_units(100) >= Money.from_minor_units(100)

    @pytest.mark.currency
    def test_str_is_plain_decimal(self):
        """Test string form is the store's plain decimal text."""
        assert str(Money.from_minor_units(-5000)) == "-50.00"
        assert str(Money.from_minor_units(5)) == "0.05"
        assert Money.from_minor_units(-5).to_decimal() == Decimal("-0.05")
