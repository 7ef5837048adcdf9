"""
Test suite for currency module

Tests Decimal conversion, user input parsing and en-IN rupee formatting.
"""

import pytest
from decimal import Decimal

from rupee_ledger.currency import (
    to_amount, decimal_from_string, group_indian, format_inr
)


class TestToAmount:
    """Test Decimal normalisation"""

    def test_rounds_to_paise(self):
        """Amounts are quantized to two places, half up"""
        assert to_amount(Decimal('100.555')) == Decimal('100.56')
        assert to_amount(Decimal('100.554')) == Decimal('100.55')
        assert to_amount(5) == Decimal('5.00')

    def test_float_goes_through_str(self):
        """0.1 must not pick up binary expansion noise"""
        assert to_amount(0.1) == Decimal('0.10')

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_amount("abc")
        with pytest.raises(ValueError):
            to_amount(Decimal('NaN'))


class TestDecimalFromString:
    """Test parsing of typed amounts"""

    @pytest.mark.parametrize("raw,expected", [
        ("1500", Decimal('1500.00')),
        ("  250.5 ", Decimal('250.50')),
        ("1,500.75", Decimal('1500.75')),
        ("₹1,50,000", Decimal('150000.00')),
        ("-20", Decimal('-20.00')),
    ])
    def test_valid_inputs(self, raw, expected):
        assert decimal_from_string(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "1.2.3", "₹"])
    def test_invalid_inputs(self, raw):
        with pytest.raises(ValueError):
            decimal_from_string(raw)


class TestFormatINR:
    """Test Indian Rupee formatting"""

    def test_indian_grouping(self):
        """Last three digits, then groups of two"""
        assert group_indian("1") == "1"
        assert group_indian("999") == "999"
        assert group_indian("1000") == "1,000"
        assert group_indian("100000") == "1,00,000"
        assert group_indian("12345678") == "1,23,45,678"

    def test_format_amounts(self):
        assert format_inr(Decimal('0')) == "₹0.00"
        assert format_inr(Decimal('500')) == "₹500.00"
        assert format_inr(Decimal('1500.5')) == "₹1,500.50"
        assert format_inr(Decimal('10000000')) == "₹1,00,00,000.00"

    def test_negative_amount(self):
        assert format_inr(Decimal('-2500.25')) == "-₹2,500.25"
