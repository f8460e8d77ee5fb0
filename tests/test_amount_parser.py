"""Tests for amount parsing."""

import pytest
from decimal import Decimal
from ledgerkit.utils.amount_parser import parse_amount


@pytest.mark.parametrize(
    "text,expected",
    [
        ("123.45", "123.45"),
        ("-123.45", "-123.45"),
        ("$123.45", "123.45"),
        ("-$123.45", "-123.45"),
        ("1,234.56", "1234.56"),
        ("(45.10)", "-45.10"),
        ("€ 9.99", "9.99"),
        ("  7 ", "7"),
        ("45.10-", "-45.10"),
        ("1,200.00 DR", "-1200.00"),
        ("80.00 cr", "80.00"),
        ("250.00 MXN", "250.00"),
        ("($3.00) USD", "-3.00"),
    ],
)
def test_parse_amount(text, expected):
    """Test parsing supported amount formats."""
    assert parse_amount(text) == Decimal(expected)


def test_parse_amount_keeps_precision():
    """Test that no float rounding happens."""
    assert str(parse_amount("0.10")) == "0.10"


@pytest.mark.parametrize("text", ["abc", "1.2.3", "NaN", "Infinity"])
def test_parse_amount_invalid(text):
    """Test that malformed amounts raise ValueError."""
    with pytest.raises(ValueError, match="Invalid amount"):
        parse_amount(text)


def test_parse_amount_empty():
    """Test that empty strings raise ValueError."""
    with pytest.raises(ValueError, match="Empty amount string"):
        parse_amount("  ")
