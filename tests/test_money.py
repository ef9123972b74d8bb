"""Tests for money helpers"""
from decimal import Decimal

import pytest

from storefront.services.money import add, format_money, multiply, percent, round_money, to_decimal, to_float


def test_to_decimal_float_keeps_short_repr():
    assert to_decimal(9.99) == Decimal("9.99")
    assert to_decimal(0.1) + to_decimal(0.2) == Decimal("0.3")


@pytest.mark.parametrize("value", [None, "abc", "NaN", True])
def test_to_decimal_lenient_returns_zero(value):
    assert to_decimal(value) == Decimal("0")


@pytest.mark.parametrize("value", [None, "abc", "Infinity", False, [1]])
def test_to_decimal_strict_raises(value):
    with pytest.raises(ValueError):
        to_decimal(value, strict=True)


def test_round_money_half_up():
    assert round_money("1.005") == Decimal("1.01")
    assert round_money(Decimal("1.5984")) == Decimal("1.60")


def test_arithmetic():
    assert add("9.99", 0.01) == Decimal("10.00")
    assert multiply(9.99, 2) == Decimal("19.98")
    assert percent(200, 8) == Decimal("16")


def test_to_float():
    assert to_float(Decimal("19.98")) == 19.98


def test_format_money():
    assert format_money(Decimal("1234.5")) == "$1,234.50"
    assert format_money(0) == "$0.00"
