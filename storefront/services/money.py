"""
Money Utilities - Safe Decimal operations for monetary values.

Avoids float precision issues by using Decimal throughout. Floats only
appear at the JSON boundary (to_float).
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

Number = Union[str, int, float, Decimal]

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")


def to_decimal(value: Union[Number, None], strict: bool = False) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)
        strict: Raise ValueError instead of returning zero for None,
            unparseable or non-finite input

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    if value is None or isinstance(value, bool):
        if strict:
            raise ValueError(f"Not a monetary value: {value!r}")
        return Decimal("0")

    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, float):
            # repr of a float is the shortest string that round-trips, so 9.99 stays 9.99
            result = Decimal(str(value))
        else:
            result = Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        if strict:
            raise ValueError(f"Not a monetary value: {value!r}")
        return Decimal("0")

    if not result.is_finite():
        if strict:
            raise ValueError(f"Not a monetary value: {value!r}")
        return Decimal("0")
    return result


def round_money(value: Number) -> Decimal:
    """Round monetary value to cents (ROUND_HALF_UP)."""
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def to_float(value: Number) -> float:
    """
    Convert Decimal to float for JSON serialization.

    Use only at storage/API boundaries, not for internal calculations.
    """
    return float(to_decimal(value))


def add(a: Number, b: Number) -> Decimal:
    """Safe addition of monetary values."""
    return to_decimal(a) + to_decimal(b)


def multiply(value: Number, factor: Number) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)


def percent(value: Number, percent_value: Number) -> Decimal:
    """Calculate percentage of a monetary value."""
    return multiply(value, to_decimal(percent_value) / Decimal(100))


def format_money(value: Number, symbol: str = "$") -> str:
    """Format monetary value for display, e.g. $1,234.50."""
    return f"{symbol}{round_money(value):,.2f}"
