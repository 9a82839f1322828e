from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Numeric = Union[int, float, str, Decimal]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Numeric) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Numeric) -> Decimal:
    """Quantize to cents, halves away from zero."""
    money = to_money(value)
    # NaN and Infinity are left for validation to reject
    if not money.is_finite():
        return money
    return money.quantize(CENT, rounding=ROUND_HALF_UP)


def divide_money(amount: Numeric, parts: int) -> Decimal:
    # zero-length sets are rejected by validation before we get here
    assert parts > 0, "cannot divide money between zero people"
    return round_money(to_money(amount) / parts)


def money_to_float(value: Decimal) -> float:
    return float(round_money(value))


def format_money(value: Decimal, currency: str | None = None) -> str:
    text = f"{round_money(value):,.2f}"
    return f"{text} {currency}" if currency else text
