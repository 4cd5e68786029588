# Overview: Decimal helpers for monetary values (2-place, half-up).

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # go through str so 0.1 stays 0.1
        return Decimal(str(value))
    return Decimal(value)


def quantize(value) -> Decimal:
    """Round to 2 places, halves away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value) -> str | None:
    if value is None:
        return None
    return str(quantize(value))


def margin_percentage(sale_price, cost_price) -> Decimal:
    """(sale - cost) / sale * 100, or 0 when sale price is 0."""
    sale = to_decimal(sale_price)
    if sale <= 0:
        return ZERO
    return quantize((sale - to_decimal(cost_price)) / sale * 100)
