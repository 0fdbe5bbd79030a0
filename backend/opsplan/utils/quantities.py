"""
Fixed-point helpers.

Quantities carry 4 decimal places (material units), money carries 2.
Values are parsed from whatever the caller has (str, int, float, Decimal)
through ``str`` so binary float noise never reaches the ledger.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

QTY_PLACES = Decimal("0.0001")
MONEY_PLACES = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def qty(value: Any) -> Decimal:
    return to_decimal(value).quantize(QTY_PLACES, rounding=ROUND_HALF_UP)


def money(value: Any) -> Decimal:
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)

