"""Decimal helpers for prices and fees."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")


def round_money(value: Union[Decimal, int, str]) -> Decimal:
    """Round ``value`` half-up to two decimal places.

    >>> round_money(Decimal("7.1955"))
    Decimal('7.20')
    """
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
