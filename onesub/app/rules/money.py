"""Decimal helpers for prices and credit balances."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Amount = Union[Decimal, int, float, str]


def to_money(value: Amount) -> Decimal:
    """Return ``value`` as a Decimal rounded half-up to whole cents."""

    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_credits(amount: Amount | None) -> str:
    """Render a credit balance using the ``C`` credit symbol, e.g. ``C1,234.50``."""

    if amount is None:
        return "C0.00"
    quantized = to_money(amount)
    sign = "-" if quantized < 0 else ""
    return f"{sign}C{abs(quantized):,.2f}"
