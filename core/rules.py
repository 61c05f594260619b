# core/rules.py
# Percentage and money rules shared by the quote pipeline and product margins.

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .models import TaxEntry

HUNDRED = Decimal("100")
CENTS = Decimal("0.01")


def percent_of(value: Decimal, percent: Decimal) -> Decimal:
    """value * percent / 100. No rounding."""
    return value * Decimal(percent) / HUNDRED


def total_tax_percent(taxes: Iterable[TaxEntry]) -> Decimal:
    """Tax entries add up; they are never compounded."""
    return sum((Decimal(t.percent) for t in taxes), Decimal("0"))


def money(x: Decimal) -> Decimal:
    # rounding happens only when presenting
    return Decimal(x).quantize(CENTS, rounding=ROUND_HALF_UP)
