"""Money / rounding helpers.

Centralized so the expense rules, the total recompute and reports share
identical rounding semantics. Everything is ``Decimal``; floats never enter.
"""

from __future__ import annotations
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyLike = Union[Decimal, str, int]


def to_decimal(value: MoneyLike) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"not a decimal amount: {value!r}") from exc


def round2(value: MoneyLike) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def has_at_most_two_places(value: Decimal) -> bool:
    return value == value.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[MoneyLike]) -> Decimal:
    total = sum((to_decimal(v) for v in values), ZERO)
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def fuel_amount(distance: int, rate: Decimal) -> Decimal:
    return round2(Decimal(distance) * rate)
