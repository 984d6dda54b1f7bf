"""Fixed-point helpers for money and length arithmetic.

Money carries two fractional digits, lengths (meters) three.  Values are
never stored or compared as floats; a float coming from JSON is read
through its shortest repr, so ``0.1`` becomes ``Decimal("0.1")``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

Number = Union[int, float, str, Decimal]

MONEY_STEP = Decimal("0.01")
LENGTH_STEP = Decimal("0.001")
ZERO_MONEY = Decimal("0.00")


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{value!r} is not a valid decimal number.")
    if isinstance(value, float):
        value = repr(value)
    try:
        number = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValueError(f"{value!r} is not a valid decimal number.") from exc
    if not number.is_finite():
        raise ValueError(f"{value!r} is not a finite number.")
    return number


def quantize_money(value: Number) -> Decimal:
    """Round a monetary value half-up to cents."""
    return to_decimal(value).quantize(MONEY_STEP, rounding=ROUND_HALF_UP)


def is_exact(value: Decimal, step: Decimal) -> bool:
    """``True`` when *value* has no digits beyond *step*."""
    return value == value.quantize(step)
