"""Stock ledger arithmetic.

Pure functions over ``StockLevel`` (current, reserved) pairs.  They never
touch the database: the inventory service loads a locked row, asks the
ledger for the next level and writes it back.  A failed precondition
raises and the caller keeps the old level, so no operation has a partial
effect.

Invariant kept by every function: ``0 <= reserved <= current``.
Pieces are ``int``; meters are ``Decimal`` with three fractional digits.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Union

from modules.core.quantities import LENGTH_STEP, is_exact, to_decimal
from modules.inventory.constants import StockUnit
from modules.inventory.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    NegativeStock,
    OverRelease,
)

Quantity = Union[int, Decimal]


@dataclass(frozen=True)
class StockLevel:
    item_id: Any
    unit: str
    current: Quantity
    reserved: Quantity

    @property
    def available(self) -> Quantity:
        return self.current - self.reserved

    def __post_init__(self) -> None:
        if not 0 <= self.reserved <= self.current:
            raise ValueError(
                f"Corrupt stock level for {self.item_id}: "
                f"current={self.current}, reserved={self.reserved}."
            )


def normalize(unit: str, value: Any, *, allow_negative: bool = False) -> Quantity:
    """Coerce *value* to the exact representation of *unit*.

    Raises:
        InvalidQuantity: zero, a sign that is not allowed, a fractional
            piece count, or a length finer than a millimetre.
    """
    try:
        number = to_decimal(value)
    except (TypeError, ValueError) as exc:
        raise InvalidQuantity(str(exc)) from exc

    if number == 0 or (number < 0 and not allow_negative):
        expected = "non-zero" if allow_negative else "positive"
        raise InvalidQuantity(f"Quantity must be {expected}, got {value}.")

    if unit == StockUnit.PIECE:
        if number != number.to_integral_value():
            raise InvalidQuantity(f"Flowers are counted in whole pieces, got {value}.")
        return int(number)

    if not is_exact(number, LENGTH_STEP):
        raise InvalidQuantity(f"Lengths are kept to {LENGTH_STEP} m, got {value}.")
    return number.quantize(LENGTH_STEP)


def reserve(level: StockLevel, quantity: Any) -> StockLevel:
    """Hold *quantity* for an order; fails unless that much is available."""
    qty = normalize(level.unit, quantity)
    if level.available < qty:
        raise InsufficientStock(level.item_id, qty, level.available)
    return replace(level, reserved=level.reserved + qty)


def release(level: StockLevel, quantity: Any) -> StockLevel:
    """Drop a hold of *quantity*; fails if less than that is reserved."""
    qty = normalize(level.unit, quantity)
    if level.reserved < qty:
        raise OverRelease(level.item_id, qty, level.reserved)
    return replace(level, reserved=level.reserved - qty)


def adjust(level: StockLevel, delta: Any) -> StockLevel:
    """Receive (positive *delta*) or write off (negative *delta*) stock."""
    change = normalize(level.unit, delta, allow_negative=True)
    new_current = level.current + change
    if new_current < level.reserved:
        raise NegativeStock(level.item_id, change, level.current, level.reserved)
    return replace(level, current=new_current)


def consume(level: StockLevel, quantity: Any) -> StockLevel:
    """Turn a reservation into a physical deduction."""
    qty = normalize(level.unit, quantity)
    if level.reserved < qty:
        raise OverRelease(level.item_id, qty, level.reserved)
    return replace(level, current=level.current - qty, reserved=level.reserved - qty)
