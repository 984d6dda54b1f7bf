"""Inventory domain exceptions.

Raised by the ledger and the Service Layer when a stock operation's
precondition fails.  Every failure leaves the item untouched; the API
layer translates these into HTTP responses.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Union

from modules.core.exceptions import Conflict, DomainError, NotFound, OperationNotAllowed

Quantity = Union[int, Decimal]


class StockItemNotFound(NotFound):
    """The requested flower or material does not exist or was deleted."""

    def __init__(self, item_id: Any) -> None:
        super().__init__(f"Stock item {item_id} not found.", entity_id=item_id)


class InvalidQuantity(DomainError, ValueError):
    """A quantity is non-positive or has the wrong precision for its unit."""


class InsufficientStock(Conflict):
    """A reservation asks for more than is available."""

    def __init__(self, item_id: Any, requested: Quantity, available: Quantity) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Stock item {item_id}: requested {requested}, available {available}.",
            entity_id=item_id,
        )


class OverRelease(Conflict):
    """A release (or consumption) exceeds the reserved quantity."""

    def __init__(self, item_id: Any, requested: Quantity, reserved: Quantity) -> None:
        self.requested = requested
        self.reserved = reserved
        super().__init__(
            f"Stock item {item_id}: cannot release {requested}, "
            f"only {reserved} reserved.",
            entity_id=item_id,
        )


class NegativeStock(Conflict):
    """An adjustment would drive current stock below zero or below reserved."""

    def __init__(
        self, item_id: Any, delta: Quantity, current: Quantity, reserved: Quantity
    ) -> None:
        self.delta = delta
        self.current = current
        self.reserved = reserved
        floor = "reserved stock" if current + delta >= 0 else "zero"
        super().__init__(
            f"Stock item {item_id}: adjusting {current} by {delta} "
            f"would drop below {floor} ({reserved} reserved).",
            entity_id=item_id,
        )


class SkuAlreadyExists(Conflict):
    """Another flower or material, live or deleted, already uses this SKU."""

    def __init__(self, sku: str) -> None:
        self.sku = sku
        super().__init__(f"SKU {sku} already exists.")


class StockItemInactive(OperationNotAllowed):
    """The item was deactivated and can no longer be ordered."""

    def __init__(self, item_id: Any) -> None:
        super().__init__(f"Stock item {item_id} is inactive.", entity_id=item_id)


class StockItemReserved(OperationNotAllowed):
    """The item still holds stock reserved for open orders."""

    def __init__(self, item_id: Any, reserved: Quantity) -> None:
        self.reserved = reserved
        super().__init__(
            f"Stock item {item_id}: cannot delete while {reserved} is reserved.",
            entity_id=item_id,
        )
