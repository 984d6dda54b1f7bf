"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from typing import Any

from modules.core.exceptions import DomainError, NotFound, OperationNotAllowed


class OrderNotFound(NotFound):
    """The requested order does not exist or has been soft-deleted."""

    def __init__(self, order_id: Any) -> None:
        super().__init__(f"Order {order_id} not found.", entity_id=order_id)


class OrderItemNotFound(NotFound):
    """The item is not part of the order."""

    def __init__(self, order_id: Any, item_id: Any) -> None:
        self.order_id = order_id
        super().__init__(
            f"Order {order_id} has no item {item_id}.", entity_id=item_id
        )


class InvalidTransition(DomainError):
    """The status change is not in the transition table; nothing changed."""

    def __init__(self, order_id: Any, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(
            f"Order {order_id}: cannot transition from {current} to {requested}.",
            entity_id=order_id,
        )


class OrderNotAllowed(OperationNotAllowed):
    """The order's status forbids the operation (cancel, delete, edit)."""

    def __init__(self, order_id: Any, operation: str, status: str) -> None:
        self.operation = operation
        self.status = status
        super().__init__(
            f"Order {order_id}: cannot {operation} an order in status {status}.",
            entity_id=order_id,
        )


class PricingError(DomainError):
    """Totals came out negative; the data is inconsistent and was not saved."""
