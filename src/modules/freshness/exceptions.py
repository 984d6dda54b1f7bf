"""Freshness domain exceptions."""

from __future__ import annotations

from typing import Any

from modules.core.exceptions import DomainError, NotFound, OperationNotAllowed


class BatchNotFound(NotFound):
    """The requested freshness batch does not exist."""

    def __init__(self, batch_id: Any) -> None:
        super().__init__(f"Freshness batch {batch_id} not found.", entity_id=batch_id)


class InvalidDiscount(DomainError, ValueError):
    """A markdown percentage outside 0..100."""

    def __init__(self, batch_id: Any, percentage: Any) -> None:
        self.percentage = percentage
        super().__init__(
            f"Freshness batch {batch_id}: discount must be between 0 and 100, "
            f"got {percentage}.",
            entity_id=batch_id,
        )


class BatchAlreadySold(OperationNotAllowed):
    """A sold batch is closed for further changes."""

    def __init__(self, batch_id: Any) -> None:
        super().__init__(f"Freshness batch {batch_id} is already sold.", entity_id=batch_id)


class InvalidBatchQuantity(DomainError, ValueError):
    """A batch must hold at least one stem."""

    def __init__(self, flower_id: Any, quantity: Any) -> None:
        self.quantity = quantity
        super().__init__(
            f"Flower {flower_id}: batch quantity must be a positive whole number, "
            f"got {quantity}.",
            entity_id=flower_id,
        )


class InvalidRetention(DomainError, ValueError):
    """Retention windows count days into the past."""

    def __init__(self, retention_days: Any) -> None:
        self.retention_days = retention_days
        super().__init__(
            f"Retention must be zero or more days, got {retention_days}."
        )
