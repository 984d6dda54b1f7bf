"""Order domain constants.

Status choices and the order state machine: the transition table, the
terminal states and the status groups used by queries and guards.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    NEW = "NEW", "New"
    CONFIRMED = "CONFIRMED", "Confirmed"
    IN_PROGRESS = "IN_PROGRESS", "In progress"
    READY = "READY", "Ready"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY", "Out for delivery"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"
    RETURNED = "RETURNED", "Returned"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.NEW: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED},
    OrderStatus.IN_PROGRESS: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.RETURNED,
    },
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.RETURNED: {OrderStatus.CANCELLED},
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

REQUIRING_PROCESSING_STATES: set[str] = {OrderStatus.NEW, OrderStatus.CONFIRMED}
FLORIST_ACTIVE_STATES: set[str] = {OrderStatus.IN_PROGRESS}
FLORIST_AUTO_ADVANCE_STATES: set[str] = {OrderStatus.NEW, OrderStatus.CONFIRMED}
EDITABLE_STATES: set[str] = {OrderStatus.NEW, OrderStatus.CONFIRMED}
DELETABLE_STATES: set[str] = {OrderStatus.NEW, OrderStatus.CANCELLED}
NON_CANCELLABLE_STATES: set[str] = {OrderStatus.DELIVERED}
CLOSED_FOR_DELIVERY_STATES: set[str] = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.RETURNED,
}


def can_transition(current: str, requested: str) -> bool:
    return requested in VALID_TRANSITIONS.get(current, set())


class ProductType(models.TextChoices):
    FLOWER = "FLOWER", "Flower"
    MATERIAL = "MATERIAL", "Material"
    BOUQUET = "BOUQUET", "Bouquet"
    COMPOSITION = "COMPOSITION", "Composition"


COMPOSITE_PRODUCT_TYPES: set[str] = {ProductType.BOUQUET, ProductType.COMPOSITION}


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"
    ONLINE = "ONLINE", "Online"
    TRANSFER = "TRANSFER", "Bank transfer"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    REFUNDED = "REFUNDED", "Refunded"


ORDER_NUMBER_PREFIX = "LV"
ORDER_NUMBER_MAX_RETRIES = 20
QUANTITY_DECIMAL_PLACES = 3
TOP_FLORISTS_LIMIT = 5
