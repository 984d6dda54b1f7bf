"""Order, OrderItem, and OrderStatusHistory models.

- ``order_number`` (``LV-YYYYMMDD-NNNN``) is generated by ``OrderService``
  and protected by a unique constraint.
- OrderItem keeps a **snapshot** of the stock item (name, sku, unit,
  price) taken when the line was added; later catalog edits never reach
  it.  ``stock_item_id`` is a plain identity, not a foreign key: an order
  may outlive the catalog entry.
- Totals (``total_amount``, ``final_amount``, ``total_price``) are written
  by the service from ``modules.orders.pricing``; nothing here recomputes
  them on save.
- ``stock_reserved`` records whether the order currently holds stock
  reservations, so release / consumption happens at most once.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models

from modules.core.models import SoftDeleteModel, TimestampedModel
from modules.orders.constants import (
    QUANTITY_DECIMAL_PLACES,
    TERMINAL_STATES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ProductType,
    can_transition,
)


def _money(**kwargs) -> models.DecimalField:
    return models.DecimalField(max_digits=10, decimal_places=2, **kwargs)


class Order(SoftDeleteModel):
    """Order aggregate root.

    The UUIDv7 ``id`` is used for internal references and API look-ups;
    ``order_number`` is what customers and florists see.
    """

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.NEW,
    )
    customer_name = models.CharField(max_length=100)
    customer_phone = models.CharField(max_length=20)
    customer_email = models.EmailField(blank=True, default="")
    delivery_address = models.CharField(max_length=500, blank=True, default="")
    delivery_date = models.DateTimeField(null=True, blank=True)
    total_amount = _money(default=Decimal("0.00"))
    discount_amount = _money(default=Decimal("0.00"))
    final_amount = _money(default=Decimal("0.00"))
    notes = models.TextField(blank=True, default="")
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, blank=True, default=""
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    assigned_florist_id = models.PositiveBigIntegerField(null=True, blank=True)
    stock_reserved = models.BooleanField(default=False)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["customer_phone"], name="orders_phone_idx"),
            models.Index(fields=["assigned_florist_id"], name="orders_florist_idx"),
            models.Index(fields=["delivery_date"], name="orders_delivery_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(final_amount__gte=0),
                name="orders_final_amount_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(discount_amount__gte=0),
                name="orders_discount_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        return can_transition(self.status, new_status)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(TimestampedModel):
    """Line of an order.

    ``parent`` links a bouquet component to its bouquet line; components
    are removed together with their parent.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    position = models.PositiveIntegerField(default=0)
    stock_item_id = models.UUIDField(null=True, blank=True)
    product_name = models.CharField(max_length=200)
    product_sku = models.CharField(max_length=64, blank=True, default="")
    product_type = models.CharField(max_length=20, choices=ProductType.choices)
    unit_of_measure = models.CharField(max_length=10)
    quantity = models.DecimalField(
        max_digits=10, decimal_places=QUANTITY_DECIMAL_PLACES
    )
    unit_price = _money()
    discount_amount = _money(default=Decimal("0.00"))
    total_price = _money(default=Decimal("0.00"))
    notes = models.CharField(max_length=500, blank=True, default="")
    is_bouquet_component = models.BooleanField(default=False)
    parent = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="components",
    )

    class Meta:
        db_table = "order_items"
        ordering = ["position", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="order_items_quantity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(total_price__gte=0),
                name="order_items_total_non_negative",
            ),
        ]

    @property
    def is_stocked(self) -> bool:
        return self.stock_item_id is not None

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.total_price})"


class OrderStatusHistory(TimestampedModel):
    """Append-only audit trail for order status changes.

    Audit records are immutable, hence ``TimestampedModel`` rather than
    ``SoftDeleteModel``.  ``old_status`` is ``None`` for the creation row.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"
