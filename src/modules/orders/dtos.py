"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``OrderItemDTO``: one order line.  Stocked lines name a
  ``stock_item_id`` and take name / sku / price from the catalog;
  composite lines (bouquets, compositions) carry their own.
- ``CreateOrderDTO``: input for order creation (nested items).
- ``OrderStatisticsDTO``: output of the statistics report.
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.core.quantities import LENGTH_STEP, is_exact
from modules.orders.constants import (
    COMPOSITE_PRODUCT_TYPES,
    PaymentMethod,
    ProductType,
)

PHONE_PATTERN = re.compile(r"^\+?[\d\s()-]{7,20}$")
EMAIL_PATTERN = re.compile(r"^[\w.+-]+@[\w-]+\.[\w.-]+$")


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class OrderItemDTO(BaseModel):
    """Immutable DTO for a single order line.

    ``parent_index`` points at an earlier line of the same creation
    request; ``parent_item_id`` at an existing line when adding to an
    order.  Either one makes the line a bouquet component.
    """

    model_config = ConfigDict(frozen=True)

    stock_item_id: Optional[UUID] = None
    quantity: Decimal
    discount_amount: Decimal = Decimal("0.00")
    notes: str = ""
    product_type: Optional[ProductType] = None
    product_name: str = ""
    unit_price: Optional[Decimal] = None
    unit_of_measure: str = "pcs"
    parent_index: Optional[int] = None
    parent_item_id: Optional[UUID] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Quantity must be greater than zero.")
        if not is_exact(v, LENGTH_STEP):
            raise ValueError("Quantity supports at most three decimal places.")
        return v

    @field_validator("discount_amount")
    @classmethod
    def discount_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Discount cannot be negative.")
        return v

    @model_validator(mode="after")
    def composite_lines_carry_their_own_snapshot(self):
        if self.stock_item_id is not None:
            return self
        if self.product_type not in COMPOSITE_PRODUCT_TYPES:
            raise ValueError(
                "Lines without stock_item_id must be a BOUQUET or COMPOSITION."
            )
        if not self.product_name.strip():
            raise ValueError("Composite lines need a product_name.")
        if self.unit_price is None or self.unit_price <= 0:
            raise ValueError("Composite lines need a positive unit_price.")
        return self

    @property
    def is_component(self) -> bool:
        return self.parent_index is not None or self.parent_item_id is not None


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - ``parent_index`` must point at an earlier, non-component line.
    - Phone and e-mail formats.
    """

    model_config = ConfigDict(frozen=True)

    customer_name: str
    customer_phone: str
    customer_email: str = ""
    delivery_address: str = ""
    delivery_date: Optional[datetime] = None
    discount_amount: Decimal = Decimal("0.00")
    notes: str = ""
    payment_method: Optional[PaymentMethod] = None
    assigned_florist_id: Optional[int] = None
    items: List[OrderItemDTO]

    @field_validator("customer_name")
    @classmethod
    def name_length(cls, v: str) -> str:
        v = v.strip()
        if not 2 <= len(v) <= 100:
            raise ValueError("Customer name must be 2 to 100 characters.")
        return v

    @field_validator("customer_phone")
    @classmethod
    def phone_format(cls, v: str) -> str:
        v = v.strip()
        if not PHONE_PATTERN.match(v):
            raise ValueError("Invalid phone number format.")
        return v

    @field_validator("customer_email")
    @classmethod
    def email_format(cls, v: str) -> str:
        v = v.strip()
        if v and not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid e-mail format.")
        return v

    @field_validator("discount_amount")
    @classmethod
    def discount_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Discount cannot be negative.")
        return v

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[OrderItemDTO]) -> List[OrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def parents_precede_components(self):
        for index, item in enumerate(self.items):
            if item.parent_item_id is not None:
                raise ValueError("New orders reference parents by parent_index.")
            if item.parent_index is None:
                continue
            if not 0 <= item.parent_index < index:
                raise ValueError(
                    f"Item {index}: parent_index must point at an earlier line."
                )
            if self.items[item.parent_index].is_component:
                raise ValueError(f"Item {index}: a component cannot be a parent.")
        return self


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderStatisticsDTO(BaseModel):
    """Order figures over a creation-date period."""

    model_config = ConfigDict(frozen=True)

    period_start: Optional[datetime]
    period_end: Optional[datetime]
    total_orders: int
    todays_orders: int
    orders_requiring_processing: int
    orders_in_progress: int
    orders_ready_for_delivery: int
    delivered_orders: int
    cancelled_orders: int
    overdue_orders: int
    total_revenue: Decimal
    todays_revenue: Decimal
    average_order_value: Decimal
    conversion_rate: Decimal
    orders_by_status: Dict[str, int]
    top_florists: List[Dict[str, int]]
