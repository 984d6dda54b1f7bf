"""Inventory DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``CreateFlowerDTO`` / ``CreateMaterialDTO``: catalog intake.
- ``UpdateStockItemDTO``: partial catalog update (never touches the ledger).
- ``StockLineDTO``: one (item, quantity) pair for multi-item ledger calls.
- ``StockSnapshotDTO``: point-in-time copy of an item handed to orders.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.core.quantities import LENGTH_STEP, is_exact
from modules.inventory.constants import (
    FlowerColor,
    FlowerType,
    MaterialType,
    SeasonalAvailability,
    StockItemKind,
    StockUnit,
)

if TYPE_CHECKING:
    from modules.inventory.models import Flower, Material


def _positive_price(v: Optional[Decimal]) -> Optional[Decimal]:
    if v is not None and v <= 0:
        raise ValueError("Price must be greater than zero.")
    return v


def _exact_length(v: Optional[Decimal]) -> Optional[Decimal]:
    """Non-negative meters with at most three fractional digits."""
    if v is None:
        return v
    if v < 0:
        raise ValueError("Stock quantity cannot be negative.")
    if not is_exact(v, LENGTH_STEP):
        raise ValueError(f"Lengths are kept to {LENGTH_STEP} m, got {v}.")
    return v


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class _CreateStockItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    sku: str
    name: str
    unit_price: Decimal
    purchase_price: Optional[Decimal] = None
    supplier: str = ""
    notes: str = ""

    @field_validator("sku")
    @classmethod
    def sku_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("SKU must not be empty.")
        return v.strip().upper()

    @field_validator("unit_price", "purchase_price")
    @classmethod
    def price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _positive_price(v)


class CreateFlowerDTO(_CreateStockItemDTO):
    """Intake of a new flower variety.

    ``expiry_date`` is derived from ``delivery_date + freshness_days``
    when both are known.
    """

    type: FlowerType
    color: FlowerColor
    variety: str = ""
    current_stock: int = 0
    min_stock_level: Optional[int] = None
    country_origin: str = ""
    stem_length: Optional[int] = None
    freshness_days: Optional[int] = None
    delivery_date: Optional[date] = None
    seasonal_availability: SeasonalAvailability = SeasonalAvailability.YEAR_ROUND

    @field_validator("current_stock", "min_stock_level")
    @classmethod
    def stock_must_be_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v


class CreateMaterialDTO(_CreateStockItemDTO):
    """Intake of a new material, stock measured in meters."""

    type: MaterialType
    color: str = ""
    width_mm: Optional[int] = None
    current_stock: Decimal = Decimal("0")
    min_stock_level: Optional[Decimal] = None
    composition: str = ""
    texture: str = ""
    is_waterproof: bool = False

    @field_validator("current_stock", "min_stock_level")
    @classmethod
    def length_must_be_exact(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _exact_length(v)


class UpdateStockItemDTO(BaseModel):
    """Partial catalog update.  Ledger columns are not updatable here."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    unit_price: Optional[Decimal] = None
    purchase_price: Optional[Decimal] = None
    supplier: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None
    min_stock_level: Optional[Decimal] = None

    @field_validator("unit_price", "purchase_price")
    @classmethod
    def price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _positive_price(v)

    @field_validator("min_stock_level")
    @classmethod
    def level_must_be_exact(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _exact_length(v)


class StockLineDTO(BaseModel):
    """A quantity of one stock item, as used by multi-item ledger calls."""

    model_config = ConfigDict(frozen=True)

    item_id: UUID
    quantity: Decimal


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class StockSnapshotDTO(BaseModel):
    """Denormalized copy of a stock item captured when an order is placed."""

    model_config = ConfigDict(frozen=True)

    item_id: UUID
    kind: str
    unit: str
    unit_label: str
    sku: str
    name: str
    unit_price: Decimal
    is_active: bool = True

    @classmethod
    def from_entity(cls, item: Union[Flower, Material]) -> StockSnapshotDTO:
        return cls(
            item_id=item.id,
            kind=StockItemKind(item.kind).value,
            unit=StockUnit(item.unit).value,
            unit_label=StockUnit(item.unit).label,
            sku=item.sku,
            name=item.name,
            unit_price=item.unit_price,
            is_active=item.is_active,
        )
