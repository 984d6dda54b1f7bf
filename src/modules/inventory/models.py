"""Flower and Material stock models.

Both variants share the ``StockItem`` abstract base: catalog identity,
prices, supplier and the ledger pair ``current_stock`` / ``reserved_stock``.

- ``Flower`` is counted in whole pieces (integer columns).
- ``Material`` is measured in meters (``DECIMAL(10, 3)`` columns).
- ``available_stock`` is derived and never stored.
- Check constraints mirror the ledger invariant
  ``0 <= reserved_stock <= current_stock``.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).

Ledger columns are only written by ``InventoryService`` through
``modules.inventory.ledger``; nothing here recomputes them on save.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel
from modules.inventory.constants import (
    LENGTH_DECIMAL_PLACES,
    LENGTH_MAX_DIGITS,
    FlowerColor,
    FlowerType,
    MaterialType,
    SeasonalAvailability,
    StockItemKind,
    StockUnit,
)


def _ledger_constraints(prefix: str) -> list[models.CheckConstraint]:
    return [
        models.CheckConstraint(
            condition=models.Q(reserved_stock__gte=0),
            name=f"{prefix}_reserved_non_negative",
        ),
        models.CheckConstraint(
            condition=models.Q(reserved_stock__lte=models.F("current_stock")),
            name=f"{prefix}_reserved_within_current",
        ),
        models.CheckConstraint(
            condition=models.Q(unit_price__gt=0),
            name=f"{prefix}_price_positive",
        ),
    ]


class StockItem(SoftDeleteModel):
    """Abstract catalog entry with a stock ledger."""

    kind: str = ""
    unit: str = ""

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=100)
    unit_price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    purchase_price = models.DecimalField(
        max_digits=8, decimal_places=2, null=True, blank=True
    )
    supplier = models.CharField(max_length=200, blank=True, default="")
    is_active = models.BooleanField(default=True)
    notes = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        abstract = True
        ordering = ["name"]

    @property
    def available_stock(self):
        return self.current_stock - self.reserved_stock

    @property
    def needs_restock(self) -> bool:
        return (
            self.min_stock_level is not None
            and self.available_stock <= self.min_stock_level
        )

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"


class Flower(StockItem):
    """Cut flowers, counted per stem."""

    kind = StockItemKind.FLOWER
    unit = StockUnit.PIECE

    variety = models.CharField(max_length=100, blank=True, default="")
    type = models.CharField(max_length=20, choices=FlowerType.choices)
    color = models.CharField(max_length=20, choices=FlowerColor.choices)
    current_stock = models.PositiveIntegerField(default=0)
    reserved_stock = models.PositiveIntegerField(default=0)
    min_stock_level = models.PositiveIntegerField(null=True, blank=True)
    country_origin = models.CharField(max_length=100, blank=True, default="")
    stem_length = models.PositiveIntegerField(null=True, blank=True)
    freshness_days = models.PositiveIntegerField(null=True, blank=True)
    delivery_date = models.DateField(null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    seasonal_availability = models.CharField(
        max_length=20,
        choices=SeasonalAvailability.choices,
        default=SeasonalAvailability.YEAR_ROUND,
    )

    class Meta(StockItem.Meta):
        db_table = "flowers"
        indexes = [
            models.Index(fields=["type", "color"], name="flowers_type_color_idx"),
            models.Index(fields=["expiry_date"], name="flowers_expiry_idx"),
        ]
        constraints = _ledger_constraints("flowers")


class Material(StockItem):
    """Ribbons, wrapping and other supplies, measured in meters."""

    kind = StockItemKind.MATERIAL
    unit = StockUnit.METER

    type = models.CharField(max_length=30, choices=MaterialType.choices)
    color = models.CharField(max_length=50, blank=True, default="")
    width_mm = models.PositiveIntegerField(null=True, blank=True)
    current_stock = models.DecimalField(
        max_digits=LENGTH_MAX_DIGITS,
        decimal_places=LENGTH_DECIMAL_PLACES,
        default=Decimal("0.000"),
    )
    reserved_stock = models.DecimalField(
        max_digits=LENGTH_MAX_DIGITS,
        decimal_places=LENGTH_DECIMAL_PLACES,
        default=Decimal("0.000"),
    )
    min_stock_level = models.DecimalField(
        max_digits=LENGTH_MAX_DIGITS,
        decimal_places=LENGTH_DECIMAL_PLACES,
        null=True,
        blank=True,
    )
    composition = models.CharField(max_length=200, blank=True, default="")
    texture = models.CharField(max_length=100, blank=True, default="")
    is_waterproof = models.BooleanField(default=False)

    class Meta(StockItem.Meta):
        db_table = "materials"
        indexes = [
            models.Index(fields=["type"], name="materials_type_idx"),
        ]
        constraints = _ledger_constraints("materials")
