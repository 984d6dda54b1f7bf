"""Django ORM implementation of the stock item repository.

Satisfies ``IStockItemRepository`` using Django's QuerySet API.
Look-ups follow the Null Object pattern: they return ``None`` instead of
raising, and the Service Layer decides how to report a missing item.

Row locks (``select_for_update``) only take effect inside the caller's
``transaction.atomic`` block; the service owns that boundary.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum

from modules.core.quantities import ZERO_MONEY, quantize_money
from modules.inventory.constants import StockItemKind
from modules.inventory.models import Flower, Material
from modules.inventory.repositories.interfaces import IStockItemRepository

logger = structlog.get_logger(__name__)

StockItemModel = Union[Flower, Material]

MODEL_BY_KIND = {
    StockItemKind.FLOWER: Flower,
    StockItemKind.MATERIAL: Material,
}


def _models_for(kind: Optional[str]) -> List[type]:
    if kind is None:
        return [Flower, Material]
    return [MODEL_BY_KIND[StockItemKind(kind)]]


class StockItemDjangoRepository(IStockItemRepository):
    """Concrete stock item repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[StockItemModel]:
        """Retrieve a live flower or material by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        for model in (Flower, Material):
            try:
                item = model.objects.alive().filter(id=id).first()
            except (ValueError, ValidationError):
                return None
            if item is not None:
                return item
        return None

    def get_for_update(self, id: str) -> Optional[StockItemModel]:
        for model in (Flower, Material):
            try:
                item = model.objects.select_for_update().alive().filter(id=id).first()
            except (ValueError, ValidationError):
                return None
            if item is not None:
                return item
        return None

    def get_many_for_update(self, ids: Iterable[Any]) -> Dict[str, StockItemModel]:
        locked: Dict[str, StockItemModel] = {}
        for item_id in sorted({str(i) for i in ids}):
            item = self.get_for_update(item_id)
            if item is not None:
                locked[item_id] = item
        return locked

    def list(
        self, filters: Optional[Dict[str, Any]] = None, kind: Optional[str] = None
    ) -> List[StockItemModel]:
        """List live items with optional Django ORM look-ups.

        Examples of valid filters::

            {"is_active": True}
            {"name__icontains": "rose"}
        """
        items: List[StockItemModel] = []
        for model in _models_for(kind):
            queryset = model.objects.alive()
            if filters:
                queryset = queryset.filter(**filters)
            items.extend(queryset)
        return items

    def catalog(self, kind: str):
        return MODEL_BY_KIND[StockItemKind(kind)].objects.alive()

    def get_by_sku(self, sku: str) -> Optional[StockItemModel]:
        normalized = sku.strip().upper()
        for model in (Flower, Material):
            item = model.objects.alive().filter(sku=normalized).first()
            if item is not None:
                return item
        return None

    def sku_taken(self, sku: str) -> bool:
        normalized = sku.strip().upper()
        return any(
            model.objects.filter(sku=normalized).exists() for model in (Flower, Material)
        )

    # ------------------------------------------------------------------
    # Catalog queries
    # ------------------------------------------------------------------

    def list_needing_restock(self, kind: Optional[str] = None) -> List[StockItemModel]:
        items: List[StockItemModel] = []
        for model in _models_for(kind):
            items.extend(
                model.objects.alive().filter(
                    is_active=True,
                    min_stock_level__isnull=False,
                    min_stock_level__gte=F("current_stock") - F("reserved_stock"),
                )
            )
        return items

    def list_with_available(
        self, kind: str, minimum: Union[int, Decimal]
    ) -> List[StockItemModel]:
        model = MODEL_BY_KIND[StockItemKind(kind)]
        return list(
            model.objects.alive()
            .annotate(available=F("current_stock") - F("reserved_stock"))
            .filter(is_active=True, available__gte=minimum)
        )

    def list_flowers_expiring_before(self, day: date) -> List[Flower]:
        return list(
            Flower.objects.alive().filter(
                is_active=True, expiry_date__isnull=False, expiry_date__lte=day
            )
        )

    def statistics_by_type(self, kind: str) -> List[Dict[str, Any]]:
        model = MODEL_BY_KIND[StockItemKind(kind)]
        rows = (
            model.objects.alive()
            .filter(is_active=True)
            .values("type")
            .annotate(
                count=Count("id"),
                current_stock=Sum("current_stock"),
                reserved_stock=Sum("reserved_stock"),
            )
            .order_by("type")
        )
        return list(rows)

    def total_stock_value(self, kind: str) -> Decimal:
        model = MODEL_BY_KIND[StockItemKind(kind)]
        value = (
            model.objects.alive()
            .filter(is_active=True, purchase_price__isnull=False)
            .aggregate(
                total=Sum(
                    ExpressionWrapper(
                        F("current_stock") * F("purchase_price"),
                        output_field=DecimalField(max_digits=20, decimal_places=5),
                    )
                )
            )["total"]
        )
        return quantize_money(value) if value is not None else ZERO_MONEY

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: StockItemModel) -> StockItemModel:
        """Persist (create or update) a flower or material."""
        entity.sku = entity.sku.strip().upper()
        entity.save()
        logger.info(
            "stock_item.saved",
            item_id=str(entity.id),
            kind=entity.kind,
            sku=entity.sku,
        )
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete an item by ID.

        Returns ``True`` if the item was found and soft-deleted,
        ``False`` if no item exists with the given ID.
        """
        item = self.get_by_id(id)
        if not item:
            return False
        item.delete()
        logger.info("stock_item.soft_deleted", item_id=str(id), kind=item.kind)
        return True
