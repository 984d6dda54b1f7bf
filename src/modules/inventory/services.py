"""Inventory service layer (Use Cases).

Owns the stock ledger of flowers (pieces) and materials (meters).  Every
ledger command follows the same unit of work:

1. Open a transaction and lock the item row(s) (``SELECT FOR UPDATE``),
   several items always in ascending id order to avoid deadlocks.
2. Ask ``modules.inventory.ledger`` for the next (current, reserved) pair.
3. Write the pair back.

Step 2 raises before anything is written, so a failed precondition never
leaves a partial effect; multi-item calls compute every new level before
the first write and are therefore all-or-nothing.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Union

import structlog
from django.db import transaction
from django.utils import timezone

from modules.inventory import ledger
from modules.inventory.constants import StockItemKind, StockUnit
from modules.inventory.dtos import StockSnapshotDTO
from modules.inventory.exceptions import (
    InvalidQuantity,
    SkuAlreadyExists,
    StockItemNotFound,
    StockItemReserved,
)
from modules.inventory.models import Flower, Material

if TYPE_CHECKING:
    from modules.inventory.dtos import (
        CreateFlowerDTO,
        CreateMaterialDTO,
        StockLineDTO,
        UpdateStockItemDTO,
    )
    from modules.inventory.repositories.interfaces import IStockItemRepository

logger = structlog.get_logger(__name__)

StockItemModel = Union[Flower, Material]
LedgerOp = Callable[[ledger.StockLevel, Any], ledger.StockLevel]

CATALOG_FIELDS = (
    "name",
    "unit_price",
    "purchase_price",
    "supplier",
    "notes",
    "is_active",
    "min_stock_level",
)


def _level_of(item: StockItemModel) -> ledger.StockLevel:
    return ledger.StockLevel(
        item_id=item.id,
        unit=item.unit,
        current=item.current_stock,
        reserved=item.reserved_stock,
    )


class InventoryService:
    """Application service for the flower / material catalog and its ledger.

    Receives an ``IStockItemRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IStockItemRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Catalog commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_flower(self, dto: CreateFlowerDTO) -> Flower:
        """Add a flower variety to the catalog.

        Raises:
            SkuAlreadyExists: the SKU is taken.
        """
        self._ensure_sku_free(dto.sku)
        flower = Flower(
            sku=dto.sku,
            name=dto.name,
            variety=dto.variety,
            type=dto.type,
            color=dto.color,
            unit_price=dto.unit_price,
            purchase_price=dto.purchase_price,
            supplier=dto.supplier,
            notes=dto.notes,
            current_stock=dto.current_stock,
            min_stock_level=dto.min_stock_level,
            country_origin=dto.country_origin,
            stem_length=dto.stem_length,
            freshness_days=dto.freshness_days,
            delivery_date=dto.delivery_date,
            seasonal_availability=dto.seasonal_availability,
        )
        if dto.delivery_date and dto.freshness_days is not None:
            flower.expiry_date = dto.delivery_date + timedelta(days=dto.freshness_days)
        flower = self._repo.save(flower)
        logger.info("flower.created", item_id=str(flower.id), sku=flower.sku)
        return flower

    @transaction.atomic
    def create_material(self, dto: CreateMaterialDTO) -> Material:
        self._ensure_sku_free(dto.sku)
        material = Material(
            sku=dto.sku,
            name=dto.name,
            type=dto.type,
            color=dto.color,
            width_mm=dto.width_mm,
            unit_price=dto.unit_price,
            purchase_price=dto.purchase_price,
            supplier=dto.supplier,
            notes=dto.notes,
            current_stock=dto.current_stock,
            min_stock_level=dto.min_stock_level,
            composition=dto.composition,
            texture=dto.texture,
            is_waterproof=dto.is_waterproof,
        )
        material = self._repo.save(material)
        logger.info("material.created", item_id=str(material.id), sku=material.sku)
        return material

    @transaction.atomic
    def update_item(self, item_id: str, dto: UpdateStockItemDTO) -> StockItemModel:
        """Update catalog fields.  The ledger pair is left alone.

        Raises:
            StockItemNotFound: the item does not exist.
            InvalidQuantity: a fractional minimum level for a flower.
        """
        item = self._repo.get_for_update(str(item_id))
        if item is None:
            raise StockItemNotFound(item_id)
        for field in CATALOG_FIELDS:
            value = getattr(dto, field)
            if value is None:
                continue
            if field == "min_stock_level" and item.unit == StockUnit.PIECE:
                if value != value.to_integral_value():
                    raise InvalidQuantity(
                        f"Flowers are counted in whole pieces, got {value}."
                    )
                value = int(value)
            setattr(item, field, value)
        item = self._repo.save(item)
        logger.info("stock_item.updated", item_id=str(item_id))
        return item

    @transaction.atomic
    def deactivate_item(self, item_id: str) -> StockItemModel:
        """Hide an item from sale without touching its stock.

        Raises:
            StockItemNotFound: the item does not exist.
        """
        item = self._repo.get_for_update(str(item_id))
        if item is None:
            raise StockItemNotFound(item_id)
        item.is_active = False
        item.save(update_fields=["is_active", "updated_at"])
        logger.info("stock_item.deactivated", item_id=str(item.id))
        return item

    @transaction.atomic
    def delete_item(self, item_id: str) -> None:
        """Soft-delete an item that no open order holds stock of.

        Raises:
            StockItemNotFound: the item does not exist.
            StockItemReserved: some of its stock is still reserved.
        """
        item = self._repo.get_for_update(str(item_id))
        if item is None:
            raise StockItemNotFound(item_id)
        if item.reserved_stock > 0:
            logger.warning("stock_item.delete_rejected", item_id=str(item.id))
            raise StockItemReserved(item.id, item.reserved_stock)
        self._repo.delete(str(item.id))

    # ------------------------------------------------------------------
    # Ledger commands (single item)
    # ------------------------------------------------------------------

    @transaction.atomic
    def reserve_stock(self, item_id: Any, quantity: Any) -> StockItemModel:
        """Hold *quantity* of an item for an order.

        Raises:
            StockItemNotFound: the item does not exist.
            InsufficientStock: available stock is lower than *quantity*.
            InvalidQuantity: *quantity* is not valid for the item's unit.
        """
        return self._apply(item_id, ledger.reserve, quantity, "stock.reserved")

    @transaction.atomic
    def release_stock(self, item_id: Any, quantity: Any) -> StockItemModel:
        """Drop a hold of *quantity*.

        Raises:
            StockItemNotFound: the item does not exist.
            OverRelease: less than *quantity* is reserved.
            InvalidQuantity: *quantity* is not valid for the item's unit.
        """
        return self._apply(item_id, ledger.release, quantity, "stock.released")

    @transaction.atomic
    def consume_stock(self, item_id: Any, quantity: Any) -> StockItemModel:
        """Deduct a reserved *quantity* from physical stock (sale)."""
        return self._apply(item_id, ledger.consume, quantity, "stock.consumed")

    @transaction.atomic
    def adjust_stock(
        self,
        item_id: Any,
        delta: Any,
        reason: str = "",
        today: Optional[date] = None,
    ) -> StockItemModel:
        """Receive (positive *delta*) or write off (negative *delta*) stock.

        Receiving flowers restarts their freshness clock: the delivery date
        becomes *today* and the expiry date is recomputed.

        Raises:
            StockItemNotFound: the item does not exist.
            NegativeStock: the result would be negative or below reserved.
            InvalidQuantity: *delta* is zero or not valid for the item's unit.
        """
        item = self._repo.get_for_update(str(item_id))
        if item is None:
            raise StockItemNotFound(item_id)

        received = ledger.normalize(item.unit, delta, allow_negative=True) > 0
        level = ledger.adjust(_level_of(item), delta)
        update_fields = self._write_level(item, level)

        if isinstance(item, Flower) and received:
            today = today or timezone.localdate()
            item.delivery_date = today
            update_fields.append("delivery_date")
            if item.freshness_days is not None:
                item.expiry_date = today + timedelta(days=item.freshness_days)
                update_fields.append("expiry_date")

        item.save(update_fields=update_fields)
        logger.info(
            "stock.adjusted",
            item_id=str(item.id),
            delta=str(delta),
            reason=reason,
            current=str(level.current),
            reserved=str(level.reserved),
        )
        return item

    # ------------------------------------------------------------------
    # Ledger commands (several items, all-or-nothing)
    # ------------------------------------------------------------------

    @transaction.atomic
    def reserve_many(self, lines: Iterable[StockLineDTO]) -> None:
        """Reserve every line or none of them.

        Raises:
            StockItemNotFound / InsufficientStock / InvalidQuantity: for the
                first failing item; no item is changed.
        """
        self._apply_many(lines, ledger.reserve, "stock.reserved")

    @transaction.atomic
    def release_many(self, lines: Iterable[StockLineDTO]) -> None:
        self._apply_many(lines, ledger.release, "stock.released")

    @transaction.atomic
    def consume_many(self, lines: Iterable[StockLineDTO]) -> None:
        self._apply_many(lines, ledger.consume, "stock.consumed")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_item(self, item_id: Any) -> StockItemModel:
        """Retrieve a live flower or material.

        Raises:
            StockItemNotFound: the item does not exist.
        """
        item = self._repo.get_by_id(str(item_id))
        if item is None:
            raise StockItemNotFound(item_id)
        return item

    def snapshot(self, item_id: Any) -> StockSnapshotDTO:
        """Name / sku / price copy of an item for an order line."""
        return StockSnapshotDTO.from_entity(self.get_item(item_id))

    def list_items(
        self, filters: Optional[Dict[str, Any]] = None, kind: Optional[str] = None
    ) -> List[StockItemModel]:
        return self._repo.list(filters, kind=kind)

    def catalog(self, kind: str):
        """Queryset of live items of *kind* for list endpoints."""
        return self._repo.catalog(kind)

    def items_needing_restock(self, kind: Optional[str] = None) -> List[StockItemModel]:
        return self._repo.list_needing_restock(kind)

    def items_with_available(
        self, kind: str, minimum: Union[int, Decimal]
    ) -> List[StockItemModel]:
        return self._repo.list_with_available(kind, minimum)

    def flowers_expiring_before(self, day: date) -> List[Flower]:
        return self._repo.list_flowers_expiring_before(day)

    def flowers_expiring_today(self, today: Optional[date] = None) -> List[Flower]:
        today = today or timezone.localdate()
        return [
            flower
            for flower in self._repo.list_flowers_expiring_before(today)
            if flower.expiry_date == today
        ]

    def check_availability(
        self, item_id: Any, quantity: Any, today: Optional[date] = None
    ) -> bool:
        """Whether *quantity* could be reserved now.

        Flowers past their expiry date are never considered available.
        """
        item = self.get_item(item_id)
        required = ledger.normalize(item.unit, quantity)
        if item.available_stock < required:
            return False
        if isinstance(item, Flower) and item.expiry_date is not None:
            return item.expiry_date > (today or timezone.localdate())
        return True

    def statistics(self, kind: str) -> Dict[str, Any]:
        kind = StockItemKind(kind)
        return {
            "kind": kind.value,
            "by_type": self._repo.statistics_by_type(kind),
            "total_stock_value": self._repo.total_stock_value(kind),
            "needing_restock": len(self._repo.list_needing_restock(kind)),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_sku_free(self, sku: str) -> None:
        if self._repo.sku_taken(sku):
            raise SkuAlreadyExists(sku)

    def _apply(
        self, item_id: Any, op: LedgerOp, quantity: Any, event: str
    ) -> StockItemModel:
        item = self._repo.get_for_update(str(item_id))
        if item is None:
            raise StockItemNotFound(item_id)

        log = logger.bind(item_id=str(item.id), quantity=str(quantity))
        try:
            level = op(_level_of(item), quantity)
        except Exception:
            log.warning(f"{event}_rejected")
            raise

        item.save(update_fields=self._write_level(item, level))
        log.info(event, current=str(level.current), reserved=str(level.reserved))
        return item

    def _apply_many(
        self, lines: Iterable[StockLineDTO], op: LedgerOp, event: str
    ) -> None:
        lines = list(lines)
        if not lines:
            return
        items = self._repo.get_many_for_update(line.item_id for line in lines)

        totals: Dict[str, Any] = defaultdict(int)
        for line in lines:
            key = str(line.item_id)
            item = items.get(key)
            if item is None:
                raise StockItemNotFound(line.item_id)
            totals[key] += ledger.normalize(item.unit, line.quantity)

        levels = {key: op(_level_of(items[key]), qty) for key, qty in totals.items()}

        for key in sorted(levels):
            item, level = items[key], levels[key]
            item.save(update_fields=self._write_level(item, level))
            logger.info(
                event,
                item_id=key,
                quantity=str(totals[key]),
                current=str(level.current),
                reserved=str(level.reserved),
            )

    @staticmethod
    def _write_level(item: StockItemModel, level: ledger.StockLevel) -> List[str]:
        item.current_stock = level.current
        item.reserved_stock = level.reserved
        return ["current_stock", "reserved_stock"]
