"""Unit tests for InventoryService.

Covers:
- Catalog intake (SKU uniqueness, derived expiry date).
- Single-item ledger commands against the database.
- Multi-item reservations (all-or-nothing).
- Read queries and availability checks.
- Service contract with a mocked repository.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from modules.inventory.constants import StockItemKind
from modules.inventory.dtos import StockLineDTO, UpdateStockItemDTO
from modules.inventory.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    NegativeStock,
    OverRelease,
    SkuAlreadyExists,
    StockItemNotFound,
    StockItemReserved,
)
from modules.inventory.models import Flower, Material
from modules.inventory.repositories import StockItemDjangoRepository
from modules.inventory.services import InventoryService

pytestmark = pytest.mark.unit

MISSING_ID = "00000000-0000-0000-0000-000000000000"


def _reload(item):
    item.refresh_from_db()
    return item


# ===========================================================================
# Catalog
# ===========================================================================


class TestCatalog:
    def test_create_flower_derives_expiry(self, flower, today):
        assert flower.expiry_date == today + timedelta(days=7)
        assert flower.current_stock == 10
        assert flower.reserved_stock == 0

    def test_create_flower_without_delivery_has_no_expiry(self, make_flower):
        flower = make_flower(sku="PEONY-PINK", delivery_date=None)
        assert flower.expiry_date is None

    def test_sku_is_normalized(self, make_material):
        material = make_material(sku="  wrap-kraft ")
        assert material.sku == "WRAP-KRAFT"

    def test_duplicate_sku_raises(self, flower, make_flower):
        with pytest.raises(SkuAlreadyExists):
            make_flower(sku="rose-red")

    def test_sku_is_shared_across_kinds(self, flower, make_material):
        with pytest.raises(SkuAlreadyExists):
            make_material(sku="ROSE-RED")

    def test_update_leaves_ledger_alone(self, inventory_service, flower):
        inventory_service.reserve_stock(flower.id, 2)
        item = inventory_service.update_item(
            flower.id, UpdateStockItemDTO(unit_price=Decimal("175.00"), notes="Premium")
        )
        item = _reload(item)
        assert item.unit_price == Decimal("175.00")
        assert (item.current_stock, item.reserved_stock) == (10, 2)

    def test_update_unknown_raises(self, inventory_service):
        with pytest.raises(StockItemNotFound):
            inventory_service.update_item(MISSING_ID, UpdateStockItemDTO(notes="x"))

    def test_deactivate_keeps_stock(self, inventory_service, flower):
        item = _reload(inventory_service.deactivate_item(flower.id))
        assert item.is_active is False
        assert item.current_stock == 10

    def test_delete_is_soft(self, inventory_service, material):
        inventory_service.delete_item(material.id)
        assert Material.objects.dead().filter(id=material.id).exists()
        with pytest.raises(StockItemNotFound):
            inventory_service.get_item(material.id)

    def test_delete_unknown_raises(self, inventory_service):
        with pytest.raises(StockItemNotFound):
            inventory_service.delete_item(MISSING_ID)

    def test_delete_with_reservation_is_refused(self, inventory_service, flower):
        inventory_service.reserve_stock(flower.id, 3)

        with pytest.raises(StockItemReserved) as exc_info:
            inventory_service.delete_item(flower.id)

        assert exc_info.value.reserved == 3
        flower = _reload(flower)
        assert flower.deleted_at is None
        assert flower.reserved_stock == 3

    def test_refused_delete_leaves_order_settleable(
        self, inventory_service, order_service, order, flower
    ):
        with pytest.raises(StockItemReserved):
            inventory_service.delete_item(flower.id)

        order_service.cancel_order(order.id)
        assert _reload(flower).reserved_stock == 0
        inventory_service.delete_item(flower.id)
        assert _reload(flower).is_deleted

    def test_delete_after_release_succeeds(self, inventory_service, flower):
        inventory_service.reserve_stock(flower.id, 3)
        inventory_service.release_stock(flower.id, 3)
        inventory_service.delete_item(flower.id)
        assert _reload(flower).deleted_at is not None

    def test_sku_of_deleted_item_stays_taken(self, inventory_service, flower, make_flower):
        inventory_service.delete_item(flower.id)
        with pytest.raises(SkuAlreadyExists):
            make_flower(sku="rose-red")
        assert Flower.objects.filter(sku="ROSE-RED").count() == 1

    def test_deleted_sku_is_invisible_to_lookups(self, inventory_service, material):
        repo = StockItemDjangoRepository()
        assert repo.get_by_sku("ribbon-red") == material
        inventory_service.delete_item(material.id)
        assert repo.get_by_sku("RIBBON-RED") is None
        assert repo.sku_taken("RIBBON-RED") is True

    def test_fractional_min_level_for_flower_is_rejected(self, inventory_service, flower):
        with pytest.raises(InvalidQuantity):
            inventory_service.update_item(
                flower.id, UpdateStockItemDTO(min_stock_level=Decimal("2.5"))
            )
        assert _reload(flower).min_stock_level == 5

    def test_whole_min_level_for_flower_is_stored_as_int(self, inventory_service, flower):
        inventory_service.update_item(flower.id, UpdateStockItemDTO(min_stock_level=Decimal("8")))
        assert _reload(flower).min_stock_level == 8

    def test_min_level_for_material_keeps_millimetres(self, inventory_service, material):
        inventory_service.update_item(
            material.id, UpdateStockItemDTO(min_stock_level=Decimal("1.250"))
        )
        assert _reload(material).min_stock_level == Decimal("1.250")


# ===========================================================================
# Ledger commands
# ===========================================================================


class TestReserveRelease:
    def test_reserve_then_release(self, inventory_service, flower):
        inventory_service.reserve_stock(flower.id, 4)
        assert _reload(flower).available_stock == 6

        inventory_service.release_stock(flower.id, 4)
        flower = _reload(flower)
        assert (flower.current_stock, flower.reserved_stock) == (10, 0)

    def test_reserve_more_than_available_changes_nothing(self, inventory_service, flower):
        inventory_service.reserve_stock(flower.id, 8)
        with pytest.raises(InsufficientStock) as exc_info:
            inventory_service.reserve_stock(flower.id, 3)

        assert exc_info.value.available == 2
        assert _reload(flower).reserved_stock == 8

    def test_release_more_than_reserved_raises(self, inventory_service, material):
        inventory_service.reserve_stock(material.id, "1.5")
        with pytest.raises(OverRelease):
            inventory_service.release_stock(material.id, "1.501")
        assert _reload(material).reserved_stock == Decimal("1.500")

    def test_fractional_flower_quantity_is_rejected(self, inventory_service, flower):
        with pytest.raises(InvalidQuantity):
            inventory_service.reserve_stock(flower.id, "1.5")

    def test_material_quantity_finer_than_a_millimetre_is_rejected(
        self, inventory_service, material
    ):
        with pytest.raises(InvalidQuantity):
            inventory_service.reserve_stock(material.id, "0.0001")

    def test_unknown_item_raises(self, inventory_service):
        with pytest.raises(StockItemNotFound):
            inventory_service.reserve_stock(MISSING_ID, 1)

    def test_consume_deducts_both_columns(self, inventory_service, material):
        inventory_service.reserve_stock(material.id, "2.250")
        inventory_service.consume_stock(material.id, "2.250")
        material = _reload(material)
        assert material.current_stock == Decimal("7.750")
        assert material.reserved_stock == Decimal("0.000")

    def test_consume_without_reservation_raises(self, inventory_service, flower):
        with pytest.raises(OverRelease):
            inventory_service.consume_stock(flower.id, 1)


class TestAdjust:
    def test_receipt_restarts_freshness_clock(self, inventory_service, expiring_flower, today):
        later = today + timedelta(days=1)
        flower = _reload(inventory_service.adjust_stock(expiring_flower.id, 5, today=later))
        assert flower.current_stock == 15
        assert flower.delivery_date == later
        assert flower.expiry_date == later + timedelta(days=5)

    def test_write_off_keeps_delivery_date(self, inventory_service, expiring_flower, today):
        flower = _reload(
            inventory_service.adjust_stock(expiring_flower.id, -3, reason="wilted", today=today)
        )
        assert flower.current_stock == 7
        assert flower.delivery_date == today - timedelta(days=3)

    def test_write_off_below_reserved_raises(self, inventory_service, flower):
        inventory_service.reserve_stock(flower.id, 6)
        with pytest.raises(NegativeStock):
            inventory_service.adjust_stock(flower.id, -5)
        assert _reload(flower).current_stock == 10

    def test_write_off_below_zero_raises(self, inventory_service, material):
        with pytest.raises(NegativeStock, match="below zero"):
            inventory_service.adjust_stock(material.id, "-10.001")

    def test_zero_delta_is_rejected(self, inventory_service, material):
        with pytest.raises(InvalidQuantity):
            inventory_service.adjust_stock(material.id, 0)


class TestReserveMany:
    def test_all_lines_are_reserved(self, inventory_service, flower, material):
        inventory_service.reserve_many(
            [
                StockLineDTO(item_id=flower.id, quantity=Decimal("2")),
                StockLineDTO(item_id=material.id, quantity=Decimal("0.75")),
                StockLineDTO(item_id=flower.id, quantity=Decimal("1")),
            ]
        )
        assert _reload(flower).reserved_stock == 3
        assert _reload(material).reserved_stock == Decimal("0.750")

    def test_one_failing_line_reserves_nothing(self, inventory_service, flower, material):
        with pytest.raises(InsufficientStock):
            inventory_service.reserve_many(
                [
                    StockLineDTO(item_id=flower.id, quantity=Decimal("2")),
                    StockLineDTO(item_id=material.id, quantity=Decimal("11")),
                ]
            )
        assert _reload(flower).reserved_stock == 0
        assert _reload(material).reserved_stock == Decimal("0.000")

    def test_repeated_lines_are_summed_before_checking(self, inventory_service, flower):
        with pytest.raises(InsufficientStock):
            inventory_service.reserve_many(
                [StockLineDTO(item_id=flower.id, quantity=Decimal("6"))] * 2
            )
        assert _reload(flower).reserved_stock == 0

    def test_unknown_line_reserves_nothing(self, inventory_service, flower):
        with pytest.raises(StockItemNotFound):
            inventory_service.reserve_many(
                [
                    StockLineDTO(item_id=flower.id, quantity=Decimal("1")),
                    StockLineDTO(item_id=MISSING_ID, quantity=Decimal("1")),
                ]
            )
        assert _reload(flower).reserved_stock == 0

    def test_release_and_consume_many(self, inventory_service, flower, material):
        lines = [
            StockLineDTO(item_id=flower.id, quantity=Decimal("2")),
            StockLineDTO(item_id=material.id, quantity=Decimal("1")),
        ]
        inventory_service.reserve_many(lines)
        inventory_service.consume_many(lines[:1])
        inventory_service.release_many(lines[1:])
        flower, material = _reload(flower), _reload(material)
        assert (flower.current_stock, flower.reserved_stock) == (8, 0)
        assert (material.current_stock, material.reserved_stock) == (
            Decimal("10.000"),
            Decimal("0.000"),
        )

    def test_empty_lines_are_a_no_op(self, inventory_service):
        inventory_service.reserve_many([])


# ===========================================================================
# Queries
# ===========================================================================


class TestQueries:
    def test_snapshot_copies_catalog_fields(self, inventory_service, material):
        snapshot = inventory_service.snapshot(material.id)
        assert snapshot.kind == StockItemKind.MATERIAL
        assert snapshot.unit_label == "m"
        assert snapshot.unit_price == Decimal("40.00")

    def test_list_by_kind(self, inventory_service, flower, material):
        assert inventory_service.list_items(kind=StockItemKind.FLOWER) == [flower]
        assert len(inventory_service.list_items()) == 2

    def test_items_needing_restock(self, inventory_service, flower, material):
        inventory_service.reserve_stock(flower.id, 5)
        assert [i.id for i in inventory_service.items_needing_restock()] == [flower.id]

    def test_items_with_available(self, inventory_service, flower, make_flower):
        make_flower(sku="ROSE-WHITE", current_stock=2)
        found = inventory_service.items_with_available(StockItemKind.FLOWER, 5)
        assert [f.sku for f in found] == ["ROSE-RED"]

    def test_flowers_expiring(self, inventory_service, flower, expiring_flower, today):
        expiry = today + timedelta(days=2)
        assert inventory_service.flowers_expiring_before(expiry) == [expiring_flower]
        assert inventory_service.flowers_expiring_today(expiry) == [expiring_flower]
        assert inventory_service.flowers_expiring_today(today) == []

    def test_check_availability(self, inventory_service, flower, today):
        assert inventory_service.check_availability(flower.id, 10, today=today) is True
        assert inventory_service.check_availability(flower.id, 11, today=today) is False

    def test_expired_flower_is_unavailable(self, inventory_service, expiring_flower, today):
        expiry = today + timedelta(days=2)
        assert inventory_service.check_availability(expiring_flower.id, 1, today=expiry) is False

    def test_materials_never_expire(self, inventory_service, material, today):
        later = today + timedelta(days=365)
        assert inventory_service.check_availability(material.id, "9.999", today=later) is True

    def test_statistics(self, inventory_service, flower, make_flower):
        make_flower(sku="ROSE-WHITE", current_stock=4, purchase_price=None)
        stats = inventory_service.statistics(StockItemKind.FLOWER)
        assert stats["kind"] == "FLOWER"
        assert stats["by_type"][0]["count"] == 2
        assert stats["total_stock_value"] == Decimal("700.00")
        assert stats["needing_restock"] == 1


# ===========================================================================
# Service contract (mocked repository)
# ===========================================================================


class TestWithMockRepository:
    def test_missing_item_never_saves(self):
        repo = MagicMock()
        repo.get_for_update.return_value = None
        service = InventoryService(repository=repo)

        with pytest.raises(StockItemNotFound):
            service.release_stock(MISSING_ID, 1)
        repo.save.assert_not_called()

    def test_sku_check_happens_before_save(self):
        repo = MagicMock()
        repo.sku_taken.return_value = True
        service = InventoryService(repository=repo)

        with pytest.raises(SkuAlreadyExists):
            service._ensure_sku_free("ROSE-RED")
        repo.save.assert_not_called()
