"""Unit tests for FreshnessService.

Covers:
- Batch intake (explicit dates and deliveries received today).
- Sweeps: status derivation, idempotency, sold batches left alone.
- Operator markdowns and their validation.
- Sale, cleanup and the report queries.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from modules.freshness.constants import DEFAULT_STORAGE_CONDITIONS, FreshnessStatus
from modules.freshness.dtos import CreateBatchDTO
from modules.freshness.exceptions import (
    BatchAlreadySold,
    BatchNotFound,
    InvalidBatchQuantity,
    InvalidDiscount,
    InvalidRetention,
)
from modules.freshness.models import FreshnessBatch
from modules.inventory.exceptions import StockItemNotFound

pytestmark = pytest.mark.unit

MISSING_ID = "00000000-0000-0000-0000-000000000000"


@pytest.fixture()
def make_batch(freshness_service, flower, today):
    """Batch delivered *today* that expires after *days* days."""

    def _make(days, quantity=10, batch_number="", **overrides):
        fields = {
            "flower_id": flower.id,
            "quantity": quantity,
            "delivery_date": today,
            "expiry_date": today + timedelta(days=days) if days is not None else None,
            "batch_number": batch_number,
        }
        fields.update(overrides)
        return freshness_service.create_batch(CreateBatchDTO(**fields), today=today)

    return _make


def _reload(batch):
    batch.refresh_from_db()
    return batch


# ===========================================================================
# Intake
# ===========================================================================


class TestIntake:
    @pytest.mark.parametrize(
        "days,status,discount",
        [
            (5, FreshnessStatus.FRESH, 0),
            (3, FreshnessStatus.WARNING, 25),
            (1, FreshnessStatus.CRITICAL, 50),
            (0, FreshnessStatus.EXPIRES_TODAY, 70),
            (-1, FreshnessStatus.EXPIRED, 0),
            (None, FreshnessStatus.UNKNOWN, 0),
        ],
    )
    def test_create_batch_classifies_immediately(self, make_batch, days, status, discount):
        batch = _reload(make_batch(days))
        assert batch.status == status
        assert batch.days_until_expiry == days
        assert batch.discount_percentage == discount

    def test_receive_batch_uses_flower_expiry(self, freshness_service, flower, today):
        batch = freshness_service.receive_batch(flower.id, 20, today=today)
        assert batch.batch_number == f"ROSE-RED-{today:%Y%m%d}"
        assert batch.delivery_date == today
        assert batch.expiry_date == flower.expiry_date
        assert batch.storage_conditions == DEFAULT_STORAGE_CONDITIONS
        assert batch.temperature_celsius == 2
        assert batch.status == FreshnessStatus.FRESH

    def test_receive_batch_derives_expiry_from_freshness_days(
        self, freshness_service, make_flower, today
    ):
        flower = make_flower(sku="IRIS-BLUE", delivery_date=None, freshness_days=4)
        batch = freshness_service.receive_batch(flower.id, 5, "IR-1", today=today)
        assert batch.batch_number == "IR-1"
        assert batch.expiry_date == today + timedelta(days=4)

    def test_materials_cannot_have_batches(self, freshness_service, material, today):
        with pytest.raises(StockItemNotFound):
            freshness_service.receive_batch(material.id, 5, today=today)

    def test_unknown_flower_raises(self, freshness_service, today):
        with pytest.raises(StockItemNotFound):
            freshness_service.receive_batch(MISSING_ID, 5, today=today)

    @pytest.mark.parametrize("quantity", [0, -5, True, 2.5, "7"])
    def test_receive_batch_rejects_bad_quantity(self, freshness_service, flower, today, quantity):
        with pytest.raises(InvalidBatchQuantity):
            freshness_service.receive_batch(flower.id, quantity, today=today)
        assert not FreshnessBatch.objects.filter(flower=flower).exists()


# ===========================================================================
# Sweeps
# ===========================================================================


class TestRecompute:
    def test_sweep_moves_batches_along(self, freshness_service, make_batch, today):
        fresh = make_batch(5)
        warning = make_batch(2)

        changed = freshness_service.recompute_all(today=today + timedelta(days=2))

        assert changed == 2
        assert _reload(fresh).status == FreshnessStatus.WARNING
        assert _reload(warning).status == FreshnessStatus.EXPIRES_TODAY
        assert _reload(warning).discount_percentage == 70

    def test_sweep_is_idempotent(self, freshness_service, make_batch, today):
        make_batch(5)
        make_batch(1)
        later = today + timedelta(days=1)
        freshness_service.recompute_all(today=later)

        snapshot = list(
            FreshnessBatch.objects.values_list("status", "days_until_expiry", "discount_percentage")
        )
        assert freshness_service.recompute_all(today=later) == 0
        assert (
            list(
                FreshnessBatch.objects.values_list(
                    "status", "days_until_expiry", "discount_percentage"
                )
            )
            == snapshot
        )

    def test_sold_batches_are_skipped(self, freshness_service, make_batch, today):
        batch = make_batch(5)
        freshness_service.mark_as_sold(batch.id, sold_date=today)
        assert freshness_service.recompute_all(today=today + timedelta(days=10)) == 0
        assert _reload(batch).status == FreshnessStatus.FRESH

    def test_recompute_single_batch(self, freshness_service, make_batch, today):
        batch = make_batch(4)
        batch = freshness_service.recompute_batch(batch.id, today=today + timedelta(days=3))
        assert batch.status == FreshnessStatus.CRITICAL

    def test_recompute_unknown_batch_raises(self, freshness_service):
        with pytest.raises(BatchNotFound):
            freshness_service.recompute_batch(MISSING_ID)


# ===========================================================================
# Markdowns
# ===========================================================================


class TestDiscount:
    def test_manual_discount_survives_sweeps(self, freshness_service, make_batch, today):
        batch = make_batch(3)
        freshness_service.apply_discount(batch.id, 10)

        freshness_service.recompute_all(today=today + timedelta(days=2))

        batch = _reload(batch)
        assert batch.status == FreshnessStatus.CRITICAL
        assert batch.discount_percentage == 10
        assert batch.discount_is_manual is True

    @pytest.mark.parametrize("percentage", [0, 100, "40"])
    def test_bounds_are_accepted(self, freshness_service, make_batch, percentage):
        batch = freshness_service.apply_discount(make_batch(5).id, percentage)
        assert batch.discount_percentage == int(percentage)

    @pytest.mark.parametrize("percentage", [-1, 101, 12.5, "abc", None, True, False])
    def test_invalid_percentage_raises(self, freshness_service, make_batch, percentage):
        batch = make_batch(5)
        with pytest.raises(InvalidDiscount):
            freshness_service.apply_discount(batch.id, percentage)
        assert _reload(batch).discount_is_manual is False

    def test_sold_batch_cannot_be_discounted(self, freshness_service, make_batch):
        batch = make_batch(5)
        freshness_service.mark_as_sold(batch.id)
        with pytest.raises(BatchAlreadySold):
            freshness_service.apply_discount(batch.id, 30)

    def test_recommendations_refresh_automatic_markdowns(
        self, freshness_service, make_batch, today
    ):
        make_batch(10)
        soon = make_batch(4)
        manual = make_batch(5)
        freshness_service.apply_discount(manual.id, 15)

        found = freshness_service.discount_recommendations(today=today + timedelta(days=3))

        by_id = {b.id: b for b in found}
        assert set(by_id) == {soon.id, manual.id}
        assert by_id[soon.id].discount_percentage == 50
        assert by_id[manual.id].discount_percentage == 15


# ===========================================================================
# Sale and cleanup
# ===========================================================================


class TestSaleAndCleanup:
    def test_mark_as_sold(self, freshness_service, make_batch, today):
        batch = freshness_service.mark_as_sold(make_batch(5).id, sold_date=today)
        assert batch.is_sold is True
        assert batch.sold_date == today
        assert freshness_service.sold_between(today, today) == [batch]

    def test_selling_twice_raises(self, freshness_service, make_batch):
        batch = make_batch(5)
        freshness_service.mark_as_sold(batch.id)
        with pytest.raises(BatchAlreadySold):
            freshness_service.mark_as_sold(batch.id)

    def test_cleanup_respects_retention(self, freshness_service, make_batch, today):
        old = make_batch(-10)
        recent = make_batch(-3)
        sold = make_batch(-20)
        freshness_service.mark_as_sold(sold.id)

        deleted = freshness_service.cleanup_expired(retention_days=7, today=today)

        assert deleted == 1
        remaining = set(FreshnessBatch.objects.values_list("id", flat=True))
        assert old.id not in remaining
        assert {recent.id, sold.id} <= remaining

    def test_cleanup_defaults_to_settings(self, freshness_service, make_batch, today, settings):
        settings.FRESHNESS_RETENTION_DAYS = 1
        make_batch(-2)
        assert freshness_service.cleanup_expired(today=today) == 1

    def test_zero_retention_keeps_batches_expiring_today(
        self, freshness_service, make_batch, today
    ):
        make_batch(0)
        make_batch(-1)
        assert freshness_service.cleanup_expired(retention_days=0, today=today) == 1

    @pytest.mark.parametrize("retention", [-1, -365])
    def test_negative_retention_is_rejected(
        self, freshness_service, make_batch, today, retention
    ):
        fresh = make_batch(5)
        expired = make_batch(-30)

        with pytest.raises(InvalidRetention):
            freshness_service.cleanup_expired(retention_days=retention, today=today)

        remaining = set(FreshnessBatch.objects.values_list("id", flat=True))
        assert {fresh.id, expired.id} <= remaining

    def test_negative_retention_from_settings_is_rejected(
        self, freshness_service, make_batch, today, settings
    ):
        settings.FRESHNESS_RETENTION_DAYS = -3
        make_batch(2)
        with pytest.raises(InvalidRetention):
            freshness_service.cleanup_expired(today=today)
        assert FreshnessBatch.objects.count() == 1


# ===========================================================================
# Queries
# ===========================================================================


class TestQueries:
    def test_get_batch_unknown_raises(self, freshness_service):
        with pytest.raises(BatchNotFound):
            freshness_service.get_batch("not-a-uuid")

    def test_expiring_and_expired(self, freshness_service, make_batch, today):
        today_batch = make_batch(0)
        week = make_batch(7)
        past = make_batch(-1)

        assert freshness_service.expiring_today(today) == [today_batch]
        assert freshness_service.expiring_before(today + timedelta(days=7), today) == [
            today_batch,
            week,
        ]
        assert freshness_service.expired(today) == [past]

    def test_lookups(self, freshness_service, make_batch, flower, today):
        batch = make_batch(2, batch_number="B-7")
        assert freshness_service.batches_for_flower(flower.id) == [batch]
        assert freshness_service.batches_by_number("B-7") == [batch]
        assert freshness_service.batches_delivered_on(today) == [batch]
        assert freshness_service.batches_with_status(FreshnessStatus.WARNING) == [batch]
        assert freshness_service.needing_discount() == [batch]

    def test_statistics_carry_labels(self, freshness_service, make_batch):
        make_batch(5, quantity=10)
        make_batch(6, quantity=4)
        make_batch(0, quantity=3)

        stats = freshness_service.statistics()

        assert stats == [
            {
                "status": FreshnessStatus.EXPIRES_TODAY,
                "count": 1,
                "total_quantity": 3,
                "label": "Expires today",
            },
            {"status": FreshnessStatus.FRESH, "count": 2, "total_quantity": 14, "label": "Fresh"},
        ]
