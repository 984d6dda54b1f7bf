"""Freshness service layer (Use Cases).

Keeps the freshness calendar of flower batches current.  Status, days
left and the automatic markdown are derived by
``modules.freshness.classifier`` from an explicit *today* (defaulting to
the local date) and written back here; nothing is recomputed implicitly
on save or on read.

Sold batches are closed: sweeps skip them and the "needs discount" /
"expiring" queries never return them.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.freshness import classifier
from modules.freshness.constants import (
    DEFAULT_HUMIDITY_PERCENTAGE,
    DEFAULT_STORAGE_CONDITIONS,
    DEFAULT_TEMPERATURE_CELSIUS,
    MAX_DISCOUNT,
    MIN_DISCOUNT,
    NEEDS_DISCOUNT_STATUSES,
    FreshnessStatus,
)
from modules.freshness.exceptions import (
    BatchAlreadySold,
    BatchNotFound,
    InvalidBatchQuantity,
    InvalidDiscount,
    InvalidRetention,
)
from modules.freshness.models import FreshnessBatch
from modules.inventory.constants import StockItemKind
from modules.inventory.exceptions import StockItemNotFound

if TYPE_CHECKING:
    from modules.freshness.dtos import CreateBatchDTO
    from modules.freshness.repositories.interfaces import IFreshnessBatchRepository
    from modules.inventory.models import Flower
    from modules.inventory.repositories.interfaces import IStockItemRepository

logger = structlog.get_logger(__name__)

ASSESSED_FIELDS = ["status", "days_until_expiry", "discount_percentage"]


def _today(today: Optional[date]) -> date:
    return today or timezone.localdate()


class FreshnessService:
    """Application service for freshness batches.

    Receives its repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        batch_repository: IFreshnessBatchRepository,
        stock_repository: IStockItemRepository,
    ) -> None:
        self._batches = batch_repository
        self._stock = stock_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_batch(
        self, dto: CreateBatchDTO, today: Optional[date] = None
    ) -> FreshnessBatch:
        """Record a batch with explicit dates and classify it right away.

        Raises:
            StockItemNotFound: ``flower_id`` is not a live flower.
        """
        flower = self._get_flower(dto.flower_id)
        batch = FreshnessBatch(
            flower=flower,
            batch_number=dto.batch_number,
            quantity=dto.quantity,
            delivery_date=dto.delivery_date,
            expiry_date=dto.expiry_date,
            storage_conditions=dto.storage_conditions,
            temperature_celsius=dto.temperature_celsius,
            humidity_percentage=dto.humidity_percentage,
            notes=dto.notes,
        )
        self._assess(batch, _today(today))
        batch = self._batches.save(batch)
        logger.info(
            "freshness.batch_created",
            batch_id=str(batch.id),
            flower_id=str(flower.id),
            status=batch.status,
        )
        return batch

    @transaction.atomic
    def receive_batch(
        self,
        flower_id: Any,
        quantity: int,
        batch_number: str = "",
        today: Optional[date] = None,
    ) -> FreshnessBatch:
        """Open a batch for a delivery arriving *today*.

        The expiry date is taken from the flower (or derived from its
        ``freshness_days``); storage defaults to the shop refrigerator.

        Raises:
            StockItemNotFound: ``flower_id`` is not a live flower.
            InvalidBatchQuantity: *quantity* is not a positive whole number.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidBatchQuantity(flower_id, quantity)
        today = _today(today)
        flower = self._get_flower(flower_id)
        expiry = flower.expiry_date
        if expiry is None and flower.freshness_days is not None:
            expiry = today + timedelta(days=flower.freshness_days)

        batch = FreshnessBatch(
            flower=flower,
            batch_number=batch_number or f"{flower.sku}-{today:%Y%m%d}",
            quantity=quantity,
            delivery_date=today,
            expiry_date=expiry,
            storage_conditions=DEFAULT_STORAGE_CONDITIONS,
            temperature_celsius=DEFAULT_TEMPERATURE_CELSIUS,
            humidity_percentage=DEFAULT_HUMIDITY_PERCENTAGE,
        )
        self._assess(batch, today)
        batch = self._batches.save(batch)
        logger.info(
            "freshness.batch_received",
            batch_id=str(batch.id),
            flower_id=str(flower.id),
            quantity=quantity,
            expiry_date=str(expiry) if expiry else None,
        )
        return batch

    @transaction.atomic
    def recompute_batch(self, batch_id: Any, today: Optional[date] = None) -> FreshnessBatch:
        """Re-derive one batch.  Sold batches are returned unchanged.

        Raises:
            BatchNotFound: the batch does not exist.
        """
        batch = self._get_for_update(batch_id)
        if not batch.is_sold and self._assess(batch, _today(today)):
            batch.save(update_fields=ASSESSED_FIELDS)
        return batch

    @transaction.atomic
    def recompute_all(self, today: Optional[date] = None) -> int:
        """Sweep every unsold batch; return how many changed status.

        Running the sweep twice for the same *today* changes nothing the
        second time.
        """
        today = _today(today)
        changed = 0
        scanned = 0
        for batch in self._batches.list_unsold_for_update():
            scanned += 1
            previous = batch.status
            if self._assess(batch, today):
                batch.save(update_fields=ASSESSED_FIELDS)
            if batch.status != previous:
                changed += 1
        logger.info(
            "freshness.sweep_completed",
            today=str(today),
            scanned=scanned,
            status_changes=changed,
        )
        return changed

    @transaction.atomic
    def apply_discount(self, batch_id: Any, percentage: Any) -> FreshnessBatch:
        """Set an operator markdown; later sweeps leave it in place.

        Raises:
            BatchNotFound: the batch does not exist.
            InvalidDiscount: *percentage* is not an integer in 0..100.
            BatchAlreadySold: the batch is sold.
        """
        batch = self._get_for_update(batch_id)
        if isinstance(percentage, bool):
            raise InvalidDiscount(batch_id, percentage)
        try:
            value = int(percentage)
        except (TypeError, ValueError) as exc:
            raise InvalidDiscount(batch_id, percentage) from exc
        if value != percentage and str(value) != str(percentage):
            raise InvalidDiscount(batch_id, percentage)
        if not MIN_DISCOUNT <= value <= MAX_DISCOUNT:
            raise InvalidDiscount(batch_id, percentage)
        if batch.is_sold:
            raise BatchAlreadySold(batch_id)

        batch.discount_percentage = value
        batch.discount_is_manual = True
        batch.save(update_fields=["discount_percentage", "discount_is_manual"])
        logger.info("freshness.discount_applied", batch_id=str(batch.id), percentage=value)
        return batch

    @transaction.atomic
    def mark_as_sold(
        self, batch_id: Any, sold_date: Optional[date] = None
    ) -> FreshnessBatch:
        """Close a batch.

        Raises:
            BatchNotFound: the batch does not exist.
            BatchAlreadySold: the batch is already sold.
        """
        batch = self._get_for_update(batch_id)
        if batch.is_sold:
            raise BatchAlreadySold(batch_id)
        batch.is_sold = True
        batch.sold_date = _today(sold_date)
        batch.save(update_fields=["is_sold", "sold_date"])
        logger.info(
            "freshness.batch_sold", batch_id=str(batch.id), sold_date=str(batch.sold_date)
        )
        return batch

    @transaction.atomic
    def cleanup_expired(
        self, retention_days: Optional[int] = None, today: Optional[date] = None
    ) -> int:
        """Delete unsold batches that expired more than *retention_days* ago.

        Raises:
            InvalidRetention: *retention_days* is negative.
        """
        if retention_days is None:
            retention_days = settings.FRESHNESS_RETENTION_DAYS
        if retention_days < 0:
            raise InvalidRetention(retention_days)
        cutoff = _today(today) - timedelta(days=retention_days)
        deleted = self._batches.delete_unsold_expired_before(cutoff)
        logger.info(
            "freshness.cleanup_completed",
            cutoff=str(cutoff),
            retention_days=retention_days,
            deleted=deleted,
        )
        return deleted

    @transaction.atomic
    def discount_recommendations(self, today: Optional[date] = None) -> List[FreshnessBatch]:
        """Batches that call for a markdown, carrying the recommended one.

        Batches without an operator markdown are re-assessed and saved with
        the recommendation; operator markdowns are returned as they are.
        """
        today = _today(today)
        batches = []
        for batch in self._batches.list_unsold_for_update():
            if self._assess(batch, today):
                batch.save(update_fields=ASSESSED_FIELDS)
            if batch.status in NEEDS_DISCOUNT_STATUSES:
                batches.append(batch)
        return batches

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_batch(self, batch_id: Any) -> FreshnessBatch:
        """Raises ``BatchNotFound`` for unknown ids."""
        batch = self._batches.get_by_id(str(batch_id))
        if batch is None:
            raise BatchNotFound(batch_id)
        return batch

    def batches(self):
        return self._batches.queryset()

    def batches_for_flower(self, flower_id: Any) -> List[FreshnessBatch]:
        return self._batches.list_by_flower(flower_id)

    def batches_with_status(self, status: str) -> List[FreshnessBatch]:
        return self._batches.list_by_status([FreshnessStatus(status)])

    def batches_by_number(self, batch_number: str) -> List[FreshnessBatch]:
        return self._batches.list_by_batch_number(batch_number)

    def batches_delivered_on(self, day: date) -> List[FreshnessBatch]:
        return self._batches.list_by_delivery_date(day)

    def expiring_today(self, today: Optional[date] = None) -> List[FreshnessBatch]:
        today = _today(today)
        return self._batches.list_expiring_between(today, today)

    def expiring_before(
        self, day: date, today: Optional[date] = None
    ) -> List[FreshnessBatch]:
        return self._batches.list_expiring_between(_today(today), day)

    def expired(self, today: Optional[date] = None) -> List[FreshnessBatch]:
        return self._batches.list_expired(_today(today))

    def needing_discount(self) -> List[FreshnessBatch]:
        return self._batches.list_by_status(NEEDS_DISCOUNT_STATUSES)

    def sold_between(self, start: date, end: date) -> List[FreshnessBatch]:
        return self._batches.list_sold_between(start, end)

    def statistics(self) -> List[Dict[str, Any]]:
        return [
            {**row, "label": FreshnessStatus(row["status"]).label}
            for row in self._batches.statistics_by_status()
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _assess(batch: FreshnessBatch, today: date) -> bool:
        """Write the assessment onto *batch*; return whether anything changed."""
        result = classifier.assess(batch.expiry_date, today)
        discount = (
            batch.discount_percentage
            if batch.discount_is_manual
            else result.recommended_discount
        )
        changed = (
            batch.status != result.status
            or batch.days_until_expiry != result.days_until_expiry
            or batch.discount_percentage != discount
        )
        batch.status = result.status
        batch.days_until_expiry = result.days_until_expiry
        batch.discount_percentage = discount
        return changed

    def _get_for_update(self, batch_id: Any) -> FreshnessBatch:
        batch = self._batches.get_for_update(str(batch_id))
        if batch is None:
            raise BatchNotFound(batch_id)
        return batch

    def _get_flower(self, flower_id: Any) -> Flower:
        item = self._stock.get_by_id(str(flower_id))
        if item is None or item.kind != StockItemKind.FLOWER:
            raise StockItemNotFound(flower_id)
        return item
