"""Django ORM implementation of the freshness batch repository."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Sum

from modules.freshness.models import FreshnessBatch
from modules.freshness.repositories.interfaces import IFreshnessBatchRepository

logger = structlog.get_logger(__name__)


class FreshnessBatchDjangoRepository(IFreshnessBatchRepository):
    """Concrete batch repository backed by Django ORM."""

    def _unsold(self):
        return FreshnessBatch.objects.select_related("flower").filter(is_sold=False)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[FreshnessBatch]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return FreshnessBatch.objects.select_related("flower").get(id=id)
        except (FreshnessBatch.DoesNotExist, ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[FreshnessBatch]:
        try:
            return FreshnessBatch.objects.select_for_update().get(id=id)
        except (FreshnessBatch.DoesNotExist, ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[FreshnessBatch]:
        queryset = FreshnessBatch.objects.select_related("flower")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def queryset(self):
        return FreshnessBatch.objects.select_related("flower")

    def list_unsold_for_update(self) -> List[FreshnessBatch]:
        return list(
            FreshnessBatch.objects.select_for_update()
            .filter(is_sold=False)
            .order_by("expiry_date", "id")
        )

    def list_by_flower(self, flower_id: Any) -> List[FreshnessBatch]:
        return list(self._unsold().filter(flower_id=flower_id))

    def list_by_status(self, statuses: Iterable[str]) -> List[FreshnessBatch]:
        return list(self._unsold().filter(status__in=list(statuses)))

    def list_by_batch_number(self, batch_number: str) -> List[FreshnessBatch]:
        return list(self._unsold().filter(batch_number=batch_number))

    def list_by_delivery_date(self, day: date) -> List[FreshnessBatch]:
        return list(self._unsold().filter(delivery_date=day))

    def list_expiring_between(self, start: date, end: date) -> List[FreshnessBatch]:
        return list(self._unsold().filter(expiry_date__range=(start, end)))

    def list_expired(self, today: date) -> List[FreshnessBatch]:
        return list(self._unsold().filter(expiry_date__lt=today))

    def list_sold_between(self, start: date, end: date) -> List[FreshnessBatch]:
        return list(
            FreshnessBatch.objects.select_related("flower").filter(
                is_sold=True, sold_date__range=(start, end)
            )
        )

    def statistics_by_status(self) -> List[Dict[str, Any]]:
        rows = (
            FreshnessBatch.objects.filter(is_sold=False)
            .values("status")
            .annotate(count=Count("id"), total_quantity=Sum("quantity"))
            .order_by("status")
        )
        return list(rows)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: FreshnessBatch) -> FreshnessBatch:
        entity.save()
        logger.info(
            "freshness_batch.saved",
            batch_id=str(entity.id),
            flower_id=str(entity.flower_id),
            status=entity.status,
        )
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        batch = self.get_by_id(id)
        if batch is None:
            return False
        batch.delete()
        logger.info("freshness_batch.deleted", batch_id=str(id))
        return True

    @transaction.atomic
    def delete_unsold_expired_before(self, cutoff: date) -> int:
        count, _ = FreshnessBatch.objects.filter(
            is_sold=False, expiry_date__lt=cutoff
        ).delete()
        return count
