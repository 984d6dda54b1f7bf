"""Freshness batch repository interface."""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.freshness.models import FreshnessBatch


class IFreshnessBatchRepository(IRepository["FreshnessBatch"]):
    """Repository contract for freshness batches.

    Every ``list_*`` query except ``list_sold_between`` returns unsold
    batches only.
    """

    @abstractmethod
    def queryset(self):
        """All batches as a lazy, filterable queryset."""

    @abstractmethod
    def list_unsold_for_update(self) -> List[FreshnessBatch]:
        """Lock every unsold batch, oldest expiry first."""

    @abstractmethod
    def list_by_flower(self, flower_id: Any) -> List[FreshnessBatch]: ...

    @abstractmethod
    def list_by_status(self, statuses: Iterable[str]) -> List[FreshnessBatch]: ...

    @abstractmethod
    def list_by_batch_number(self, batch_number: str) -> List[FreshnessBatch]: ...

    @abstractmethod
    def list_by_delivery_date(self, day: date) -> List[FreshnessBatch]: ...

    @abstractmethod
    def list_expiring_between(self, start: date, end: date) -> List[FreshnessBatch]:
        """Batches whose expiry date falls in ``[start, end]``."""

    @abstractmethod
    def list_expired(self, today: date) -> List[FreshnessBatch]: ...

    @abstractmethod
    def list_sold_between(self, start: date, end: date) -> List[FreshnessBatch]: ...

    @abstractmethod
    def delete_unsold_expired_before(self, cutoff: date) -> int:
        """Hard-delete unsold batches whose expiry predates *cutoff*."""

    @abstractmethod
    def statistics_by_status(self) -> List[Dict[str, Any]]: ...
