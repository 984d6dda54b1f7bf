"""Stock item repository interface.

Extends ``IRepository`` with the look-ups the ledger and the order
subsystem need: identity resolution across both stock variants, ordered
row locking for multi-item reservations, and the restock / expiry /
valuation queries of the catalog.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Union

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.inventory.models import Flower, Material

    StockItemModel = Union[Flower, Material]


class IStockItemRepository(IRepository["StockItemModel"]):
    """Repository contract for flowers and materials."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[StockItemModel]:
        """Resolve an identity against both flowers and materials."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[StockItemModel]:
        """Retrieve an item with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def get_many_for_update(self, ids: Iterable[Any]) -> Dict[str, StockItemModel]:
        """Lock several items, always in ascending id order.

        Returns a mapping keyed by ``str(id)``; unknown ids are absent.
        """

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None, kind: Optional[str] = None
    ) -> List[StockItemModel]:
        """List live items of one kind (or both) with optional filters."""

    @abstractmethod
    def catalog(self, kind: str):
        """Live items of one kind as a lazy, filterable queryset."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional[StockItemModel]:
        """Retrieve an item by SKU (case-insensitive)."""

    @abstractmethod
    def sku_taken(self, sku: str) -> bool:
        """Whether any item, soft-deleted ones included, carries *sku*."""

    @abstractmethod
    def list_needing_restock(self, kind: Optional[str] = None) -> List[StockItemModel]:
        """Active items whose available stock is at or below their minimum."""

    @abstractmethod
    def list_with_available(
        self, kind: str, minimum: Union[int, Decimal]
    ) -> List[StockItemModel]:
        """Active items with at least *minimum* available."""

    @abstractmethod
    def list_flowers_expiring_before(self, day: date) -> List[Flower]:
        """Active flowers whose expiry date is on or before *day*."""

    @abstractmethod
    def statistics_by_type(self, kind: str) -> List[Dict[str, Any]]:
        """Per-type count and sums of current / reserved stock."""

    @abstractmethod
    def total_stock_value(self, kind: str) -> Decimal:
        """Sum of ``current_stock * purchase_price`` over active items."""
