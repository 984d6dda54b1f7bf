"""Order repository interface.

Extends ``IRepository[Order]`` with the look-ups of the Order aggregate:
order number resolution, item persistence, the status audit trail, the
processing / delivery queues and the aggregates behind the statistics
report.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderItem, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve a live order with prefetched items and status history."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve a live order holding a row lock until commit."""

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Optional[Order]: ...

    @abstractmethod
    def exists_by_order_number(self, order_number: str) -> bool:
        """Whether any order, deleted ones included, uses the number."""

    @abstractmethod
    def queryset(self):
        """Live orders as a lazy, filterable queryset."""

    # Items ------------------------------------------------------------

    @abstractmethod
    def items_of(self, order: Order) -> List[OrderItem]:
        """Current items of *order* in position order."""

    @abstractmethod
    def save_item(self, item: OrderItem) -> OrderItem: ...

    @abstractmethod
    def delete_items(self, item_ids: Iterable[Any]) -> int: ...

    # History ----------------------------------------------------------

    @abstractmethod
    def add_history(
        self,
        order_id: Any,
        old_status: Optional[str],
        new_status: str,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    # Queues -----------------------------------------------------------

    @abstractmethod
    def list_by_status(
        self, statuses: Iterable[str], oldest_first: bool = False
    ) -> List[Order]: ...

    @abstractmethod
    def list_by_customer(
        self, phone: Optional[str] = None, email: Optional[str] = None
    ) -> List[Order]: ...

    @abstractmethod
    def list_by_florist(
        self, florist_id: int, statuses: Optional[Iterable[str]] = None
    ) -> List[Order]: ...

    @abstractmethod
    def list_created_between(self, start: datetime, end: datetime) -> List[Order]: ...

    @abstractmethod
    def list_for_delivery_on(self, day: date) -> List[Order]: ...

    @abstractmethod
    def list_ready_for_delivery(self) -> List[Order]:
        """READY orders that have a delivery address."""

    @abstractmethod
    def list_overdue(self, now: datetime) -> List[Order]: ...

    @abstractmethod
    def search(self, text: str) -> List[Order]:
        """Case-insensitive match on customer name or order number."""

    # Aggregates -------------------------------------------------------

    @abstractmethod
    def count_by_status(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> Dict[str, int]: ...

    @abstractmethod
    def revenue(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> Decimal:
        """Sum of final amounts of non-cancelled orders."""

    @abstractmethod
    def count_overdue(self, now: datetime) -> int: ...

    @abstractmethod
    def top_florists(
        self,
        limit: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Dict[str, int]]: ...
