"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Look-ups
return ``None`` for unknown or invalid ids; the service decides how to
report them.

Concurrency control on status changes uses ``select_for_update()``
on the order row, inside the service's transaction.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q, Sum

from modules.core.quantities import ZERO_MONEY, quantize_money
from modules.orders.constants import CLOSED_FOR_DELIVERY_STATES, OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


def _period(queryset, start: Optional[datetime], end: Optional[datetime]):
    if start is not None:
        queryset = queryset.filter(created_at__gte=start)
    if end is not None:
        queryset = queryset.filter(created_at__lte=end)
    return queryset


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _live(self):
        return Order.objects.alive()

    def _with_relations(self):
        return self._live().prefetch_related("items", "status_history")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded items and history.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._with_relations().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return self._live().select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        return self._with_relations().filter(order_number=order_number).first()

    def exists_by_order_number(self, order_number: str) -> bool:
        return Order.objects.filter(order_number=order_number).exists()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List live orders.

        Examples of valid filters::

            {"status": "NEW"}
            {"created_at__range": (start, end)}
        """
        queryset = self._with_relations()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def queryset(self):
        return self._live()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def items_of(self, order: Order) -> List[OrderItem]:
        return list(OrderItem.objects.filter(order_id=order.id).order_by("position"))

    def save_item(self, item: OrderItem) -> OrderItem:
        item.save()
        return item

    def delete_items(self, item_ids: Iterable[Any]) -> int:
        count, _ = OrderItem.objects.filter(id__in=list(item_ids)).delete()
        return count

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order."""
        entity.save()
        logger.info("order.saved", order_id=str(entity.id), status=entity.status)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete an order by ID."""
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.soft_deleted", order_id=str(id))
        return True

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: Any,
        old_status: Optional[str],
        new_status: str,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history

    # ------------------------------------------------------------------
    # Queues
    # ------------------------------------------------------------------

    def list_by_status(
        self, statuses: Iterable[str], oldest_first: bool = False
    ) -> List[Order]:
        queryset = self._live().filter(status__in=list(statuses))
        if oldest_first:
            queryset = queryset.order_by("created_at", "id")
        return list(queryset)

    def list_by_customer(
        self, phone: Optional[str] = None, email: Optional[str] = None
    ) -> List[Order]:
        condition = Q()
        if phone:
            condition |= Q(customer_phone=phone)
        if email:
            condition |= Q(customer_email__iexact=email)
        if not condition:
            return []
        return list(self._live().filter(condition))

    def list_by_florist(
        self, florist_id: int, statuses: Optional[Iterable[str]] = None
    ) -> List[Order]:
        queryset = self._live().filter(assigned_florist_id=florist_id)
        if statuses is not None:
            queryset = queryset.filter(status__in=list(statuses))
        return list(queryset)

    def list_created_between(self, start: datetime, end: datetime) -> List[Order]:
        return list(self._live().filter(created_at__range=(start, end)))

    def list_for_delivery_on(self, day: date) -> List[Order]:
        return list(
            self._live().filter(delivery_date__date=day).order_by("delivery_date")
        )

    def list_ready_for_delivery(self) -> List[Order]:
        return list(
            self._live()
            .filter(status=OrderStatus.READY)
            .exclude(delivery_address="")
            .order_by("delivery_date")
        )

    def _overdue(self, now: datetime):
        return self._live().filter(delivery_date__lt=now).exclude(
            status__in=CLOSED_FOR_DELIVERY_STATES
        )

    def list_overdue(self, now: datetime) -> List[Order]:
        return list(self._overdue(now).order_by("delivery_date"))

    def search(self, text: str) -> List[Order]:
        return list(
            self._live().filter(
                Q(customer_name__icontains=text) | Q(order_number__icontains=text)
            )
        )

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def count_by_status(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> Dict[str, int]:
        rows = (
            _period(self._live(), start, end)
            .order_by()
            .values("status")
            .annotate(count=Count("id"))
        )
        return {row["status"]: row["count"] for row in rows}

    def revenue(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> Decimal:
        value = (
            _period(self._live(), start, end)
            .exclude(status=OrderStatus.CANCELLED)
            .aggregate(total=Sum("final_amount"))["total"]
        )
        return quantize_money(value) if value is not None else ZERO_MONEY

    def count_overdue(self, now: datetime) -> int:
        return self._overdue(now).count()

    def top_florists(
        self,
        limit: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Dict[str, int]]:
        rows = (
            _period(self._live(), start, end)
            .filter(assigned_florist_id__isnull=False)
            .order_by()
            .values("assigned_florist_id")
            .annotate(orders=Count("id"))
            .order_by("-orders", "assigned_florist_id")[:limit]
        )
        return [
            {"florist_id": row["assigned_florist_id"], "orders": row["orders"]}
            for row in rows
        ]
