"""Order service layer (Use Cases).

Orchestrates the order lifecycle: creation, status transitions, florist
assignment, cancellation, item and discount changes.  All write
operations are atomic; the service defines the unit-of-work boundary.

Rules enforced:
- Status changes follow ``constants.VALID_TRANSITIONS``; anything else
  raises ``InvalidTransition`` and leaves the order untouched.
- Assigning a florist to a NEW / CONFIRMED order also moves it to
  IN_PROGRESS, in the same transaction.
- Stock: creation reserves every stocked line (all-or-nothing);
  CANCELLED releases the reservation, DELIVERED consumes it.  The
  ``stock_reserved`` flag makes either happen at most once.
- Totals are recomputed through ``modules.orders.pricing`` after every
  item or discount change and on explicit recalculation only.
- Every status change appends an ``OrderStatusHistory`` row.

Locks are always taken order row first, then stock rows in id order.
"""

from __future__ import annotations

import secrets
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence

import structlog
from django.db import transaction
from django.utils import timezone

from modules.core.quantities import ZERO_MONEY, quantize_money
from modules.inventory.dtos import StockLineDTO
from modules.inventory.exceptions import StockItemInactive
from modules.orders import pricing
from modules.orders.constants import (
    DELETABLE_STATES,
    EDITABLE_STATES,
    FLORIST_ACTIVE_STATES,
    FLORIST_AUTO_ADVANCE_STATES,
    NON_CANCELLABLE_STATES,
    ORDER_NUMBER_MAX_RETRIES,
    ORDER_NUMBER_PREFIX,
    REQUIRING_PROCESSING_STATES,
    TOP_FLORISTS_LIMIT,
    OrderStatus,
    ProductType,
    can_transition,
)
from modules.orders.dtos import OrderStatisticsDTO
from modules.orders.exceptions import (
    InvalidTransition,
    OrderItemNotFound,
    OrderNotAllowed,
    OrderNotFound,
)
from modules.orders.models import Order, OrderItem

if TYPE_CHECKING:
    from modules.inventory.services import InventoryService
    from modules.orders.dtos import CreateOrderDTO, OrderItemDTO
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


def _stock_lines(items: Iterable[OrderItem]) -> List[StockLineDTO]:
    return [
        StockLineDTO(item_id=item.stock_item_id, quantity=item.quantity)
        for item in items
        if item.stock_item_id is not None
    ]


def _append_note(notes: str, line: str) -> str:
    return f"{notes}\n{line}" if notes else line


class OrderService:
    """Application service for Order use-cases.

    Receives the order repository and the inventory service via
    constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        inventory_service: InventoryService,
    ) -> None:
        self._order_repo = order_repository
        self._inventory = inventory_service

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, today: Optional[date] = None) -> Order:
        """Create a NEW order and reserve its stocked lines.

        Steps:
        1. Snapshot every stocked line from the catalog.
        2. Price the lines and the order.
        3. Reserve all stocked quantities (all-or-nothing).
        4. Persist order + items and record the initial history row.

        Raises:
            StockItemNotFound: a line names an unknown stock item.
            StockItemInactive: a line names a deactivated stock item.
            InsufficientStock / InvalidQuantity: the reservation failed.
            PricingError: a total came out negative.
        """
        log = logger.bind(customer_phone=dto.customer_phone, item_count=len(dto.items))
        log.info("order.creation_started")

        order = Order(
            order_number=self._next_order_number(today or timezone.localdate()),
            status=OrderStatus.NEW,
            customer_name=dto.customer_name,
            customer_phone=dto.customer_phone,
            customer_email=dto.customer_email,
            delivery_address=dto.delivery_address,
            delivery_date=dto.delivery_date,
            notes=dto.notes,
            payment_method=dto.payment_method or "",
            assigned_florist_id=dto.assigned_florist_id,
        )
        items = [
            self._build_item(order, item_dto, position)
            for position, item_dto in enumerate(dto.items)
        ]
        self._apply_totals(order, items, dto.discount_amount)

        lines = _stock_lines(items)
        self._inventory.reserve_many(lines)
        order.stock_reserved = bool(lines)

        self._order_repo.save(order)
        for item_dto, item in zip(dto.items, items):
            if item_dto.parent_index is not None:
                item.parent = items[item_dto.parent_index]
                item.is_bouquet_component = True
            self._order_repo.save_item(item)

        self._order_repo.add_history(order.id, None, OrderStatus.NEW, "Order created")
        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            final_amount=str(order.final_amount),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def transition_order(self, order_id: Any, new_status: str, notes: str = "") -> Order:
        """Move an order along the transition table.

        Raises:
            OrderNotFound: order does not exist.
            InvalidTransition: the pair is not in the table.
        """
        order = self._lock(order_id)
        log = logger.bind(
            order_id=str(order.id), current_status=order.status, new_status=new_status
        )
        if not can_transition(order.status, new_status):
            log.warning("order.invalid_transition")
            raise InvalidTransition(order.id, order.status, new_status)

        old_status = order.status
        self._settle_stock(order, new_status)
        order.status = new_status
        self._order_repo.save(order)
        self._order_repo.add_history(order.id, old_status, new_status, notes)
        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def assign_florist(self, order_id: Any, florist_id: int) -> Order:
        """Assign a florist; NEW / CONFIRMED orders also move to IN_PROGRESS.

        Raises:
            OrderNotFound: order does not exist.
        """
        order = self._lock(order_id)
        old_status = order.status
        order.assigned_florist_id = florist_id
        if old_status in FLORIST_AUTO_ADVANCE_STATES:
            order.status = OrderStatus.IN_PROGRESS
        self._order_repo.save(order)

        if order.status != old_status:
            self._order_repo.add_history(
                order.id,
                old_status,
                order.status,
                f"Florist {florist_id} assigned",
            )
        logger.info(
            "order.florist_assigned",
            order_id=str(order.id),
            florist_id=florist_id,
            old_status=old_status,
            new_status=order.status,
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def cancel_order(self, order_id: Any, reason: str = "") -> Order:
        """Cancel an order from any state but DELIVERED.

        The reason is appended to the order notes.  Reserved stock is
        released once; cancelling a cancelled order only records the
        reason again.

        Raises:
            OrderNotFound: order does not exist.
            OrderNotAllowed: the order is DELIVERED.
        """
        order = self._lock(order_id)
        log = logger.bind(order_id=str(order.id), current_status=order.status)
        if order.status in NON_CANCELLABLE_STATES:
            log.warning("order.cancel_not_allowed")
            raise OrderNotAllowed(order.id, "cancel", order.status)

        old_status = order.status
        if reason:
            order.notes = _append_note(order.notes, f"Cancellation reason: {reason}")
        self._settle_stock(order, OrderStatus.CANCELLED)
        order.status = OrderStatus.CANCELLED
        self._order_repo.save(order)

        if old_status != OrderStatus.CANCELLED:
            self._order_repo.add_history(
                order.id, old_status, OrderStatus.CANCELLED, reason or "Order cancelled"
            )
        log.info("order.cancelled", reason=reason)
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def delete_order(self, order_id: Any) -> None:
        """Soft-delete a NEW or CANCELLED order, releasing held stock.

        Raises:
            OrderNotFound: order does not exist.
            OrderNotAllowed: the order is in any other status.
        """
        order = self._lock(order_id)
        if order.status not in DELETABLE_STATES:
            raise OrderNotAllowed(order.id, "delete", order.status)
        self._settle_stock(order, OrderStatus.CANCELLED)
        self._order_repo.save(order)
        self._order_repo.delete(str(order.id))
        logger.info("order.deleted", order_id=str(order.id))

    @transaction.atomic
    def add_item(self, order_id: Any, item_dto: OrderItemDTO) -> Order:
        """Add a line to a NEW / CONFIRMED order and reserve its stock.

        Raises:
            OrderNotFound: order does not exist.
            OrderNotAllowed: the order is past CONFIRMED.
            OrderItemNotFound: ``parent_item_id`` is not a line of the order.
            InsufficientStock / StockItemNotFound: the reservation failed.
        """
        order = self._lock(order_id)
        if order.status not in EDITABLE_STATES:
            raise OrderNotAllowed(order.id, "edit items of", order.status)

        items = self._order_repo.items_of(order)
        item = self._build_item(order, item_dto, len(items))
        if item_dto.parent_item_id is not None:
            parent = next(
                (i for i in items if str(i.id) == str(item_dto.parent_item_id)), None
            )
            if parent is None or parent.is_bouquet_component:
                raise OrderItemNotFound(order.id, item_dto.parent_item_id)
            item.parent = parent
            item.is_bouquet_component = True

        self._apply_totals(order, items + [item], order.discount_amount)
        lines = _stock_lines([item])
        if lines:
            self._inventory.reserve_many(lines)
            order.stock_reserved = True

        self._order_repo.save_item(item)
        self._order_repo.save(order)
        logger.info(
            "order.item_added",
            order_id=str(order.id),
            item_id=str(item.id),
            stock_item_id=str(item.stock_item_id) if item.stock_item_id else None,
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def remove_item(self, order_id: Any, item_id: Any) -> Order:
        """Remove a line (and its bouquet components) from an editable order.

        Raises:
            OrderNotFound: order does not exist.
            OrderItemNotFound: the line is not part of the order.
            OrderNotAllowed: the order is past CONFIRMED, or the line is
                the last one.
        """
        order = self._lock(order_id)
        if order.status not in EDITABLE_STATES:
            raise OrderNotAllowed(order.id, "edit items of", order.status)

        items = self._order_repo.items_of(order)
        target = next((i for i in items if str(i.id) == str(item_id)), None)
        if target is None:
            raise OrderItemNotFound(order.id, item_id)

        removed = [target] + [i for i in items if i.parent_id == target.id]
        removed_ids = {i.id for i in removed}
        remaining = [i for i in items if i.id not in removed_ids]
        if not remaining:
            raise OrderNotAllowed(order.id, "remove the last item of", order.status)

        self._apply_totals(order, remaining, order.discount_amount)
        if order.stock_reserved:
            self._inventory.release_many(_stock_lines(removed))
            order.stock_reserved = bool(_stock_lines(remaining))

        self._order_repo.delete_items(removed_ids)
        self._order_repo.save(order)
        logger.info(
            "order.item_removed",
            order_id=str(order.id),
            item_id=str(item_id),
            removed=len(removed),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def apply_discount(self, order_id: Any, amount: Any) -> Order:
        """Set the order-level discount and recompute the totals.

        Raises:
            OrderNotFound: order does not exist.
            OrderNotAllowed: the order is DELIVERED or CANCELLED.
            PricingError: the discount is negative or exceeds the total.
        """
        order = self._lock(order_id)
        if order.is_terminal:
            raise OrderNotAllowed(order.id, "discount", order.status)
        self._apply_totals(order, self._order_repo.items_of(order), amount)
        self._order_repo.save(order)
        logger.info(
            "order.discount_applied",
            order_id=str(order.id),
            discount=str(order.discount_amount),
            final_amount=str(order.final_amount),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def recalculate(self, order_id: Any) -> Order:
        """Recompute every line total and the order totals.

        Raises:
            OrderNotFound: order does not exist.
            PricingError: a total came out negative.
        """
        order = self._lock(order_id)
        items = self._order_repo.items_of(order)
        for item in items:
            item.total_price = pricing.item_total(
                item.quantity, item.unit_price, item.discount_amount
            )
        self._apply_totals(order, items, order.discount_amount)
        for item in items:
            item.save(update_fields=["total_price"])
        self._order_repo.save(order)
        logger.info(
            "order.recalculated",
            order_id=str(order.id),
            total_amount=str(order.total_amount),
            final_amount=str(order.final_amount),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(order_id)
        return order

    def get_by_number(self, order_number: str) -> Order:
        order = self._order_repo.get_by_order_number(order_number)
        if not order:
            raise OrderNotFound(order_number)
        return order

    def orders(self):
        return self._order_repo.queryset()

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        return self._order_repo.list(filters)

    def orders_with_status(self, status: str) -> List[Order]:
        return self._order_repo.list_by_status([OrderStatus(status)])

    def orders_for_customer(
        self, phone: Optional[str] = None, email: Optional[str] = None
    ) -> List[Order]:
        return self._order_repo.list_by_customer(phone=phone, email=email)

    def orders_for_florist(self, florist_id: int) -> List[Order]:
        return self._order_repo.list_by_florist(florist_id)

    def active_for_florist(self, florist_id: int) -> List[Order]:
        return self._order_repo.list_by_florist(florist_id, FLORIST_ACTIVE_STATES)

    def orders_created_between(self, start: datetime, end: datetime) -> List[Order]:
        return self._order_repo.list_created_between(start, end)

    def deliveries_on(self, day: date) -> List[Order]:
        return self._order_repo.list_for_delivery_on(day)

    def requiring_processing(self) -> List[Order]:
        """NEW and CONFIRMED orders, oldest first."""
        return self._order_repo.list_by_status(
            REQUIRING_PROCESSING_STATES, oldest_first=True
        )

    def ready_for_delivery(self) -> List[Order]:
        return self._order_repo.list_ready_for_delivery()

    def overdue(self, now: Optional[datetime] = None) -> List[Order]:
        return self._order_repo.list_overdue(now or timezone.now())

    def search(self, text: str) -> List[Order]:
        text = text.strip()
        return self._order_repo.search(text) if text else []

    def statistics(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> OrderStatisticsDTO:
        """Order figures for orders created in ``[start, end]``.

        Revenue counts final amounts of non-cancelled orders; the
        conversion rate is the share of DELIVERED orders in percent.
        """
        now = now or timezone.now()
        day_start = timezone.make_aware(
            datetime.combine(timezone.localtime(now).date(), time.min)
        )

        counts = self._order_repo.count_by_status(start, end)
        total = sum(counts.values())
        cancelled = counts.get(OrderStatus.CANCELLED, 0)
        delivered = counts.get(OrderStatus.DELIVERED, 0)
        revenue = self._order_repo.revenue(start, end)
        paying = total - cancelled

        average = quantize_money(revenue / paying) if paying else ZERO_MONEY
        conversion = (
            (Decimal(delivered) * 100 / total).quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            )
            if total
            else Decimal("0.00")
        )

        return OrderStatisticsDTO(
            period_start=start,
            period_end=end,
            total_orders=total,
            todays_orders=sum(self._order_repo.count_by_status(day_start, now).values()),
            orders_requiring_processing=sum(
                counts.get(s, 0) for s in REQUIRING_PROCESSING_STATES
            ),
            orders_in_progress=counts.get(OrderStatus.IN_PROGRESS, 0),
            orders_ready_for_delivery=counts.get(OrderStatus.READY, 0),
            delivered_orders=delivered,
            cancelled_orders=cancelled,
            overdue_orders=self._order_repo.count_overdue(now),
            total_revenue=revenue,
            todays_revenue=self._order_repo.revenue(day_start, now),
            average_order_value=average,
            conversion_rate=conversion,
            orders_by_status={
                OrderStatus(status).label: count for status, count in counts.items()
            },
            top_florists=self._order_repo.top_florists(TOP_FLORISTS_LIMIT, start, end),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock(self, order_id: Any) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(order_id)
        return order

    def _next_order_number(self, today: date) -> str:
        """``LV-YYYYMMDD-NNNN`` with a random suffix, redrawn on collision."""
        for _ in range(ORDER_NUMBER_MAX_RETRIES):
            candidate = (
                f"{ORDER_NUMBER_PREFIX}-{today:%Y%m%d}-{secrets.randbelow(10000):04d}"
            )
            if not self._order_repo.exists_by_order_number(candidate):
                return candidate
        raise RuntimeError(
            f"Failed to generate unique order_number after "
            f"{ORDER_NUMBER_MAX_RETRIES} attempts"
        )

    def _build_item(self, order: Order, dto: OrderItemDTO, position: int) -> OrderItem:
        """Snapshot and price one line; nothing is saved."""
        if dto.stock_item_id is not None:
            snapshot = self._inventory.snapshot(dto.stock_item_id)
            if not snapshot.is_active:
                raise StockItemInactive(snapshot.item_id)
            name, sku = snapshot.name, snapshot.sku
            product_type = ProductType(snapshot.kind)
            unit, unit_price = snapshot.unit_label, snapshot.unit_price
        else:
            name, sku = dto.product_name.strip(), ""
            product_type = dto.product_type
            unit, unit_price = dto.unit_of_measure, dto.unit_price

        return OrderItem(
            order=order,
            position=position,
            stock_item_id=dto.stock_item_id,
            product_name=name,
            product_sku=sku,
            product_type=product_type,
            unit_of_measure=unit,
            quantity=dto.quantity,
            unit_price=unit_price,
            discount_amount=dto.discount_amount,
            total_price=pricing.item_total(dto.quantity, unit_price, dto.discount_amount),
            notes=dto.notes,
            is_bouquet_component=dto.is_component,
        )

    @staticmethod
    def _apply_totals(order: Order, items: Sequence[OrderItem], discount: Any) -> None:
        totals = pricing.order_totals((item.total_price for item in items), discount)
        order.total_amount = totals.total
        order.discount_amount = totals.discount
        order.final_amount = totals.final

    def _settle_stock(self, order: Order, new_status: str) -> None:
        """Release (CANCELLED) or consume (DELIVERED) the order's reservation."""
        if not order.stock_reserved or new_status not in (
            OrderStatus.CANCELLED,
            OrderStatus.DELIVERED,
        ):
            return
        lines = _stock_lines(self._order_repo.items_of(order))
        if new_status == OrderStatus.DELIVERED:
            self._inventory.consume_many(lines)
        else:
            self._inventory.release_many(lines)
        order.stock_reserved = False
        logger.info(
            "order.stock_settled",
            order_id=str(order.id),
            outcome="consumed" if new_status == OrderStatus.DELIVERED else "released",
            lines=len(lines),
        )
