"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are translated by ``modules.core.api``; the view
never swallows generic exceptions.
"""

from __future__ import annotations

from datetime import datetime

from django.utils.dateparse import parse_datetime
from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.api import error_response, require, validation_error_response
from modules.core.exceptions import DomainError
from modules.core.pagination import StandardResultsSetPagination
from modules.inventory.repositories import StockItemDjangoRepository
from modules.inventory.services import InventoryService
from modules.orders.dtos import CreateOrderDTO, OrderItemDTO
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderItemInputSerializer,
    OrderListSerializer,
    OrderSerializer,
    StatusUpdateSerializer,
)
from modules.orders.services import OrderService


def _period_param(request: Request, name: str) -> datetime | None:
    raw = request.query_params.get(name)
    if not raw:
        return None
    value = parse_datetime(raw)
    if value is None:
        raise ValueError(f"Query parameter '{name}' must be an ISO datetime.")
    return value


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer_name"]
    ordering_fields = ["created_at", "delivery_date", "final_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            inventory_service=InventoryService(repository=StockItemDjangoRepository()),
        )

    def get_queryset(self):
        return self._service.orders()

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def _render(self, order, code: int = status.HTTP_200_OK) -> Response:
        return Response(OrderSerializer(order).data, status=code)

    def _many(self, orders) -> Response:
        return Response(OrderListSerializer(orders, many=True).data)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Reserves every stocked line; 409 when stock is short.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        try:
            dto = CreateOrderDTO(
                **{key: value for key, value in data.items() if key != "items"},
                items=[OrderItemDTO(**item) for item in data["items"]],
            )
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            order = self._service.create_order(dto)
        except DomainError as exc:
            return error_response(exc)
        return self._render(order, status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, phone, florist, date ranges, totals) is handled
        by ``OrderFilter``; ordering by ``OrderingFilter``.  Paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk)
        except DomainError as exc:
            return error_response(exc)
        return self._render(order)

    # ------------------------------------------------------------------
    # Status Update / Delete
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/  ``{"status": ..., "notes": ...}``

        Moves the order along the transition table.  Reaching DELIVERED
        consumes the reserved stock, CANCELLED releases it.
        """
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = self._service.transition_order(
                pk,
                serializer.validated_data["status"],
                notes=serializer.validated_data["notes"],
            )
        except DomainError as exc:
            return error_response(exc)
        return self._render(order)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/ (NEW or CANCELLED orders only)."""
        try:
            self._service.delete_order(pk)
        except DomainError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Lifecycle actions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/  ``{"reason": ...}``

        Cancels from any status but DELIVERED and releases reserved stock.
        """
        try:
            order = self._service.cancel_order(pk, reason=request.data.get("reason", ""))
        except DomainError as exc:
            return error_response(exc)
        return self._render(order)

    @action(detail=True, methods=["post"], url_path="assign-florist")
    def assign_florist(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/assign-florist/  ``{"florist_id": int}``"""
        try:
            florist_id = int(require(request.data, "florist_id"))
        except (ValueError, TypeError) as exc:
            return validation_error_response(exc)
        try:
            order = self._service.assign_florist(pk, florist_id)
        except DomainError as exc:
            return error_response(exc)
        return self._render(order)

    @action(detail=True, methods=["post"])
    def items(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/items/ adds one line."""
        serializer = OrderItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = OrderItemDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return validation_error_response(exc)
        try:
            order = self._service.add_item(pk, dto)
        except DomainError as exc:
            return error_response(exc)
        return self._render(order, status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["delete"],
        url_path=r"items/(?P<item_id>[^/.]+)",
        url_name="remove-item",
    )
    def remove_item(
        self, request: Request, pk: str | None = None, item_id: str | None = None
    ) -> Response:
        """DELETE /api/v1/orders/{pk}/items/{item_id}/"""
        try:
            order = self._service.remove_item(pk, item_id)
        except DomainError as exc:
            return error_response(exc)
        return self._render(order)

    @action(detail=True, methods=["post"])
    def discount(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/discount/  ``{"amount": "10.00"}``"""
        try:
            order = self._service.apply_discount(pk, require(request.data, "amount"))
        except DomainError as exc:
            return error_response(exc)
        except ValueError as exc:
            return validation_error_response(exc)
        return self._render(order)

    @action(detail=True, methods=["post"])
    def recalculate(self, request: Request, pk: str | None = None) -> Response:
        try:
            order = self._service.recalculate(pk)
        except DomainError as exc:
            return error_response(exc)
        return self._render(order)

    # ------------------------------------------------------------------
    # Queues and reports
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"], url_path=r"by-number/(?P<order_number>[^/]+)")
    def by_number(self, request: Request, order_number: str | None = None) -> Response:
        try:
            order = self._service.get_by_number(order_number)
        except DomainError as exc:
            return error_response(exc)
        return self._render(order)

    @action(detail=False, methods=["get"], url_path="requiring-processing")
    def requiring_processing(self, request: Request) -> Response:
        return self._many(self._service.requiring_processing())

    @action(detail=False, methods=["get"], url_path="ready-for-delivery")
    def ready_for_delivery(self, request: Request) -> Response:
        return self._many(self._service.ready_for_delivery())

    @action(detail=False, methods=["get"])
    def overdue(self, request: Request) -> Response:
        return self._many(self._service.overdue())

    @action(detail=False, methods=["get"], url_path=r"florist/(?P<florist_id>\d+)")
    def florist(self, request: Request, florist_id: str | None = None) -> Response:
        """Active (IN_PROGRESS) orders of a florist."""
        return self._many(self._service.active_for_florist(int(florist_id)))

    @action(detail=False, methods=["get"])
    def statistics(self, request: Request) -> Response:
        """GET /api/v1/orders/statistics/?start=...&end=..."""
        try:
            start = _period_param(request, "start")
            end = _period_param(request, "end")
        except ValueError as exc:
            return validation_error_response(exc)
        stats = self._service.statistics(start, end)
        return Response(stats.model_dump(mode="json"))
