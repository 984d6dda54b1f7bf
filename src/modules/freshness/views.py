"""Freshness API views.

Exposes ``FreshnessService`` via HTTP.  Domain exceptions are translated
by ``modules.core.api``.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.api import error_response, require, validation_error_response
from modules.core.exceptions import DomainError
from modules.core.pagination import StandardResultsSetPagination
from modules.freshness.dtos import CreateBatchDTO
from modules.freshness.filters import FreshnessBatchFilter
from modules.freshness.models import FreshnessBatch
from modules.freshness.repositories import FreshnessBatchDjangoRepository
from modules.freshness.serializers import FreshnessBatchSerializer
from modules.freshness.services import FreshnessService
from modules.inventory.repositories import StockItemDjangoRepository


class FreshnessBatchViewSet(ListModelMixin, GenericViewSet):
    """Freshness calendar: batches, markdowns, sweeps and cleanup."""

    queryset = FreshnessBatch.objects.all()
    serializer_class = FreshnessBatchSerializer
    filterset_class = FreshnessBatchFilter
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    ordering_fields = ["expiry_date", "delivery_date", "quantity", "discount_percentage"]
    ordering = ["expiry_date"]
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = FreshnessService(
            batch_repository=FreshnessBatchDjangoRepository(),
            stock_repository=StockItemDjangoRepository(),
        )

    def get_queryset(self):
        return self._service.batches()

    def _many(self, batches) -> Response:
        return Response(self.get_serializer(batches, many=True).data)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        try:
            batch = self._service.get_batch(pk)
        except DomainError as exc:
            return error_response(exc)
        return Response(self.get_serializer(batch).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/freshness-batches/

        With ``delivery_date`` the batch is recorded as given; without it
        the batch is received today with the flower's expiry date.
        """
        data = request.data
        try:
            if data.get("delivery_date"):
                batch = self._service.create_batch(CreateBatchDTO(**data))
            else:
                batch = self._service.receive_batch(
                    flower_id=require(data, "flower_id"),
                    quantity=int(require(data, "quantity")),
                    batch_number=data.get("batch_number", ""),
                )
        except DomainError as exc:
            return error_response(exc)
        except (PydanticValidationError, ValueError, TypeError) as exc:
            return validation_error_response(exc)
        return Response(self.get_serializer(batch).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def discount(self, request: Request, pk: str | None = None) -> Response:
        """POST .../{pk}/discount/  ``{"percentage": 0..100}``"""
        try:
            batch = self._service.apply_discount(pk, request.data.get("percentage"))
        except DomainError as exc:
            return error_response(exc)
        return Response(self.get_serializer(batch).data)

    @action(detail=True, methods=["post"])
    def sell(self, request: Request, pk: str | None = None) -> Response:
        try:
            batch = self._service.mark_as_sold(pk)
        except DomainError as exc:
            return error_response(exc)
        return Response(self.get_serializer(batch).data)

    # ------------------------------------------------------------------
    # Sweeps
    # ------------------------------------------------------------------

    @action(detail=False, methods=["post"])
    def recompute(self, request: Request) -> Response:
        changed = self._service.recompute_all()
        return Response({"status_changes": changed})

    @action(detail=False, methods=["post"])
    def cleanup(self, request: Request) -> Response:
        retention = request.data.get("retention_days")
        try:
            deleted = self._service.cleanup_expired(
                int(retention) if retention is not None else None
            )
        except DomainError as exc:
            return error_response(exc)
        except ValueError as exc:
            return validation_error_response(exc)
        return Response({"deleted": deleted})

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"], url_path="needing-discount")
    def needing_discount(self, request: Request) -> Response:
        return self._many(self._service.needing_discount())

    @action(detail=False, methods=["get"], url_path="expiring-today")
    def expiring_today(self, request: Request) -> Response:
        return self._many(self._service.expiring_today())

    @action(detail=False, methods=["get"])
    def expired(self, request: Request) -> Response:
        return self._many(self._service.expired())

    @action(detail=False, methods=["get"], url_path="discount-recommendations")
    def discount_recommendations(self, request: Request) -> Response:
        return self._many(self._service.discount_recommendations())

    @action(detail=False, methods=["get"])
    def statistics(self, request: Request) -> Response:
        return Response(self._service.statistics())
