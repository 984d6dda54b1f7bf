"""Inventory API views.

Exposes ``InventoryService`` via HTTP using DRF ViewSets, one per stock
variant.  Domain exceptions are translated by ``modules.core.api``; the
views never swallow generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.api import error_response, require, validation_error_response
from modules.core.exceptions import DomainError
from modules.core.pagination import StandardResultsSetPagination
from modules.inventory.constants import StockItemKind
from modules.inventory.dtos import (
    CreateFlowerDTO,
    CreateMaterialDTO,
    UpdateStockItemDTO,
)
from modules.inventory.filters import FlowerFilter, MaterialFilter
from modules.inventory.models import Flower, Material
from modules.inventory.repositories import StockItemDjangoRepository
from modules.inventory.serializers import FlowerSerializer, MaterialSerializer
from modules.inventory.services import InventoryService


class _StockItemViewSet(ListModelMixin, GenericViewSet):
    """Catalog CRUD plus the ledger actions ``reserve``, ``release``, ``adjust``.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    kind: str = ""
    create_dto = None
    search_fields = ["name", "sku", "supplier"]
    ordering_fields = ["name", "unit_price", "current_stock", "created_at"]
    ordering = ["name"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = InventoryService(repository=StockItemDjangoRepository())

    def get_queryset(self):
        return self._service.catalog(self.kind)

    def _render(self, item, code: int = status.HTTP_200_OK) -> Response:
        return Response(self.get_serializer(item).data, status=code)

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        try:
            item = self._service.get_item(pk)
        except DomainError as exc:
            return error_response(exc)
        if item.kind != self.kind:
            return Response(
                {"detail": "Stock item not found."}, status=status.HTTP_404_NOT_FOUND
            )
        return self._render(item)

    def create(self, request: Request) -> Response:
        try:
            dto = self.create_dto(**request.data)
        except (PydanticValidationError, ValueError, TypeError) as exc:
            return validation_error_response(exc)

        try:
            item = (
                self._service.create_flower(dto)
                if self.kind == StockItemKind.FLOWER
                else self._service.create_material(dto)
            )
        except DomainError as exc:
            return error_response(exc)
        return self._render(item, status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        try:
            dto = UpdateStockItemDTO(**request.data)
        except (PydanticValidationError, ValueError, TypeError) as exc:
            return validation_error_response(exc)
        try:
            item = self._service.update_item(pk, dto)
        except DomainError as exc:
            return error_response(exc)
        return self._render(item)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        try:
            self._service.delete_item(pk)
        except DomainError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def reserve(self, request: Request, pk: str | None = None) -> Response:
        """POST .../{pk}/reserve/  ``{"quantity": N}``"""
        try:
            item = self._service.reserve_stock(pk, require(request.data, "quantity"))
        except DomainError as exc:
            return error_response(exc)
        except ValueError as exc:
            return validation_error_response(exc)
        return self._render(item)

    @action(detail=True, methods=["post"])
    def release(self, request: Request, pk: str | None = None) -> Response:
        """POST .../{pk}/release/  ``{"quantity": N}``"""
        try:
            item = self._service.release_stock(pk, require(request.data, "quantity"))
        except DomainError as exc:
            return error_response(exc)
        except ValueError as exc:
            return validation_error_response(exc)
        return self._render(item)

    @action(detail=True, methods=["post"])
    def adjust(self, request: Request, pk: str | None = None) -> Response:
        """POST .../{pk}/adjust/  ``{"delta": N, "reason": "..."}``"""
        try:
            item = self._service.adjust_stock(
                pk,
                require(request.data, "delta"),
                reason=request.data.get("reason", ""),
            )
        except DomainError as exc:
            return error_response(exc)
        except ValueError as exc:
            return validation_error_response(exc)
        return self._render(item)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"], url_path="needing-restock")
    def needing_restock(self, request: Request) -> Response:
        items = self._service.items_needing_restock(self.kind)
        return Response(self.get_serializer(items, many=True).data)

    @action(detail=False, methods=["get"])
    def statistics(self, request: Request) -> Response:
        return Response(self._service.statistics(self.kind))


class FlowerViewSet(_StockItemViewSet):
    kind = StockItemKind.FLOWER
    create_dto = CreateFlowerDTO
    queryset = Flower.objects.all()
    serializer_class = FlowerSerializer
    filterset_class = FlowerFilter

    @action(detail=False, methods=["get"], url_path="expiring-today")
    def expiring_today(self, request: Request) -> Response:
        flowers = self._service.flowers_expiring_today()
        return Response(self.get_serializer(flowers, many=True).data)


class MaterialViewSet(_StockItemViewSet):
    kind = StockItemKind.MATERIAL
    create_dto = CreateMaterialDTO
    queryset = Material.objects.all()
    serializer_class = MaterialSerializer
    filterset_class = MaterialFilter
