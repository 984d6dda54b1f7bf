"""Inventory repositories package."""

from modules.inventory.repositories.django_repository import StockItemDjangoRepository
from modules.inventory.repositories.interfaces import IStockItemRepository

__all__ = ["IStockItemRepository", "StockItemDjangoRepository"]
