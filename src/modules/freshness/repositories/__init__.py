"""Freshness repositories package."""

from modules.freshness.repositories.django_repository import (
    FreshnessBatchDjangoRepository,
)
from modules.freshness.repositories.interfaces import IFreshnessBatchRepository

__all__ = ["FreshnessBatchDjangoRepository", "IFreshnessBatchRepository"]
