"""Inventory URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.inventory.views import FlowerViewSet, MaterialViewSet

router = DefaultRouter(trailing_slash=True)
router.register("flowers", FlowerViewSet, basename="flower")
router.register("materials", MaterialViewSet, basename="material")

urlpatterns = router.urls
