"""Freshness URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.freshness.views import FreshnessBatchViewSet

router = DefaultRouter(trailing_slash=True)
router.register("freshness-batches", FreshnessBatchViewSet, basename="freshness-batch")

urlpatterns = router.urls
