"""Periodic freshness tasks, scheduled by Celery beat."""

import structlog
from celery import shared_task

from modules.freshness.repositories import FreshnessBatchDjangoRepository
from modules.freshness.services import FreshnessService
from modules.inventory.repositories import StockItemDjangoRepository

logger = structlog.get_logger(__name__)


def _service() -> FreshnessService:
    return FreshnessService(
        batch_repository=FreshnessBatchDjangoRepository(),
        stock_repository=StockItemDjangoRepository(),
    )


@shared_task(name="freshness.recompute_statuses")
def recompute_statuses():
    """Re-classify every unsold batch against today's date."""
    changed = _service().recompute_all()
    logger.info("freshness_task.recompute_statuses", status_changes=changed)
    return {"status": "ok", "status_changes": changed}


@shared_task(name="freshness.cleanup_expired_batches")
def cleanup_expired_batches(retention_days=None):
    deleted = _service().cleanup_expired(retention_days)
    logger.info("freshness_task.cleanup_expired_batches", deleted=deleted)
    return {"status": "ok", "deleted": deleted}
