"""Integration tests for the Celery configuration and freshness tasks."""

from datetime import timedelta

import pytest
from django.utils import timezone

from modules.freshness.constants import FreshnessStatus
from modules.freshness.dtos import CreateBatchDTO
from modules.freshness.models import FreshnessBatch

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _celery_eager(settings):
    """Run tasks synchronously in the test process."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


class TestCeleryConfig:
    """Celery loads through Django."""

    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "florist_erp"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "florist_erp"

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_beat_schedules_freshness_tasks(self, settings):
        tasks = {entry["task"] for entry in settings.CELERY_BEAT_SCHEDULE.values()}
        assert {"freshness.recompute_statuses", "freshness.cleanup_expired_batches"} <= tasks


class TestFreshnessTasks:
    def test_recompute_statuses(self, freshness_service, flower):
        today = timezone.localdate()
        batch = freshness_service.create_batch(
            CreateBatchDTO(
                flower_id=flower.id,
                quantity=10,
                delivery_date=today,
                expiry_date=today + timedelta(days=1),
            ),
            today=today - timedelta(days=5),
        )
        assert batch.status == FreshnessStatus.FRESH

        from modules.freshness.tasks import recompute_statuses

        result = recompute_statuses.delay()

        assert result.successful()
        assert result.result == {"status": "ok", "status_changes": 1}
        batch.refresh_from_db()
        assert batch.status == FreshnessStatus.CRITICAL

    def test_cleanup_expired_batches(self, freshness_service, flower):
        today = timezone.localdate()
        freshness_service.create_batch(
            CreateBatchDTO(
                flower_id=flower.id,
                quantity=3,
                delivery_date=today - timedelta(days=40),
                expiry_date=today - timedelta(days=30),
            ),
            today=today,
        )

        from modules.freshness.tasks import cleanup_expired_batches

        output = cleanup_expired_batches(retention_days=7)

        assert output == {"status": "ok", "deleted": 1}
        assert FreshnessBatch.objects.count() == 0
