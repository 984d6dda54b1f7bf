"""Unit tests for freshness classification.

Pure functions of (expiry date, today); no database or clock involved.
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from modules.freshness import classifier
from modules.freshness.constants import FreshnessStatus

pytestmark = pytest.mark.unit

TODAY = date(2026, 3, 2)


@pytest.mark.parametrize(
    "offset,status",
    [
        (-10, FreshnessStatus.EXPIRED),
        (-1, FreshnessStatus.EXPIRED),
        (0, FreshnessStatus.EXPIRES_TODAY),
        (1, FreshnessStatus.CRITICAL),
        (2, FreshnessStatus.WARNING),
        (3, FreshnessStatus.WARNING),
        (4, FreshnessStatus.FRESH),
        (30, FreshnessStatus.FRESH),
    ],
)
def test_classify_by_days_left(offset, status):
    assert classifier.classify(TODAY + timedelta(days=offset), TODAY) == status


def test_missing_expiry_is_unknown():
    assessment = classifier.assess(None, TODAY)
    assert assessment.status == FreshnessStatus.UNKNOWN
    assert assessment.days_until_expiry is None
    assert assessment.recommended_discount == 0


@pytest.mark.parametrize(
    "status,discount",
    [
        (FreshnessStatus.FRESH, 0),
        (FreshnessStatus.WARNING, 25),
        (FreshnessStatus.CRITICAL, 50),
        (FreshnessStatus.EXPIRES_TODAY, 70),
        (FreshnessStatus.EXPIRED, 0),
        (FreshnessStatus.UNKNOWN, 0),
    ],
)
def test_recommended_discount(status, discount):
    assert classifier.recommended_discount(status) == discount


def test_assess_is_deterministic_for_the_same_day():
    expiry = TODAY + timedelta(days=2)
    assert classifier.assess(expiry, TODAY) == classifier.assess(expiry, TODAY)


def test_assess_reports_days_left():
    assessment = classifier.assess(TODAY + timedelta(days=1), TODAY)
    assert assessment.days_until_expiry == 1
    assert assessment.status == FreshnessStatus.CRITICAL
    assert assessment.recommended_discount == 50


def test_status_labels_are_human_readable():
    assert FreshnessStatus.WARNING.label == "Expires soon"
    assert FreshnessStatus.EXPIRES_TODAY.label == "Expires today"
