"""Freshness constants.

Status choices with their display labels, the recommended markdown per
status and the statuses that call for a markdown.
"""

from django.db import models


class FreshnessStatus(models.TextChoices):
    FRESH = "FRESH", "Fresh"
    WARNING = "WARNING", "Expires soon"
    CRITICAL = "CRITICAL", "Critical"
    EXPIRES_TODAY = "EXPIRES_TODAY", "Expires today"
    EXPIRED = "EXPIRED", "Expired"
    UNKNOWN = "UNKNOWN", "Unknown"


# Days left (inclusive upper bound) at which each status starts.
CRITICAL_DAYS = 1
WARNING_DAYS = 3

RECOMMENDED_DISCOUNT: dict[str, int] = {
    FreshnessStatus.WARNING: 25,
    FreshnessStatus.CRITICAL: 50,
    FreshnessStatus.EXPIRES_TODAY: 70,
}

NEEDS_DISCOUNT_STATUSES = frozenset(RECOMMENDED_DISCOUNT)

MIN_DISCOUNT = 0
MAX_DISCOUNT = 100

DEFAULT_STORAGE_CONDITIONS = "Refrigerator +2°C, humidity 85%"
DEFAULT_TEMPERATURE_CELSIUS = 2
DEFAULT_HUMIDITY_PERCENTAGE = 85
