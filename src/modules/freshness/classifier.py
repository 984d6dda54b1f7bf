"""Freshness classification.

Pure functions of a batch's expiry date and an explicit *today*; nothing
here reads the clock or the database, so a sweep over the same inputs
always yields the same answer.

    days left   status
    ---------   -------------
    < 0         EXPIRED
    0           EXPIRES_TODAY
    1           CRITICAL
    2..3        WARNING
    > 3         FRESH
    no expiry   UNKNOWN
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from modules.freshness.constants import (
    CRITICAL_DAYS,
    RECOMMENDED_DISCOUNT,
    WARNING_DAYS,
    FreshnessStatus,
)


@dataclass(frozen=True)
class Assessment:
    days_until_expiry: Optional[int]
    status: FreshnessStatus
    recommended_discount: int


def days_until_expiry(expiry_date: Optional[date], today: date) -> Optional[int]:
    if expiry_date is None:
        return None
    return (expiry_date - today).days


def classify(expiry_date: Optional[date], today: date) -> FreshnessStatus:
    days = days_until_expiry(expiry_date, today)
    if days is None:
        return FreshnessStatus.UNKNOWN
    if days < 0:
        return FreshnessStatus.EXPIRED
    if days == 0:
        return FreshnessStatus.EXPIRES_TODAY
    if days <= CRITICAL_DAYS:
        return FreshnessStatus.CRITICAL
    if days <= WARNING_DAYS:
        return FreshnessStatus.WARNING
    return FreshnessStatus.FRESH


def recommended_discount(status: str) -> int:
    """Markdown percentage for *status*; 0 for statuses without one."""
    return RECOMMENDED_DISCOUNT.get(status, 0)


def assess(expiry_date: Optional[date], today: date) -> Assessment:
    status = classify(expiry_date, today)
    return Assessment(
        days_until_expiry=days_until_expiry(expiry_date, today),
        status=status,
        recommended_discount=recommended_discount(status),
    )
