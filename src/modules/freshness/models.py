"""Freshness batch model.

One row per delivery of a flower.  ``status``, ``days_until_expiry`` and
(unless ``discount_is_manual``) ``discount_percentage`` are written only
by ``FreshnessService`` from ``modules.freshness.classifier``; saving a
batch never recomputes them.
"""

from __future__ import annotations

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import TimestampedModel
from modules.freshness.constants import (
    DEFAULT_STORAGE_CONDITIONS,
    MAX_DISCOUNT,
    MIN_DISCOUNT,
    FreshnessStatus,
)


class FreshnessBatch(TimestampedModel):
    flower = models.ForeignKey(
        "inventory.Flower",
        on_delete=models.CASCADE,
        related_name="freshness_batches",
    )
    batch_number = models.CharField(max_length=50, blank=True, default="")
    quantity = models.PositiveIntegerField()
    delivery_date = models.DateField()
    expiry_date = models.DateField(null=True, blank=True)
    days_until_expiry = models.IntegerField(null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=FreshnessStatus.choices,
        default=FreshnessStatus.UNKNOWN,
        db_index=True,
    )
    discount_percentage = models.PositiveSmallIntegerField(
        default=0,
        validators=[
            MinValueValidator(MIN_DISCOUNT),
            MaxValueValidator(MAX_DISCOUNT),
        ],
    )
    discount_is_manual = models.BooleanField(default=False)
    is_sold = models.BooleanField(default=False)
    sold_date = models.DateField(null=True, blank=True)
    storage_conditions = models.CharField(
        max_length=200, blank=True, default=DEFAULT_STORAGE_CONDITIONS
    )
    temperature_celsius = models.IntegerField(null=True, blank=True)
    humidity_percentage = models.PositiveSmallIntegerField(null=True, blank=True)
    notes = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        db_table = "freshness_batches"
        ordering = ["expiry_date", "batch_number"]
        indexes = [
            models.Index(fields=["is_sold", "expiry_date"], name="batches_unsold_expiry_idx"),
            models.Index(fields=["batch_number"], name="batches_number_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(discount_percentage__lte=MAX_DISCOUNT),
                name="batches_discount_within_range",
            ),
        ]

    def __str__(self) -> str:
        return f"Batch {self.batch_number or self.id} ({self.status})"
