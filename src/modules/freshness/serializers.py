"""Freshness DRF serializers (output only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.freshness.models import FreshnessBatch


class FreshnessBatchSerializer(serializers.ModelSerializer):
    flower_id = serializers.UUIDField(read_only=True)
    flower_name = serializers.CharField(source="flower.name", read_only=True)
    status_label = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = FreshnessBatch
        fields = [
            "id",
            "flower_id",
            "flower_name",
            "batch_number",
            "quantity",
            "delivery_date",
            "expiry_date",
            "days_until_expiry",
            "status",
            "status_label",
            "discount_percentage",
            "discount_is_manual",
            "is_sold",
            "sold_date",
            "storage_conditions",
            "temperature_celsius",
            "humidity_percentage",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
