"""Inventory DRF serializers (output only).

Input is validated by the Pydantic DTOs in ``dtos.py``; these serializers
render flowers and materials, including the derived ``available_stock``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.inventory.models import Flower, Material

_COMMON_FIELDS = [
    "id",
    "sku",
    "name",
    "type",
    "color",
    "unit",
    "unit_price",
    "purchase_price",
    "supplier",
    "current_stock",
    "reserved_stock",
    "available_stock",
    "min_stock_level",
    "needs_restock",
    "is_active",
    "notes",
    "created_at",
    "updated_at",
]


class FlowerSerializer(serializers.ModelSerializer):
    unit = serializers.CharField(read_only=True)
    available_stock = serializers.IntegerField(read_only=True)
    needs_restock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Flower
        fields = _COMMON_FIELDS + [
            "variety",
            "country_origin",
            "stem_length",
            "freshness_days",
            "delivery_date",
            "expiry_date",
            "seasonal_availability",
        ]
        read_only_fields = fields


class MaterialSerializer(serializers.ModelSerializer):
    unit = serializers.CharField(read_only=True)
    available_stock = serializers.DecimalField(
        max_digits=10, decimal_places=3, read_only=True
    )
    needs_restock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Material
        fields = _COMMON_FIELDS + [
            "width_mm",
            "composition",
            "texture",
            "is_waterproof",
        ]
        read_only_fields = fields
