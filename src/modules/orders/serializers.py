"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderStatus, PaymentMethod, ProductType
from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class OrderItemInputSerializer(serializers.Serializer):
    """Validates a single line of a create / add-item request."""

    stock_item_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.DecimalField(max_digits=10, decimal_places=3)
    discount_amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, min_value=0
    )
    notes = serializers.CharField(required=False, allow_blank=True, max_length=500)
    product_type = serializers.ChoiceField(
        choices=ProductType.choices, required=False, allow_null=True
    )
    product_name = serializers.CharField(
        required=False, allow_blank=True, max_length=200
    )
    unit_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    unit_of_measure = serializers.CharField(required=False, max_length=10)
    parent_index = serializers.IntegerField(
        required=False, allow_null=True, min_value=0
    )
    parent_item_id = serializers.UUIDField(required=False, allow_null=True)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    customer_name = serializers.CharField(max_length=100)
    customer_phone = serializers.CharField(max_length=20)
    customer_email = serializers.EmailField(required=False, allow_blank=True)
    delivery_address = serializers.CharField(
        required=False, allow_blank=True, max_length=500
    )
    delivery_date = serializers.DateTimeField(required=False, allow_null=True)
    discount_amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, min_value=0
    )
    notes = serializers.CharField(required=False, allow_blank=True)
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, required=False, allow_null=True
    )
    assigned_florist_id = serializers.IntegerField(
        required=False, allow_null=True, min_value=1
    )
    items = OrderItemInputSerializer(many=True, allow_empty=False)


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order lines with the catalog snapshot."""

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "position",
            "stock_item_id",
            "product_name",
            "product_sku",
            "product_type",
            "unit_of_measure",
            "quantity",
            "unit_price",
            "discount_amount",
            "total_price",
            "notes",
            "is_bouquet_component",
            "parent_id",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    status_label = serializers.CharField(source="get_status_display", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "status_label",
            "customer_name",
            "customer_phone",
            "customer_email",
            "delivery_address",
            "delivery_date",
            "total_amount",
            "discount_amount",
            "final_amount",
            "payment_method",
            "payment_status",
            "assigned_florist_id",
            "stock_reserved",
            "notes",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "customer_name",
            "customer_phone",
            "delivery_date",
            "final_amount",
            "assigned_florist_id",
            "created_at",
        ]
        read_only_fields = fields
