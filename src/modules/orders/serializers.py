"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.orders.constants import (
    MAX_RATING,
    MIN_RATING,
    RATING_COMMENT_MAX_LENGTH,
    OrderStatus,
    PaymentMethod,
)
from modules.orders.models import Order, OrderItem

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single line in an order creation request."""

    product_id = serializers.UUIDField()
    quantity = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.01")
    )
    unit_price = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.01"),
        required=False,
        allow_null=True,
        default=None,
    )
    notes = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=255
    )


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload.

    The buyer is always the authenticated caller, never a payload field.
    """

    seller_id = serializers.IntegerField(min_value=1)
    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    delivery_address = serializers.CharField(max_length=255)
    contact_phone = serializers.CharField(max_length=20)
    scheduled_delivery_date = serializers.DateField()
    scheduled_delivery_time = serializers.TimeField(required=False, allow_null=True)
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, default=PaymentMethod.CASH
    )
    buyer_notes = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, default="", allow_blank=True)


class RateOrderSerializer(serializers.Serializer):
    stars = serializers.IntegerField(min_value=MIN_RATING, max_value=MAX_RATING)
    comment = serializers.CharField(
        required=False,
        default="",
        allow_blank=True,
        max_length=RATING_COMMENT_MAX_LENGTH,
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order lines with product snapshot."""

    product_name = serializers.CharField(source="product.name", read_only=True)
    product_unit = serializers.CharField(source="product.unit", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_unit",
            "quantity",
            "unit_price",
            "subtotal",
            "notes",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items."""

    buyer_name = serializers.CharField(source="buyer.get_username", read_only=True)
    seller_name = serializers.CharField(source="seller.get_username", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer_id",
            "buyer_name",
            "seller_id",
            "seller_name",
            "status",
            "total_amount",
            "delivery_address",
            "contact_phone",
            "scheduled_delivery_date",
            "scheduled_delivery_time",
            "payment_method",
            "buyer_notes",
            "seller_notes",
            "seller_rating",
            "seller_rating_comment",
            "buyer_rating",
            "buyer_rating_comment",
            "created_at",
            "updated_at",
            "confirmed_at",
            "preparing_at",
            "ready_at",
            "completed_at",
            "items",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer_id",
            "seller_id",
            "status",
            "total_amount",
            "scheduled_delivery_date",
            "item_count",
            "created_at",
        ]
        read_only_fields = fields

    def get_item_count(self, obj: Order) -> int:
        return len(obj.items.all())
