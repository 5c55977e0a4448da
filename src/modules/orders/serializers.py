"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class StatusUpdateSerializer(serializers.Serializer):
    """Validates the restaurant status-update payload.

    ``status`` is any string: membership in the order's valid set is a
    state-machine decision, reported with the valid statuses.
    """

    status = serializers.CharField()
    restaurant_note = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=""
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Line item with ``total_price = unit_price * quantity``."""

    class Meta:
        model = OrderItem
        fields = ["id", "name", "size", "unit_price", "quantity", "total_price"]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = ["id", "old_status", "new_status", "notes", "created_at"]
        read_only_fields = fields


class CustomerContactSerializer(serializers.Serializer):
    name = serializers.CharField(source="full_name")
    phone = serializers.CharField()
    email = serializers.EmailField()


class FinancialsSerializer(serializers.Serializer):
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2)
    tax_rate = serializers.DecimalField(max_digits=6, decimal_places=4)
    tax_amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    delivery_fee = serializers.DecimalField(
        max_digits=10, decimal_places=2, allow_null=True
    )
    total_amount = serializers.DecimalField(max_digits=10, decimal_places=2)


class OrderListSerializer(serializers.ModelSerializer):
    """List projection: items with line totals, item count, financials."""

    customer = CustomerContactSerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    total_items = serializers.SerializerMethodField()
    status_label = serializers.CharField(read_only=True)
    is_delivery = serializers.BooleanField(read_only=True)
    financials = FinancialsSerializer(source="*", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "items",
            "total_items",
            "status",
            "status_label",
            "fulfillment_mode",
            "is_delivery",
            "delivery_address",
            "customer_note",
            "restaurant_note",
            "cancelled_by_customer",
            "financials",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_total_items(self, obj: Order) -> int:
        return obj.total_items


class OrderSerializer(OrderListSerializer):
    """Detail projection: adds restaurant, audit trail and valid statuses."""

    restaurant_id = serializers.UUIDField(read_only=True)
    restaurant_name = serializers.CharField(source="restaurant.name", read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)
    valid_statuses = serializers.ListField(
        child=serializers.CharField(), read_only=True
    )

    class Meta(OrderListSerializer.Meta):
        fields = OrderListSerializer.Meta.fields + [
            "restaurant_id",
            "restaurant_name",
            "valid_statuses",
            "status_history",
        ]
        read_only_fields = fields
