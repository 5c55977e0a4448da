from django.contrib import admin

from modules.orders.models import Order, OrderItem, OrderStatusHistory


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ["name", "size", "unit_price", "quantity", "total_price"]
    can_delete = False


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ["old_status", "new_status", "notes", "changed_by", "created_at"]
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        "order_number",
        "restaurant",
        "fulfillment_mode",
        "status",
        "total_amount",
        "created_at",
    ]
    list_filter = ["status", "fulfillment_mode"]
    search_fields = ["order_number"]
    # Status changes go through OrderService only.
    readonly_fields = [
        "order_number",
        "status",
        "fulfillment_mode",
        "subtotal",
        "tax_rate",
        "tax_amount",
        "delivery_fee",
        "total_amount",
        "restaurant_note",
        "cancelled_by_customer",
    ]
    inlines = [OrderItemInline, OrderStatusHistoryInline]
