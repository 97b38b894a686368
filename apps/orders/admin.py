from django.contrib import admin

from .models import Order, OrderItem, OrderStatusHistory


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("product_snapshot", "quantity", "unit_price_cents", "options_price_cents", "total_price_cents", "selected_options", "notes")
    exclude = ("product", "variant", "combo")
    can_delete = False


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ("previous_status", "status", "changed_by_type", "changed_by_id", "notes", "created_at")
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "restaurant", "status", "service_type", "customer_name", "total_cents", "driver", "created_at")
    list_filter = ("status", "service_type", "payment_status", "restaurant")
    search_fields = ("order_number", "customer_name", "customer_phone", "customer_email")
    date_hierarchy = "created_at"
    # status only moves through the restaurant screens and the driver app
    readonly_fields = (
        "order_number",
        "status",
        "version",
        "driver",
        "estimated_ready_at",
        "ready_at",
        "assigned_to_driver_at",
        "picked_up_at",
        "delivered_at",
        "completed_at",
        "cancelled_at",
        "cancellation_reason",
    )
    inlines = [OrderItemInline, OrderStatusHistoryInline]
