from django.contrib import admin
from .models import Order, OrderItem, OrderStatusHistory, OrderTrackingUpdate


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("meal", "time_slot", "name", "quantity", "unit_price", "get_line_total")
    fields = readonly_fields + ("special_instructions",)

    def get_line_total(self, obj):
        return f"Rs. {obj.line_total:,.2f}"

    get_line_total.short_description = "Line Total"

    def has_add_permission(self, request, obj=None):
        return False


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ("status", "note", "actor", "timestamp")
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Orders are read-mostly in the admin. Status must change through the API
    so the history, notifications and slot bookkeeping stay consistent.
    """

    list_display = (
        "order_number",
        "customer",
        "kitchen",
        "delivery_partner",
        "status",
        "payment_status",
        "get_total_formatted",
        "scheduled_date",
        "created_at",
    )
    list_display_links = ("order_number",)
    search_fields = ("order_number", "customer__email", "customer__name", "kitchen__name")
    list_filter = ("status", "payment_method", "payment_status", "scheduled_date")
    date_hierarchy = "created_at"
    readonly_fields = (
        "order_number",
        "status",
        "subtotal",
        "delivery_fee",
        "tax",
        "discount",
        "total",
        "actual_delivery_time",
        "rated_at",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
    raw_id_fields = ("customer", "kitchen", "delivery_partner", "cancelled_by")
    inlines = [OrderItemInline, OrderStatusHistoryInline]

    def get_total_formatted(self, obj):
        return f"Rs. {obj.total:,.2f}"

    get_total_formatted.short_description = "Total"
    get_total_formatted.admin_order_field = "total"


@admin.register(OrderTrackingUpdate)
class OrderTrackingUpdateAdmin(admin.ModelAdmin):
    list_display = ("order", "latitude", "longitude", "timestamp")
    raw_id_fields = ("order",)
