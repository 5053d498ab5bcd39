from rest_framework import serializers

from core_backend.base import BaseModelSerializer, FieldsetMixin
from users.serializers import UserSummarySerializer
from orders.models import Order, OrderItem, OrderStatusHistory, OrderTrackingUpdate


class OrderItemSerializer(BaseModelSerializer):
    line_total = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "meal",
            "name",
            "quantity",
            "unit_price",
            "line_total",
            "special_instructions",
        ]
        read_only_fields = fields


class OrderStatusHistorySerializer(BaseModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ["status", "note", "actor", "timestamp"]
        read_only_fields = fields


class OrderTrackingUpdateSerializer(BaseModelSerializer):
    class Meta:
        model = OrderTrackingUpdate
        fields = ["message", "latitude", "longitude", "timestamp"]
        read_only_fields = fields


class OrderSerializer(FieldsetMixin, BaseModelSerializer):
    """
    Read serializer for orders. The list fieldset is what the customer and
    kitchen dashboards page through; detail adds items, history and tracking.
    """

    customer = UserSummarySerializer(read_only=True)
    kitchen = serializers.SerializerMethodField()
    delivery_partner = UserSummarySerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = OrderStatusHistorySerializer(many=True, read_only=True)
    tracking_updates = OrderTrackingUpdateSerializer(many=True, read_only=True)
    rating = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "kitchen",
            "delivery_partner",
            "items",
            "pickup_address",
            "delivery_address",
            "scheduled_date",
            "slot_start_time",
            "slot_end_time",
            "status",
            "subtotal",
            "delivery_fee",
            "tax",
            "discount",
            "total",
            "distance_km",
            "payment_method",
            "payment_status",
            "delivery_instructions",
            "promo_code",
            "notes",
            "rating",
            "cancellation_reason",
            "cancelled_at",
            "estimated_delivery_time",
            "actual_delivery_time",
            "status_history",
            "tracking_updates",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
        fieldsets = {
            "list": [
                "id",
                "order_number",
                "kitchen",
                "status",
                "scheduled_date",
                "slot_start_time",
                "slot_end_time",
                "total",
                "payment_method",
                "created_at",
            ],
            "detail": "__all__",
        }
        select_related_fields = [
            "customer",
            "kitchen",
            "kitchen__kitchen_profile",
            "delivery_partner",
        ]
        prefetch_related_fields = ["items", "status_history", "tracking_updates"]

    def get_kitchen(self, obj):
        profile = getattr(obj.kitchen, "kitchen_profile", None)
        return {
            "id": obj.kitchen_id,
            "name": profile.kitchen_name if profile else obj.kitchen.name,
            "phone": obj.kitchen.phone,
        }

    def get_rating(self, obj):
        if obj.rated_at is None:
            return None
        return {
            "food": obj.rating_food,
            "delivery": obj.rating_delivery,
            "overall": obj.rating_overall,
            "comment": obj.rating_comment,
            "rated_at": obj.rated_at,
        }
