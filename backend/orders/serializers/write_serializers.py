from rest_framework import serializers

from orders.models import Order
from orders.services import OrderService


class OrderItemCreateSerializer(serializers.Serializer):
    meal_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    special_instructions = serializers.CharField(required=False, allow_blank=True, default="")


class OrderCreateSerializer(serializers.Serializer):
    """
    Validates an order placement request and hands it to OrderService.
    Availability, kitchen and pricing checks happen in the service.
    """

    items = OrderItemCreateSerializer(many=True, allow_empty=False)
    pickup_address = serializers.DictField(required=False, default=dict)
    delivery_address = serializers.DictField()
    scheduled_date = serializers.DateField()
    slot_start_time = serializers.TimeField()
    slot_end_time = serializers.TimeField()
    payment_method = serializers.ChoiceField(choices=Order.PaymentMethod.choices)
    delivery_instructions = serializers.CharField(required=False, allow_blank=True, default="")
    distance_km = serializers.DecimalField(
        max_digits=7, decimal_places=2, min_value=0, required=False, allow_null=True, default=None
    )
    promo_code = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, data):
        if data["slot_end_time"] <= data["slot_start_time"]:
            raise serializers.ValidationError({"slot_end_time": "Slot end must be after slot start."})
        return data

    def create(self, validated_data):
        return OrderService.place_order(customer=self.context["request"].user, **validated_data)


class UpdateOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class RateOrderSerializer(serializers.Serializer):
    food = serializers.IntegerField(min_value=1, max_value=5)
    delivery = serializers.IntegerField(min_value=1, max_value=5)
    overall = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, default="")
