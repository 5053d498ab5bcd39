from rest_framework import serializers

from orders.serializers import OrderSerializer


class DeliveryOrderSerializer(OrderSerializer):
    """Order view for delivery partners: who, where and what, without the audit trail."""

    class Meta(OrderSerializer.Meta):
        fieldsets = {
            "delivery": [
                "id",
                "order_number",
                "customer",
                "kitchen",
                "items",
                "pickup_address",
                "delivery_address",
                "delivery_instructions",
                "scheduled_date",
                "slot_start_time",
                "slot_end_time",
                "status",
                "delivery_fee",
                "total",
                "payment_method",
                "payment_status",
                "distance_km",
                "actual_delivery_time",
            ],
        }


class CompleteDeliverySerializer(serializers.Serializer):
    otp = serializers.CharField(required=False, allow_blank=True, max_length=10)
    image = serializers.URLField(required=False, allow_blank=True)

    def to_proof(self):
        return {key: value for key, value in self.validated_data.items() if value}


class LocationUpdateSerializer(serializers.Serializer):
    latitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-90, max_value=90)
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-180, max_value=180)


class DeliveryHistoryQuerySerializer(serializers.Serializer):
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)


class EarningsSerializer(serializers.Serializer):
    period = serializers.CharField()
    total_earnings = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_deliveries = serializers.IntegerField()
    lifetime_earnings = serializers.DecimalField(max_digits=12, decimal_places=2)
    lifetime_deliveries = serializers.IntegerField()
