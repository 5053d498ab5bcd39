from rest_framework import serializers
from core_backend.base import BaseModelSerializer
from .models import User, KitchenProfile, DeliveryPartnerProfile


class KitchenProfileSerializer(BaseModelSerializer):
    class Meta:
        model = KitchenProfile
        fields = [
            "kitchen_name",
            "description",
            "specialties",
            "serving_radius_km",
            "is_verified",
            "total_orders",
        ]
        read_only_fields = ["is_verified", "total_orders"]


class DeliveryPartnerProfileSerializer(BaseModelSerializer):
    class Meta:
        model = DeliveryPartnerProfile
        fields = [
            "vehicle_type",
            "vehicle_number",
            "is_available",
            "current_latitude",
            "current_longitude",
            "location_updated_at",
            "total_deliveries",
            "earnings",
        ]
        read_only_fields = [
            "is_available",
            "current_latitude",
            "current_longitude",
            "location_updated_at",
            "total_deliveries",
            "earnings",
        ]


class UserSummarySerializer(BaseModelSerializer):
    """Compact user representation embedded in orders and meals."""

    class Meta:
        model = User
        fields = ["id", "name", "phone"]
        read_only_fields = fields


class UserSerializer(BaseModelSerializer):
    kitchen_profile = KitchenProfileSerializer(required=False)
    delivery_profile = DeliveryPartnerProfileSerializer(required=False)

    class Meta:
        model = User
        fields = [
            "id",
            "name",
            "email",
            "phone",
            "role",
            "profile_image",
            "date_joined",
            "kitchen_profile",
            "delivery_profile",
        ]
        read_only_fields = ["id", "role", "date_joined"]
        select_related_fields = ["kitchen_profile", "delivery_profile"]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        # Profiles only exist for their own role
        if not instance.is_home_kitchen:
            data.pop("kitchen_profile", None)
        if not instance.is_delivery_partner:
            data.pop("delivery_profile", None)
        return data

    def update(self, instance, validated_data):
        kitchen_data = validated_data.pop("kitchen_profile", None)
        delivery_data = validated_data.pop("delivery_profile", None)

        instance = super().update(instance, validated_data)

        if kitchen_data and instance.is_home_kitchen:
            KitchenProfile.objects.filter(user=instance).update(**kitchen_data)
        if delivery_data and instance.is_delivery_partner:
            DeliveryPartnerProfile.objects.filter(user=instance).update(**delivery_data)

        return instance

    def validate_email(self, value):
        value = value.strip().lower()
        qs = User.objects.filter(email=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value
