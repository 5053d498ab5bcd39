from rest_framework import serializers
from core_backend.base import BaseModelSerializer, FieldsetMixin
from .models import Meal, MealTimeSlot, MealReview
from .services import MealService


class MealTimeSlotSerializer(BaseModelSerializer):
    date = serializers.DateField(required=False)

    class Meta:
        model = MealTimeSlot
        fields = ["id", "date", "start_time", "end_time", "capacity", "remaining"]
        read_only_fields = ["id", "remaining"]

    def validate(self, data):
        if data["end_time"] <= data["start_time"]:
            raise serializers.ValidationError({"end_time": "End time must be after start time."})
        return data


class MealReviewSerializer(BaseModelSerializer):
    user = serializers.SerializerMethodField()

    class Meta:
        model = MealReview
        fields = ["id", "user", "rating", "comment", "image_urls", "created_at"]
        read_only_fields = ["id", "user", "created_at"]
        extra_kwargs = {"rating": {"min_value": 1, "max_value": 5}}

    def get_user(self, obj):
        return {"id": obj.user_id, "name": obj.user.name}


class MealSerializer(FieldsetMixin, BaseModelSerializer):
    kitchen = serializers.SerializerMethodField()
    time_slots = MealTimeSlotSerializer(many=True, read_only=True)
    reviews = MealReviewSerializer(many=True, read_only=True)
    rating = serializers.SerializerMethodField()

    class Meta:
        model = Meal
        fields = [
            "id",
            "kitchen",
            "name",
            "description",
            "category",
            "cuisine",
            "food_type",
            "price",
            "serving_size",
            "preparation_time",
            "ingredients",
            "allergens",
            "tags",
            "spice_level",
            "nutritional_info",
            "image_urls",
            "available_date",
            "is_available",
            "time_slots",
            "rating",
            "reviews",
            "total_orders",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
        fieldsets = {
            "list": [
                "id",
                "kitchen",
                "name",
                "category",
                "cuisine",
                "food_type",
                "price",
                "available_date",
                "is_available",
                "time_slots",
                "rating",
                "image_urls",
            ],
            "detail": "__all__",
        }
        select_related_fields = ["kitchen", "kitchen__kitchen_profile"]
        prefetch_related_fields = ["time_slots", "reviews__user"]

    def get_kitchen(self, obj):
        profile = getattr(obj.kitchen, "kitchen_profile", None)
        return {
            "id": obj.kitchen_id,
            "name": obj.kitchen.name,
            "kitchen_name": profile.kitchen_name if profile else "",
            "is_verified": profile.is_verified if profile else False,
        }

    def get_rating(self, obj):
        return {"average": obj.rating_average, "count": obj.rating_count}


class MealWriteSerializer(BaseModelSerializer):
    """
    Create/update serializer. Slots are written through MealService so that
    capacity changes never lose already reserved portions.
    """

    time_slots = MealTimeSlotSerializer(many=True, required=False)

    class Meta:
        model = Meal
        fields = [
            "id",
            "name",
            "description",
            "category",
            "cuisine",
            "food_type",
            "price",
            "serving_size",
            "preparation_time",
            "ingredients",
            "allergens",
            "tags",
            "spice_level",
            "nutritional_info",
            "image_urls",
            "available_date",
            "is_available",
            "time_slots",
        ]
        read_only_fields = ["id"]

    def validate_time_slots(self, value):
        keys = [(s.get("date"), s["start_time"], s["end_time"]) for s in value]
        if len(keys) != len(set(keys)):
            raise serializers.ValidationError("Time slots must not repeat.")
        return value

    def validate(self, data):
        if self.instance is None and not data.get("time_slots"):
            raise serializers.ValidationError({"time_slots": "At least one time slot is required."})
        return data

    def create(self, validated_data):
        time_slots = validated_data.pop("time_slots", [])
        kitchen = self.context["request"].user
        return MealService.create_meal(kitchen, validated_data, time_slots)

    def update(self, instance, validated_data):
        time_slots = validated_data.pop("time_slots", None)
        return MealService.update_meal(instance, validated_data, time_slots)

    def to_representation(self, instance):
        return MealSerializer(instance, context=self.context).data


class ReviewCreateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, default="")
    image_urls = serializers.ListField(
        child=serializers.URLField(), required=False, default=list
    )
