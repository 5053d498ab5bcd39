import django_filters
from core_backend.base import BaseFilterSet
from .models import Meal


class MealFilter(BaseFilterSet):
    kitchen = django_filters.NumberFilter(field_name="kitchen_id")
    available_date = django_filters.DateFilter()
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")

    class Meta:
        model = Meal
        fields = ["category", "food_type", "cuisine", "kitchen", "is_available", "available_date"]
