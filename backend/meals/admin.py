from django.contrib import admin
from .models import Meal, MealTimeSlot, MealReview


class MealTimeSlotInline(admin.TabularInline):
    model = MealTimeSlot
    extra = 0


@admin.register(Meal)
class MealAdmin(admin.ModelAdmin):
    list_display = ("name", "kitchen", "category", "food_type", "price", "available_date", "is_available", "is_active")
    list_filter = ("category", "food_type", "cuisine", "is_available", "is_active")
    search_fields = ("name", "description", "kitchen__email")
    inlines = [MealTimeSlotInline]

    def get_queryset(self, request):
        return Meal.all_objects.select_related("kitchen")


@admin.register(MealReview)
class MealReviewAdmin(admin.ModelAdmin):
    list_display = ("meal", "user", "rating", "created_at")
    list_filter = ("rating",)
