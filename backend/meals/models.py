from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _

from core_backend.utils.archiving import SoftDeleteMixin


class Meal(SoftDeleteMixin):
    class Category(models.TextChoices):
        BREAKFAST = "breakfast", _("Breakfast")
        LUNCH = "lunch", _("Lunch")
        DINNER = "dinner", _("Dinner")
        SNACKS = "snacks", _("Snacks")
        DESSERT = "dessert", _("Dessert")

    class Cuisine(models.TextChoices):
        NEPALI = "nepali", _("Nepali")
        INDIAN = "indian", _("Indian")
        CHINESE = "chinese", _("Chinese")
        CONTINENTAL = "continental", _("Continental")
        MIXED = "mixed", _("Mixed")

    class FoodType(models.TextChoices):
        VEG = "veg", _("Vegetarian")
        NON_VEG = "non-veg", _("Non-vegetarian")
        VEGAN = "vegan", _("Vegan")
        EGG = "egg", _("Contains egg")

    class SpiceLevel(models.TextChoices):
        MILD = "mild", _("Mild")
        MEDIUM = "medium", _("Medium")
        HOT = "hot", _("Hot")
        EXTRA_HOT = "extra-hot", _("Extra hot")

    kitchen = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="meals",
        limit_choices_to={"role": "home_kitchen"},
    )
    name = models.CharField(max_length=100)
    description = models.TextField(max_length=500)
    category = models.CharField(max_length=20, choices=Category.choices)
    cuisine = models.CharField(
        max_length=20, choices=Cuisine.choices, default=Cuisine.NEPALI
    )
    food_type = models.CharField(max_length=20, choices=FoodType.choices)
    price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0.00"))]
    )
    serving_size = models.CharField(max_length=50, default="1 person")
    preparation_time = models.PositiveIntegerField(
        default=30, help_text=_("Preparation time in minutes.")
    )
    ingredients = models.JSONField(default=list, blank=True)
    allergens = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)
    spice_level = models.CharField(
        max_length=20, choices=SpiceLevel.choices, default=SpiceLevel.MEDIUM
    )
    nutritional_info = models.JSONField(default=dict, blank=True)
    image_urls = models.JSONField(default=list, blank=True)

    available_date = models.DateField(db_index=True)
    is_available = models.BooleanField(default=True)

    rating_average = models.DecimalField(
        max_digits=2, decimal_places=1, default=Decimal("0.0")
    )
    rating_count = models.PositiveIntegerField(default=0)
    total_orders = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["kitchen", "available_date"], name="meal_kitchen_date_idx"),
            models.Index(fields=["category", "food_type", "is_active"], name="meal_catalogue_idx"),
        ]

    def __str__(self):
        return self.name

    def get_slot(self, date, start_time, end_time):
        """Return the matching time slot or None."""
        return self.time_slots.filter(
            date=date, start_time=start_time, end_time=end_time
        ).first()


class MealTimeSlot(models.Model):
    """
    A bounded window on a given date in which a meal is orderable.

    `remaining` only changes through MealAvailabilityService and always stays
    within [0, capacity].
    """

    meal = models.ForeignKey(Meal, on_delete=models.CASCADE, related_name="time_slots")
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    capacity = models.PositiveIntegerField()
    remaining = models.PositiveIntegerField()

    class Meta:
        ordering = ["date", "start_time"]
        constraints = [
            models.UniqueConstraint(
                fields=["meal", "date", "start_time", "end_time"],
                name="unique_meal_time_slot",
            ),
            models.CheckConstraint(
                condition=Q(remaining__gte=0) & Q(remaining__lte=F("capacity")),
                name="slot_remaining_within_capacity",
            ),
            models.CheckConstraint(
                condition=Q(end_time__gt=F("start_time")),
                name="slot_end_after_start",
            ),
        ]

    def __str__(self):
        return f"{self.meal.name} {self.date} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


class MealReview(models.Model):
    meal = models.ForeignKey(Meal, on_delete=models.CASCADE, related_name="reviews")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="meal_reviews"
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    comment = models.TextField(blank=True)
    image_urls = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["meal", "user"], name="one_review_per_user"),
        ]

    def __str__(self):
        return f"{self.rating}/5 for {self.meal_id} by {self.user_id}"
