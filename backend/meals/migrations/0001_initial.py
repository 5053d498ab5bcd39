from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Meal",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("is_active", models.BooleanField(db_index=True, default=True, help_text="Inactive records are considered archived/soft-deleted.")),
                ("archived_at", models.DateTimeField(blank=True, null=True)),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(max_length=500)),
                ("category", models.CharField(choices=[("breakfast", "Breakfast"), ("lunch", "Lunch"), ("dinner", "Dinner"), ("snacks", "Snacks"), ("dessert", "Dessert")], max_length=20)),
                ("cuisine", models.CharField(choices=[("nepali", "Nepali"), ("indian", "Indian"), ("chinese", "Chinese"), ("continental", "Continental"), ("mixed", "Mixed")], default="nepali", max_length=20)),
                ("food_type", models.CharField(choices=[("veg", "Vegetarian"), ("non-veg", "Non-vegetarian"), ("vegan", "Vegan"), ("egg", "Contains egg")], max_length=20)),
                ("price", models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("serving_size", models.CharField(default="1 person", max_length=50)),
                ("preparation_time", models.PositiveIntegerField(default=30, help_text="Preparation time in minutes.")),
                ("ingredients", models.JSONField(blank=True, default=list)),
                ("allergens", models.JSONField(blank=True, default=list)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("spice_level", models.CharField(choices=[("mild", "Mild"), ("medium", "Medium"), ("hot", "Hot"), ("extra-hot", "Extra hot")], default="medium", max_length=20)),
                ("nutritional_info", models.JSONField(blank=True, default=dict)),
                ("image_urls", models.JSONField(blank=True, default=list)),
                ("available_date", models.DateField(db_index=True)),
                ("is_available", models.BooleanField(default=True)),
                ("rating_average", models.DecimalField(decimal_places=1, default=Decimal("0.0"), max_digits=2)),
                ("rating_count", models.PositiveIntegerField(default=0)),
                ("total_orders", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("archived_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="meals_meal_archived", to=settings.AUTH_USER_MODEL)),
                ("kitchen", models.ForeignKey(limit_choices_to={"role": "home_kitchen"}, on_delete=django.db.models.deletion.CASCADE, related_name="meals", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["kitchen", "available_date"], name="meal_kitchen_date_idx"),
                    models.Index(fields=["category", "food_type", "is_active"], name="meal_catalogue_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="MealTimeSlot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                ("capacity", models.PositiveIntegerField()),
                ("remaining", models.PositiveIntegerField()),
                ("meal", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="time_slots", to="meals.meal")),
            ],
            options={
                "ordering": ["date", "start_time"],
                "constraints": [
                    models.UniqueConstraint(fields=("meal", "date", "start_time", "end_time"), name="unique_meal_time_slot"),
                    models.CheckConstraint(condition=models.Q(("remaining__gte", 0), ("remaining__lte", models.F("capacity"))), name="slot_remaining_within_capacity"),
                    models.CheckConstraint(condition=models.Q(("end_time__gt", models.F("start_time"))), name="slot_end_after_start"),
                ],
            },
        ),
        migrations.CreateModel(
            name="MealReview",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("rating", models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)])),
                ("comment", models.TextField(blank=True)),
                ("image_urls", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("meal", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="reviews", to="meals.meal")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="meal_reviews", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("meal", "user"), name="one_review_per_user"),
                ],
            },
        ),
    ]
