import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import Avg, Count, F
from django.db.models.functions import Least

from core_backend.exceptions import NotAuthorized, ValidationFailed
from .exceptions import InsufficientAvailability, MealNotFound, MealUnavailable
from .models import Meal, MealReview, MealTimeSlot

logger = logging.getLogger(__name__)


class MealAvailabilityService:
    """
    Per-meal, per-date, per-time-slot remaining-quantity counters.

    Every mutation is a single conditional UPDATE so concurrent orders can
    never drive `remaining` below zero or above `capacity`.
    """

    @staticmethod
    def _validate_quantity(quantity):
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationFailed("Quantity must be a positive integer.")

    @staticmethod
    def get_slot(meal_id, date, start_time, end_time) -> MealTimeSlot:
        try:
            return MealTimeSlot.objects.get(
                meal_id=meal_id, date=date, start_time=start_time, end_time=end_time
            )
        except MealTimeSlot.DoesNotExist:
            raise MealUnavailable(
                f"Meal {meal_id} has no {start_time}-{end_time} slot on {date}."
            )

    @staticmethod
    def reserve_slot(slot_id, quantity) -> None:
        """Decrement `remaining` on the slot, failing if fewer than `quantity` remain."""
        MealAvailabilityService._validate_quantity(quantity)

        updated = MealTimeSlot.objects.filter(
            pk=slot_id, remaining__gte=quantity
        ).update(remaining=F("remaining") - quantity)

        if not updated:
            logger.info(f"Reservation of {quantity} on slot {slot_id} refused: insufficient availability")
            raise InsufficientAvailability()

        logger.debug(f"Reserved {quantity} on slot {slot_id}")

    @staticmethod
    def release_slot(slot_id, quantity) -> None:
        """Give `quantity` back to the slot, clamped at its capacity."""
        MealAvailabilityService._validate_quantity(quantity)

        MealTimeSlot.objects.filter(pk=slot_id).update(
            remaining=Least(F("remaining") + quantity, F("capacity"))
        )
        logger.debug(f"Released {quantity} on slot {slot_id}")

    @staticmethod
    def reserve(meal_id, date, start_time, end_time, quantity) -> MealTimeSlot:
        slot = MealAvailabilityService.get_slot(meal_id, date, start_time, end_time)
        MealAvailabilityService.reserve_slot(slot.pk, quantity)
        return slot

    @staticmethod
    def release(meal_id, date, start_time, end_time, quantity) -> MealTimeSlot:
        slot = MealAvailabilityService.get_slot(meal_id, date, start_time, end_time)
        MealAvailabilityService.release_slot(slot.pk, quantity)
        return slot


class MealService:
    """
    Catalogue operations for kitchen-owned meals.
    """

    @staticmethod
    def get_meal(meal_id, include_archived=False) -> Meal:
        manager = Meal.all_objects if include_archived else Meal.objects
        try:
            return manager.select_related("kitchen").get(pk=meal_id)
        except (Meal.DoesNotExist, ValueError):
            raise MealNotFound(f"Meal {meal_id} not found.")

    @staticmethod
    def ensure_can_manage(meal: Meal, user) -> None:
        if user.is_admin_role:
            return
        if meal.kitchen_id != user.id:
            raise NotAuthorized("Not authorized to modify this meal.")

    @staticmethod
    def ensure_can_publish(user) -> None:
        """Kitchens must be verified before publishing meals."""
        if user.is_admin_role:
            return
        if not user.is_home_kitchen:
            raise NotAuthorized("Only home kitchens can publish meals.")
        profile = getattr(user, "kitchen_profile", None)
        if profile is None or not profile.is_verified:
            raise NotAuthorized("Your kitchen must be verified before publishing meals.")

    @staticmethod
    @transaction.atomic
    def create_meal(kitchen, meal_data: dict, time_slots: list) -> Meal:
        meal = Meal.objects.create(kitchen=kitchen, **meal_data)
        MealService._create_slots(meal, time_slots)
        logger.info(f"Kitchen {kitchen.pk} created meal {meal.pk} ({meal.name}) with {len(time_slots)} slots")
        return meal

    @staticmethod
    @transaction.atomic
    def update_meal(meal: Meal, meal_data: dict, time_slots=None) -> Meal:
        """
        Update meal fields. When `time_slots` is given, slots are upserted by
        (date, start_time, end_time): a new capacity keeps the already
        reserved quantity reserved.
        """
        for field, value in meal_data.items():
            setattr(meal, field, value)
        meal.save()

        if time_slots is not None:
            for slot_data in time_slots:
                MealService._upsert_slot(meal, slot_data)

        logger.info(f"Meal {meal.pk} updated")
        return meal

    @staticmethod
    def _create_slots(meal, time_slots):
        for slot_data in time_slots:
            capacity = slot_data["capacity"]
            MealTimeSlot.objects.create(
                meal=meal,
                date=slot_data.get("date") or meal.available_date,
                start_time=slot_data["start_time"],
                end_time=slot_data["end_time"],
                capacity=capacity,
                remaining=capacity,
            )

    @staticmethod
    def _upsert_slot(meal, slot_data):
        date = slot_data.get("date") or meal.available_date
        slot = (
            MealTimeSlot.objects.select_for_update()
            .filter(
                meal=meal,
                date=date,
                start_time=slot_data["start_time"],
                end_time=slot_data["end_time"],
            )
            .first()
        )
        capacity = slot_data["capacity"]

        if slot is None:
            MealService._create_slots(meal, [dict(slot_data, date=date)])
            return

        reserved = slot.capacity - slot.remaining
        if capacity < reserved:
            raise ValidationFailed(
                f"Capacity {capacity} is below the {reserved} portions already ordered for this slot."
            )
        slot.capacity = capacity
        slot.remaining = capacity - reserved
        slot.save(update_fields=["capacity", "remaining"])

    @staticmethod
    def archive_meal(meal: Meal, actor) -> Meal:
        MealService.ensure_can_manage(meal, actor)
        meal.archive(archived_by=actor)
        logger.info(f"Meal {meal.pk} archived by user {actor.pk}")
        return meal

    @staticmethod
    @transaction.atomic
    def add_review(meal_id, user, rating, comment="", image_urls=None) -> MealReview:
        meal = MealService.get_meal(meal_id)

        if MealReview.objects.filter(meal=meal, user=user).exists():
            raise ValidationFailed("You have already reviewed this meal.")

        review = MealReview.objects.create(
            meal=meal,
            user=user,
            rating=rating,
            comment=comment or "",
            image_urls=image_urls or [],
        )
        MealService.recalculate_rating(meal)
        logger.info(f"User {user.pk} reviewed meal {meal.pk} with {rating}/5")
        return review

    @staticmethod
    def recalculate_rating(meal: Meal) -> None:
        stats = MealReview.objects.filter(meal=meal).aggregate(
            average=Avg("rating"), count=Count("id")
        )
        average = Decimal(str(stats["average"] or 0)).quantize(
            Decimal("0.1"), rounding=ROUND_HALF_UP
        )
        Meal.all_objects.filter(pk=meal.pk).update(
            rating_average=average, rating_count=stats["count"]
        )
        meal.rating_average = average
        meal.rating_count = stats["count"]

    @staticmethod
    def increment_order_count(meal_id, quantity=1) -> None:
        Meal.all_objects.filter(pk=meal_id).update(total_orders=F("total_orders") + quantity)
