"""
Meal Availability Tests

These tests verify the per-slot remaining-quantity ledger: reservations never
oversell a slot and releases never grow it past its capacity.

Priority: CRITICAL - overselling a home kitchen's limited portions is the
failure customers notice first
"""
import random

import pytest

from core_backend.exceptions import ValidationFailed
from core_backend.tests.fixtures import SLOT_END, SLOT_START
from meals.exceptions import InsufficientAvailability, MealUnavailable
from meals.models import MealTimeSlot
from meals.services import MealAvailabilityService, MealService


@pytest.mark.django_db
class TestReserveAndRelease:
    """Test the conditional reserve/release updates on a single slot"""

    def test_reserve_decrements_remaining(self, meal, meal_date):
        slot = MealAvailabilityService.reserve(meal.pk, meal_date, SLOT_START, SLOT_END, 3)

        slot.refresh_from_db()
        assert slot.remaining == 7
        assert slot.capacity == 10

    def test_reserve_more_than_remaining_fails_and_changes_nothing(self, meal, meal_date):
        """
        CRITICAL: A reservation larger than what is left must be refused outright

        Business Impact: Partial reservations would promise food that does not exist
        """
        MealAvailabilityService.reserve(meal.pk, meal_date, SLOT_START, SLOT_END, 8)

        with pytest.raises(InsufficientAvailability):
            MealAvailabilityService.reserve(meal.pk, meal_date, SLOT_START, SLOT_END, 3)

        slot = meal.get_slot(meal_date, SLOT_START, SLOT_END)
        assert slot.remaining == 2, "Failed reservation must not touch remaining"

    def test_reserve_exact_remaining_reaches_zero(self, meal, meal_date):
        slot = MealAvailabilityService.reserve(meal.pk, meal_date, SLOT_START, SLOT_END, 10)
        slot.refresh_from_db()
        assert slot.remaining == 0

        with pytest.raises(InsufficientAvailability):
            MealAvailabilityService.reserve_slot(slot.pk, 1)

    def test_release_is_clamped_at_capacity(self, meal, meal_date):
        MealAvailabilityService.reserve(meal.pk, meal_date, SLOT_START, SLOT_END, 2)
        MealAvailabilityService.release(meal.pk, meal_date, SLOT_START, SLOT_END, 5)

        slot = meal.get_slot(meal_date, SLOT_START, SLOT_END)
        assert slot.remaining == slot.capacity == 10

    @pytest.mark.parametrize('quantity', [0, -1, 1.5, True])
    def test_non_positive_quantities_are_rejected(self, meal, meal_date, quantity):
        with pytest.raises(ValidationFailed):
            MealAvailabilityService.reserve(meal.pk, meal_date, SLOT_START, SLOT_END, quantity)

    def test_missing_slot_is_unavailable(self, meal, meal_date):
        from datetime import time

        with pytest.raises(MealUnavailable):
            MealAvailabilityService.reserve(meal.pk, meal_date, time(19, 0), time(20, 0), 1)


@pytest.mark.django_db
class TestRemainingStaysWithinCapacity:
    """Property test: random reserve/release sequences keep 0 <= remaining <= capacity"""

    @pytest.mark.parametrize('seed', [7, 42, 2024])
    def test_random_sequences_respect_bounds(self, meal, meal_date, seed):
        """
        Scenario:
        - Apply 60 random reserves and releases of 1..4 portions
        - Track the expected value with a plain integer model
        - Expected: the database agrees with the model after every step
          and never leaves [0, capacity]
        """
        rng = random.Random(seed)
        slot = meal.get_slot(meal_date, SLOT_START, SLOT_END)
        expected = slot.capacity

        for _ in range(60):
            quantity = rng.randint(1, 4)
            if rng.random() < 0.6:
                if quantity <= expected:
                    MealAvailabilityService.reserve_slot(slot.pk, quantity)
                    expected -= quantity
                else:
                    with pytest.raises(InsufficientAvailability):
                        MealAvailabilityService.reserve_slot(slot.pk, quantity)
            else:
                MealAvailabilityService.release_slot(slot.pk, quantity)
                expected = min(expected + quantity, slot.capacity)

            remaining = MealTimeSlot.objects.values_list('remaining', flat=True).get(pk=slot.pk)
            assert remaining == expected
            assert 0 <= remaining <= slot.capacity


@pytest.mark.django_db
class TestSlotCapacityChanges:
    """Test that editing a slot's capacity keeps already ordered portions reserved"""

    def test_capacity_change_preserves_reserved_portions(self, meal, meal_date):
        MealAvailabilityService.reserve(meal.pk, meal_date, SLOT_START, SLOT_END, 3)

        MealService.update_meal(
            meal, {}, [{'start_time': SLOT_START, 'end_time': SLOT_END, 'capacity': 6}]
        )

        slot = meal.get_slot(meal_date, SLOT_START, SLOT_END)
        assert slot.capacity == 6
        assert slot.remaining == 3

    def test_capacity_below_reserved_is_rejected(self, meal, meal_date):
        MealAvailabilityService.reserve(meal.pk, meal_date, SLOT_START, SLOT_END, 5)

        with pytest.raises(ValidationFailed):
            MealService.update_meal(
                meal, {}, [{'start_time': SLOT_START, 'end_time': SLOT_END, 'capacity': 4}]
            )

        slot = meal.get_slot(meal_date, SLOT_START, SLOT_END)
        assert (slot.capacity, slot.remaining) == (10, 5)
