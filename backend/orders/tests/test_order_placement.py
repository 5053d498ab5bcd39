"""
Order Placement Tests

These tests verify that placing an order validates every item, reserves slot
capacity atomically with the order row and prices the order correctly.

Priority: CRITICAL - placement is where money and limited portions meet
"""
import re
from datetime import timedelta
from decimal import Decimal
from unittest import mock

import pytest

from core_backend.exceptions import ValidationFailed
from core_backend.tests.fixtures import SLOT_END, SLOT_START, make_meal
from meals.exceptions import InsufficientAvailability, MealUnavailable
from meals.models import Meal
from orders.exceptions import MultiKitchenOrder
from orders.models import Order, OrderItem, OrderStatusHistory


def remaining(meal, date):
    return meal.get_slot(date, SLOT_START, SLOT_END).remaining


@pytest.mark.django_db
class TestPlaceOrder:
    """Test the successful placement path"""

    def test_reference_order_is_priced_and_reserved(self, place_order, meal, side_meal, meal_date, customer, kitchen):
        """
        CRITICAL: 2 x Rs.100 + 1 x Rs.50 with 13% VAT and the flat delivery fee

        Business Impact: Every order must charge subtotal + delivery + VAT exactly
        """
        order = place_order([(meal, 2), (side_meal, 1)])

        assert order.status == Order.Status.PENDING
        assert order.customer == customer
        assert order.kitchen == kitchen
        assert order.subtotal == Decimal('250.00')
        assert order.tax == Decimal('32.50')
        assert order.delivery_fee == Decimal('50.00')
        assert order.total == Decimal('332.50')
        assert order.pricing_is_consistent

        assert remaining(meal, meal_date) == 8
        assert remaining(side_meal, meal_date) == 9

        items = list(order.items.order_by('unit_price'))
        assert [(i.name, i.quantity, i.unit_price) for i in items] == [
            ('Aloo Achar', 1, Decimal('50.00')),
            ('Dal Bhat', 2, Decimal('100.00')),
        ]
        assert all(i.time_slot is not None for i in items)

    def test_placement_records_single_history_entry(self, order, customer):
        history = list(order.status_history.all())

        assert len(history) == 1
        assert history[0].status == Order.Status.PENDING
        assert history[0].actor == customer

    def test_order_number_format(self, order):
        assert re.fullmatch(r'HT\d{12}', order.order_number)

    def test_order_number_collision_is_regenerated(self, place_order, meal, order):
        """
        Scenario:
        - The generator first returns a number that already exists
        - Expected: a fresh number is drawn and the order is saved
        """
        with mock.patch.object(
            Order, 'generate_order_number', side_effect=[order.order_number, 'HT123456789999']
        ):
            second = place_order([(meal, 1)])

        assert second.order_number == 'HT123456789999'

    def test_distance_based_delivery_fee(self, place_order, meal):
        order = place_order([(meal, 1)], distance_km=Decimal('5'))

        assert order.distance_km == Decimal('5.00')
        assert order.delivery_fee == Decimal('80.00')
        assert order.total == Decimal('100.00') + Decimal('13.00') + Decimal('80.00')

    def test_meal_order_count_incremented(self, place_order, meal):
        place_order([(meal, 2)])
        meal.refresh_from_db()
        assert meal.total_orders == 1

    def test_new_order_event_reaches_kitchen_after_commit(
        self, place_order, meal, kitchen, event_sink, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            order = place_order([(meal, 1)])

        events = event_sink.events_for(group=f'kitchen_{kitchen.pk}', event_type='new_order')
        assert len(events) == 1
        assert events[0]['data']['order_number'] == order.order_number
        assert events[0]['data']['total'] == str(order.total)

    def test_no_event_before_commit(self, place_order, meal, event_sink):
        place_order([(meal, 1)])
        assert event_sink.events == [], "Events must wait for the transaction to commit"


@pytest.mark.django_db
class TestPlaceOrderRejections:
    """Test that invalid placements fail without leaking reservations"""

    def test_mixed_kitchens_rejected(self, place_order, meal, other_kitchen_meal, meal_date):
        """
        CRITICAL: One order, one kitchen

        Business Impact: A single delivery cannot collect from two homes
        """
        with pytest.raises(MultiKitchenOrder):
            place_order([(meal, 1), (other_kitchen_meal, 1)])

        assert not Order.objects.exists()
        assert remaining(meal, meal_date) == 10
        assert remaining(other_kitchen_meal, meal_date) == 10

    def test_second_item_shortage_rolls_back_first_reservation(self, place_order, meal, kitchen, meal_date):
        """
        CRITICAL: A failed placement leaves every slot exactly as it was

        Scenario:
        - Item A reserves 2 portions successfully
        - Item B asks for 3 of its last 2 portions
        - Expected: InsufficientAvailability and item A's portions are back
        """
        scarce = make_meal(kitchen, 'Sel Roti', '40.00', meal_date, capacity=2)

        with pytest.raises(InsufficientAvailability):
            place_order([(meal, 2), (scarce, 3)])

        assert remaining(meal, meal_date) == 10
        assert remaining(scarce, meal_date) == 2
        assert not Order.objects.exists()
        assert not OrderItem.objects.exists()

    def test_archived_meal_is_unavailable(self, place_order, meal, kitchen):
        meal.archive(archived_by=kitchen)

        with pytest.raises(MealUnavailable):
            place_order([(meal, 1)])

    def test_unavailable_meal(self, place_order, meal):
        Meal.objects.filter(pk=meal.pk).update(is_available=False)

        with pytest.raises(MealUnavailable):
            place_order([(meal, 1)])

    def test_missing_meal(self, place_order, meal):
        meal.force_delete()

        with pytest.raises(MealUnavailable):
            place_order([(meal, 1)])

    def test_wrong_date(self, place_order, meal, meal_date):
        with pytest.raises(MealUnavailable):
            place_order([(meal, 1)], scheduled_date=meal_date + timedelta(days=1))

    def test_sold_out_slot(self, place_order, meal, kitchen, meal_date):
        sold_out = make_meal(kitchen, 'Thakali Set', '350.00', meal_date, capacity=1)
        place_order([(sold_out, 1)])

        with pytest.raises(MealUnavailable):
            place_order([(sold_out, 1)])

    def test_empty_order(self, place_order):
        with pytest.raises(ValidationFailed):
            place_order([])

    def test_failed_placement_writes_no_history(self, place_order, meal, other_kitchen_meal):
        with pytest.raises(MultiKitchenOrder):
            place_order([(meal, 1), (other_kitchen_meal, 1)])

        assert not OrderStatusHistory.objects.exists()
