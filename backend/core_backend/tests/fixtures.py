"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like users of each role, meals with time slots and orders at a given stage.
"""
import pytest
from datetime import time, timedelta
from decimal import Decimal
from django.utils import timezone

from meals.models import Meal, MealTimeSlot
from orders.models import Order
from orders.services import OrderService
from users.models import User


SLOT_START = time(12, 0)
SLOT_END = time(13, 0)

DELIVERY_ADDRESS = {
    'street': 'Jhamsikhel Road',
    'city': 'Lalitpur',
}

LIFECYCLE = [
    Order.Status.CONFIRMED,
    Order.Status.PREPARING,
    Order.Status.READY_FOR_PICKUP,
]


def make_user(role, email, name, phone=None, **extra):
    return User.objects.create_user(
        email=email,
        password='testpass123',
        name=name,
        role=role,
        phone=phone,
        **extra,
    )


def make_meal(kitchen, name, price, date, capacity=10, **extra):
    meal = Meal.objects.create(
        kitchen=kitchen,
        name=name,
        description=f'Home-made {name.lower()}',
        category=Meal.Category.LUNCH,
        food_type=Meal.FoodType.VEG,
        price=Decimal(price),
        available_date=date,
        **extra,
    )
    MealTimeSlot.objects.create(
        meal=meal,
        date=date,
        start_time=SLOT_START,
        end_time=SLOT_END,
        capacity=capacity,
        remaining=capacity,
    )
    return meal


def advance_order(order, target, actor=None):
    """Walk an order forward through the kitchen statuses up to `target`."""
    for status in LIFECYCLE:
        order = OrderService.transition_status(order, status, actor=actor)
        if status == target:
            break
    return order


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def customer(db):
    return make_user(User.Role.CUSTOMER, 'asha@example.com', 'Asha Shrestha', '9800000001')


@pytest.fixture
def other_customer(db):
    return make_user(User.Role.CUSTOMER, 'bikash@example.com', 'Bikash Rai', '9800000002')


@pytest.fixture
def kitchen(db):
    """A verified home kitchen (its profile is created by the post_save signal)."""
    user = make_user(User.Role.HOME_KITCHEN, 'kitchen@example.com', 'Aama Ko Bhansa', '9800000003')
    user.kitchen_profile.is_verified = True
    user.kitchen_profile.save()
    return user


@pytest.fixture
def other_kitchen(db):
    user = make_user(User.Role.HOME_KITCHEN, 'newari@example.com', 'Newari Kitchen', '9800000004')
    user.kitchen_profile.is_verified = True
    user.kitchen_profile.save()
    return user


@pytest.fixture
def unverified_kitchen(db):
    return make_user(User.Role.HOME_KITCHEN, 'pending@example.com', 'Pending Kitchen', '9800000005')


@pytest.fixture
def partner(db):
    return make_user(User.Role.DELIVERY_PARTNER, 'rider@example.com', 'Ram Rider', '9800000006')


@pytest.fixture
def other_partner(db):
    return make_user(User.Role.DELIVERY_PARTNER, 'rider2@example.com', 'Sita Rider', '9800000007')


@pytest.fixture
def admin_user(db):
    return User.objects.create_superuser(
        email='admin@example.com', password='testpass123', name='Admin'
    )


# ============================================================================
# MEAL FIXTURES
# ============================================================================

@pytest.fixture
def meal_date():
    return timezone.localdate() + timedelta(days=1)


@pytest.fixture
def meal(kitchen, meal_date):
    """Dal bhat at Rs. 100, ten portions in the 12:00-13:00 slot."""
    return make_meal(kitchen, 'Dal Bhat', '100.00', meal_date)


@pytest.fixture
def side_meal(kitchen, meal_date):
    return make_meal(kitchen, 'Aloo Achar', '50.00', meal_date)


@pytest.fixture
def other_kitchen_meal(other_kitchen, meal_date):
    return make_meal(other_kitchen, 'Yomari', '80.00', meal_date)


# ============================================================================
# ORDER FIXTURES
# ============================================================================

@pytest.fixture
def place_order(customer, meal_date):
    """
    Factory placing an order for the 12:00-13:00 slot.

    Usage:
        order = place_order([(meal, 2), (side_meal, 1)])
        order = place_order([(meal, 1)], distance_km=Decimal('5'))
    """

    def place(lines, by=None, **overrides):
        kwargs = {
            'customer': by or customer,
            'items': [{'meal_id': m.pk, 'quantity': q} for m, q in lines],
            'pickup_address': {},
            'delivery_address': DELIVERY_ADDRESS,
            'scheduled_date': meal_date,
            'slot_start_time': SLOT_START,
            'slot_end_time': SLOT_END,
            'payment_method': Order.PaymentMethod.CASH,
        }
        kwargs.update(overrides)
        return OrderService.place_order(**kwargs)

    return place


@pytest.fixture
def order(place_order, meal):
    """A pending order for two portions of dal bhat (flat delivery fee)."""
    return place_order([(meal, 2)])


@pytest.fixture
def ready_order(place_order, meal, kitchen):
    """An order ready for pickup with an 80.00 delivery fee (5 km)."""
    order = place_order([(meal, 1)], distance_km=Decimal('5'))
    return advance_order(order, Order.Status.READY_FOR_PICKUP, actor=kitchen)
