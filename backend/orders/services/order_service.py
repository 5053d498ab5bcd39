from typing import Optional
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from core_backend.exceptions import NotAuthorized, ValidationFailed
from meals.exceptions import MealUnavailable
from meals.models import Meal, MealTimeSlot
from meals.services import MealAvailabilityService, MealService
from notifications.services import NotificationDispatcher
from orders.events import OrderEventPublisher
from orders.exceptions import (
    ConcurrentModification,
    InvalidTransition,
    MultiKitchenOrder,
    OrderNotFound,
)
from orders.models import Order, OrderItem, OrderStatusHistory
from .calculation_service import OrderCalculationService

logger = logging.getLogger(__name__)

Status = Order.Status


class OrderService:
    """Core service for the order lifecycle: placement, status transitions, cancellation, rating."""

    # Linear forward-only lifecycle; cancellation is handled separately.
    NEXT_STATUS = {
        Status.PENDING: Status.CONFIRMED,
        Status.CONFIRMED: Status.PREPARING,
        Status.PREPARING: Status.READY_FOR_PICKUP,
        Status.READY_FOR_PICKUP: Status.ASSIGNED,
        Status.ASSIGNED: Status.PICKED_UP,
        Status.PICKED_UP: Status.OUT_FOR_DELIVERY,
        Status.OUT_FOR_DELIVERY: Status.DELIVERED,
    }

    VALID_STATUS_TRANSITIONS = {
        status: [successor, Status.CANCELLED] for status, successor in NEXT_STATUS.items()
    }
    VALID_STATUS_TRANSITIONS.update({
        Status.DELIVERED: [],
        Status.CANCELLED: [],
        Status.REFUNDED: [],
    })

    # Targets only reachable through the delivery endpoints
    ASSIGNMENT_MANAGED_STATUSES = (Status.ASSIGNED, Status.DELIVERED)

    KITCHEN_STATUSES = (Status.CONFIRMED, Status.PREPARING, Status.READY_FOR_PICKUP, Status.CANCELLED)
    PARTNER_STATUSES = (Status.PICKED_UP, Status.OUT_FOR_DELIVERY)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @staticmethod
    def get_order(order_id) -> Order:
        try:
            return Order.objects.get(pk=order_id)
        except (Order.DoesNotExist, ValueError, DjangoValidationError):
            raise OrderNotFound(f"Order {order_id} not found.")

    @staticmethod
    def is_party(order: Order, user) -> bool:
        return user.is_admin_role or user.id in (
            order.customer_id,
            order.kitchen_id,
            order.delivery_partner_id,
        )

    @staticmethod
    def get_order_for_user(order_id, user) -> Order:
        order = OrderService.get_order(order_id)
        if not OrderService.is_party(order, user):
            raise NotAuthorized("Not authorized to view this order.")
        return order

    @staticmethod
    def customer_orders(customer, status: Optional[str] = None, queryset=None):
        queryset = (Order.objects.all() if queryset is None else queryset).filter(customer=customer)
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by("-created_at")

    @staticmethod
    def kitchen_orders(kitchen, status: Optional[str] = None, date=None, queryset=None):
        queryset = Order.objects.all() if queryset is None else queryset
        if not kitchen.is_admin_role:
            queryset = queryset.filter(kitchen=kitchen)
        if status:
            queryset = queryset.filter(status=status)
        if date:
            queryset = queryset.filter(created_at__date=date)
        return queryset.order_by("-created_at")

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_lines(items, scheduled_date, start_time, end_time):
        """Validate every requested item and return (meal, slot, item) triples."""
        if not items:
            raise ValidationFailed("An order needs at least one item.")

        meal_ids = [item["meal_id"] for item in items]
        meals = Meal.all_objects.in_bulk(meal_ids)

        lines = []
        for item in items:
            meal = meals.get(item["meal_id"])
            if meal is None:
                raise MealUnavailable(f"Meal {item['meal_id']} is not available.")
            if not meal.is_active or not meal.is_available:
                raise MealUnavailable(f"{meal.name} is not available.")
            if meal.available_date != scheduled_date:
                raise MealUnavailable(f"{meal.name} is not available on {scheduled_date}.")

            slot = MealTimeSlot.objects.filter(
                meal=meal, date=scheduled_date, start_time=start_time, end_time=end_time
            ).first()
            if slot is None:
                raise MealUnavailable(
                    f"{meal.name} has no {start_time:%H:%M}-{end_time:%H:%M} slot on {scheduled_date}."
                )
            if slot.remaining == 0:
                raise MealUnavailable(f"{meal.name} is sold out for this slot.")

            lines.append((meal, slot, item))

        kitchen_ids = {meal.kitchen_id for meal, _, _ in lines}
        if len(kitchen_ids) > 1:
            raise MultiKitchenOrder()

        return lines

    @staticmethod
    @transaction.atomic
    def place_order(
        customer,
        items,
        pickup_address,
        delivery_address,
        scheduled_date,
        slot_start_time,
        slot_end_time,
        payment_method,
        delivery_instructions="",
        distance_km=None,
        promo_code="",
        notes="",
    ) -> Order:
        """
        Validate items, reserve slot quantities and create the order in one
        transaction. Any failure rolls back every reservation already made.

        Args:
            items: list of {"meal_id", "quantity", "special_instructions"?}
        """
        lines = OrderService._resolve_lines(items, scheduled_date, slot_start_time, slot_end_time)

        for meal, slot, item in lines:
            MealAvailabilityService.reserve_slot(slot.pk, item["quantity"])

        distance = OrderCalculationService.resolve_distance_km(
            pickup_address, delivery_address, distance_km
        )
        pricing = OrderCalculationService.calculate(
            [(meal.price, item["quantity"]) for meal, _, item in lines],
            distance_km=distance,
        )

        order = Order(
            customer=customer,
            kitchen_id=lines[0][0].kitchen_id,
            pickup_address=dict(pickup_address or {}),
            delivery_address=dict(delivery_address or {}),
            scheduled_date=scheduled_date,
            slot_start_time=slot_start_time,
            slot_end_time=slot_end_time,
            distance_km=distance,
            payment_method=payment_method,
            delivery_instructions=delivery_instructions or "",
            promo_code=promo_code or "",
            notes=notes or "",
            **pricing.as_dict(),
        )
        order.save()

        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                meal=meal,
                time_slot=slot,
                name=meal.name,
                quantity=item["quantity"],
                unit_price=meal.price,
                special_instructions=item.get("special_instructions", "") or "",
            )
            for meal, slot, item in lines
        ])

        for meal_id in {meal.pk for meal, _, _ in lines}:
            MealService.increment_order_count(meal_id)

        OrderStatusHistory.objects.create(
            order=order, status=Status.PENDING, note="Order placed", actor=customer
        )

        logger.info(
            f"Order {order.order_number} placed by customer {customer.pk}: "
            f"{len(lines)} items, total {order.total}"
        )

        OrderEventPublisher.new_order(order)
        NotificationDispatcher.queue_status_notification(order.pk, Status.PENDING)
        return order

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    @staticmethod
    def validate_transition(current_status, target_status):
        if target_status not in Status.values:
            raise ValidationFailed(f"'{target_status}' is not a valid order status.")

        if target_status not in OrderService.VALID_STATUS_TRANSITIONS.get(current_status, []):
            raise InvalidTransition(
                f"Cannot transition order from {current_status} to {target_status}."
            )

    @staticmethod
    @transaction.atomic
    def transition_status(
        order,
        target_status,
        note="",
        actor=None,
        extra_updates: Optional[dict] = None,
        extra_guard: Optional[dict] = None,
    ) -> Order:
        """
        The single entry point for every order status change.

        The write is a compare-and-set on the status that was read (plus any
        `extra_guard` conditions). If another writer got there first nothing
        is modified and ConcurrentModification is raised. On success a history
        row is appended; the broadcast and customer notification follow the
        commit.

        Args:
            order: an Order instance or its id. An instance's status is taken
                as the expected current status.
        """
        if not isinstance(order, Order):
            order = OrderService.get_order(order)

        current_status = order.status
        OrderService.validate_transition(current_status, target_status)

        now = timezone.now()
        updates = {"status": target_status, "updated_at": now}
        if target_status == Status.DELIVERED:
            updates["actual_delivery_time"] = now
        updates.update(extra_updates or {})

        queryset = Order.objects.filter(pk=order.pk, status=current_status)
        if extra_guard:
            queryset = queryset.filter(**extra_guard)

        if not queryset.update(**updates):
            logger.warning(
                f"Concurrent modification on order {order.order_number}: "
                f"expected {current_status}, wanted {target_status}"
            )
            raise ConcurrentModification()

        for field, value in updates.items():
            setattr(order, field, value)

        OrderStatusHistory.objects.create(
            order=order, status=target_status, note=note or "", actor=actor
        )

        logger.info(
            f"Order {order.order_number}: {current_status} -> {target_status}"
            f" by {getattr(actor, 'pk', 'system')}"
        )

        OrderEventPublisher.status_changed(order, current_status, note or "")
        NotificationDispatcher.queue_status_notification(order.pk, target_status)
        return order

    @staticmethod
    def update_status_for_actor(order_id, target_status, actor, note="") -> Order:
        """
        Generic status update requested over HTTP.

        Kitchens drive preparation, bound partners drive transit, admins may
        do either. Assignment and delivery go through AssignmentService.
        """
        if target_status in OrderService.ASSIGNMENT_MANAGED_STATUSES:
            raise InvalidTransition(
                f"Orders move to {target_status} through the delivery endpoints."
            )
        if target_status == Status.CANCELLED:
            return OrderService.cancel_order(order_id, actor, note)

        order = OrderService.get_order(order_id)

        if not actor.is_admin_role:
            allowed = (
                (order.kitchen_id == actor.id and target_status in OrderService.KITCHEN_STATUSES)
                or (order.delivery_partner_id == actor.id and target_status in OrderService.PARTNER_STATUSES)
            )
            if not allowed:
                raise NotAuthorized("Not authorized to change this order's status.")

        return OrderService.transition_status(order, target_status, note=note, actor=actor)

    # ------------------------------------------------------------------
    # Cancellation and rating
    # ------------------------------------------------------------------

    @staticmethod
    @transaction.atomic
    def cancel_order(order_id, actor, reason="") -> Order:
        """
        Cancel a non-terminal order. Slot reservations are released when the
        food has not left the kitchen, and a bound partner is freed when they
        have nothing else in flight.
        """
        from delivery.services import AssignmentService

        order = OrderService.get_order(order_id)

        if not (actor.is_admin_role or actor.id in (order.customer_id, order.kitchen_id)):
            raise NotAuthorized("Not authorized to cancel this order.")

        left_kitchen = order.status in (Status.PICKED_UP, Status.OUT_FOR_DELIVERY)
        partner_id = order.delivery_partner_id

        order = OrderService.transition_status(
            order,
            Status.CANCELLED,
            note=reason or "Order cancelled",
            actor=actor,
            extra_updates={
                "cancellation_reason": reason or "",
                "cancelled_by": actor,
                "cancelled_at": timezone.now(),
            },
        )

        if not left_kitchen:
            for item in order.items.exclude(time_slot__isnull=True):
                MealAvailabilityService.release_slot(item.time_slot_id, item.quantity)
            logger.info(f"Released slot reservations for cancelled order {order.order_number}")

        if partner_id:
            AssignmentService.refresh_partner_availability(partner_id)

        return order

    @staticmethod
    @transaction.atomic
    def rate_order(order_id, customer, food, delivery, overall, comment="") -> Order:
        order = OrderService.get_order(order_id)

        if order.customer_id != customer.id:
            raise NotAuthorized("Not authorized to rate this order.")
        if order.status != Status.DELIVERED:
            raise InvalidTransition("Can only rate delivered orders.")

        ratings = {"food": food, "delivery": delivery, "overall": overall}
        for name, value in ratings.items():
            if not isinstance(value, int) or not 1 <= value <= 5:
                raise ValidationFailed(f"The {name} rating must be between 1 and 5.")

        now = timezone.now()
        updated = Order.objects.filter(
            pk=order.pk, status=Status.DELIVERED, rated_at__isnull=True
        ).update(
            rating_food=food,
            rating_delivery=delivery,
            rating_overall=overall,
            rating_comment=comment or "",
            rated_at=now,
        )
        if not updated:
            raise ValidationFailed("This order has already been rated.")

        order.refresh_from_db()
        logger.info(f"Order {order.order_number} rated {overall}/5 by customer {customer.pk}")
        return order
