from typing import Optional
import logging

from django.db import transaction
from django.utils import timezone

from core_backend.exceptions import NotAuthorized
from core_backend.utils.retry import retry_on_transient_errors
from orders.events import OrderEventPublisher
from orders.exceptions import AlreadyAssigned, ConcurrentModification
from orders.models import Order, OrderTrackingUpdate
from orders.services import OrderCalculationService, OrderService
from users.models import DeliveryPartnerProfile
from .earnings_service import EarningsService

logger = logging.getLogger(__name__)

Status = Order.Status

IN_TRANSIT_STATUSES = (Status.PICKED_UP, Status.OUT_FOR_DELIVERY)


class AssignmentService:
    """
    Binds delivery partners to orders and drives the delivery half of the
    order lifecycle. Every status change goes through OrderService.
    """

    @staticmethod
    def list_assignable():
        return (
            Order.objects.filter(status=Status.READY_FOR_PICKUP, delivery_partner__isnull=True)
            .select_related("customer", "kitchen", "kitchen__kitchen_profile")
            .prefetch_related("items")
            .order_by("scheduled_date", "slot_start_time", "created_at")
        )

    @staticmethod
    @transaction.atomic
    def accept_assignment(order_id, partner) -> Order:
        """
        Bind `partner` to a ready order. The bind is a single conditional
        update on (no partner, ready_for_pickup), so of two partners racing
        for the same order exactly one wins and the other gets AlreadyAssigned.
        """
        order = OrderService.get_order(order_id)
        if order.delivery_partner_id is not None:
            raise AlreadyAssigned()

        try:
            order = OrderService.transition_status(
                order,
                Status.ASSIGNED,
                note="Delivery partner assigned",
                actor=partner,
                extra_updates={"delivery_partner": partner},
                extra_guard={"delivery_partner__isnull": True},
            )
        except ConcurrentModification:
            winner = (
                Order.objects.filter(pk=order.pk)
                .values_list("delivery_partner_id", flat=True)
                .first()
            )
            if winner is not None:
                logger.info(
                    f"Partner {partner.pk} lost assignment race for {order.order_number} to {winner}"
                )
                raise AlreadyAssigned()
            raise

        DeliveryPartnerProfile.objects.filter(user=partner).update(is_available=False)
        OrderEventPublisher.delivery_assigned(order, partner)
        return order

    @staticmethod
    def _bound_order(order_id, partner) -> Order:
        order = OrderService.get_order(order_id)
        if order.delivery_partner_id != partner.id:
            raise NotAuthorized("Only the assigned delivery partner can update this delivery.")
        return order

    @staticmethod
    def mark_picked_up(order_id, partner) -> Order:
        order = AssignmentService._bound_order(order_id, partner)
        return OrderService.transition_status(
            order,
            Status.PICKED_UP,
            note="Picked up from kitchen",
            actor=partner,
            extra_guard={"delivery_partner": partner},
        )

    @staticmethod
    def mark_out_for_delivery(order_id, partner) -> Order:
        order = AssignmentService._bound_order(order_id, partner)
        return OrderService.transition_status(
            order,
            Status.OUT_FOR_DELIVERY,
            note="Out for delivery",
            actor=partner,
            extra_guard={"delivery_partner": partner},
        )

    @staticmethod
    @retry_on_transient_errors
    def complete_delivery(order_id, partner, proof: Optional[dict] = None):
        """
        Mark the order delivered, credit the partner and bump the kitchen's
        counter as one unit. Retried as a whole on transient database errors;
        the one earning entry per order keeps a replay from paying twice.

        Returns the amount credited to the partner.
        """
        with transaction.atomic():
            order = AssignmentService._bound_order(order_id, partner)

            extra_updates = {"delivery_proof": proof or {}}
            if order.payment_method == Order.PaymentMethod.CASH:
                extra_updates.update(
                    payment_status=Order.PaymentStatus.COMPLETED, paid_at=timezone.now()
                )

            order = OrderService.transition_status(
                order,
                Status.DELIVERED,
                note="Order delivered successfully",
                actor=partner,
                extra_updates=extra_updates,
                extra_guard={"delivery_partner": partner},
            )

            amount = OrderCalculationService.partner_earning(order.delivery_fee)
            credited = EarningsService.credit_delivery_earning(partner, order, amount)
            EarningsService.increment_kitchen_order_count(order.kitchen_id)
            AssignmentService.refresh_partner_availability(partner.id)

        return credited

    @staticmethod
    def refresh_partner_availability(partner_id) -> bool:
        """Free the partner unless another order is still bound to them."""
        busy = Order.objects.filter(
            delivery_partner_id=partner_id, status__in=Order.ACTIVE_DELIVERY_STATUSES
        ).exists()
        DeliveryPartnerProfile.objects.filter(user_id=partner_id).update(is_available=not busy)
        return not busy

    @staticmethod
    @transaction.atomic
    def update_location(partner, latitude, longitude) -> int:
        """
        Store the partner's position and push it to every order they are
        carrying. Returns the number of orders notified.
        """
        now = timezone.now()
        DeliveryPartnerProfile.objects.filter(user=partner).update(
            current_latitude=latitude,
            current_longitude=longitude,
            location_updated_at=now,
        )

        orders = list(
            Order.objects.filter(delivery_partner=partner, status__in=IN_TRANSIT_STATUSES)
        )
        OrderTrackingUpdate.objects.bulk_create([
            OrderTrackingUpdate(order=order, latitude=latitude, longitude=longitude)
            for order in orders
        ])
        for order in orders:
            OrderEventPublisher.location_update(order, latitude, longitude)

        return len(orders)

    @staticmethod
    def active_deliveries(partner):
        return (
            Order.objects.filter(
                delivery_partner=partner, status__in=Order.ACTIVE_DELIVERY_STATUSES
            )
            .select_related("customer", "kitchen", "kitchen__kitchen_profile")
            .prefetch_related("items")
            .order_by("scheduled_date", "slot_start_time")
        )

    @staticmethod
    def delivery_history(partner, start=None, end=None):
        queryset = Order.objects.filter(delivery_partner=partner, status=Status.DELIVERED)
        if start:
            queryset = queryset.filter(actual_delivery_time__gte=start)
        if end:
            queryset = queryset.filter(actual_delivery_time__lte=end)
        return (
            queryset.select_related("customer", "kitchen", "kitchen__kitchen_profile")
            .prefetch_related("items")
            .order_by("-actual_delivery_time")
        )
