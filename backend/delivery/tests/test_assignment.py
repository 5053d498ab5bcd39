"""
Delivery Assignment Tests

These tests verify that an order is bound to exactly one delivery partner,
that only the bound partner can move it through transit and complete it, and
that completion credits earnings exactly once.

Priority: CRITICAL - double assignment sends two riders to one door, double
crediting pays twice for one delivery
"""
import threading
from decimal import Decimal
from unittest import mock

import pytest
from django.db import OperationalError, close_old_connections, connection

from core_backend.exceptions import NotAuthorized
from core_backend.tests.fixtures import advance_order
from delivery.models import EarningEntry
from delivery.services import AssignmentService
from orders.exceptions import AlreadyAssigned, InvalidTransition, OrderNotFound
from orders.models import Order, OrderTrackingUpdate
from orders.services import OrderService

Status = Order.Status


def deliver_to_door(order, partner):
    AssignmentService.accept_assignment(order.pk, partner)
    AssignmentService.mark_picked_up(order.pk, partner)
    AssignmentService.mark_out_for_delivery(order.pk, partner)


@pytest.mark.django_db
class TestAcceptAssignment:
    """Test binding a partner to a ready order"""

    def test_partner_accepts_ready_order(self, ready_order, partner):
        order = AssignmentService.accept_assignment(ready_order.pk, partner)

        order.refresh_from_db()
        assert order.status == Status.ASSIGNED
        assert order.delivery_partner == partner
        assert order.status_history.last().status == Status.ASSIGNED

        partner.delivery_profile.refresh_from_db()
        assert partner.delivery_profile.is_available is False

    def test_second_partner_gets_already_assigned(self, ready_order, partner, other_partner):
        AssignmentService.accept_assignment(ready_order.pk, partner)

        with pytest.raises(AlreadyAssigned) as exc_info:
            AssignmentService.accept_assignment(ready_order.pk, other_partner)

        assert exc_info.value.kind == 'conflict'
        ready_order.refresh_from_db()
        assert ready_order.delivery_partner == partner

    def test_lost_race_reports_already_assigned(self, ready_order, partner, other_partner):
        """
        CRITICAL: Two partners read the order while it is unassigned

        Scenario:
        - Partner B's request loaded the order before partner A's bind committed
        - Expected: B's conditional update matches no row, B gets
          AlreadyAssigned and A stays bound
        """
        stale = OrderService.get_order(ready_order.pk)
        AssignmentService.accept_assignment(ready_order.pk, partner)

        with mock.patch.object(OrderService, 'get_order', return_value=stale):
            with pytest.raises(AlreadyAssigned):
                AssignmentService.accept_assignment(ready_order.pk, other_partner)

        ready_order.refresh_from_db()
        assert ready_order.delivery_partner == partner
        assert ready_order.status_history.filter(status=Status.ASSIGNED).count() == 1
        other_partner.delivery_profile.refresh_from_db()
        assert other_partner.delivery_profile.is_available is True

    def test_order_not_ready(self, order, partner):
        with pytest.raises(InvalidTransition):
            AssignmentService.accept_assignment(order.pk, partner)

        order.refresh_from_db()
        assert order.delivery_partner is None

    def test_unknown_order(self, partner):
        with pytest.raises(OrderNotFound):
            AssignmentService.accept_assignment('00000000-0000-0000-0000-000000000000', partner)

    def test_assignment_broadcast(
        self, ready_order, partner, event_sink, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            AssignmentService.accept_assignment(ready_order.pk, partner)

        events = event_sink.events_for(group=f'order_{ready_order.pk}', event_type='delivery_assigned')
        assert len(events) == 1
        assert events[0]['data']['delivery_partner'] == {
            'id': partner.pk,
            'name': 'Ram Rider',
            'phone': '9800000006',
        }

    def test_list_assignable(self, ready_order, order, partner, place_order, meal, kitchen):
        second_ready = advance_order(place_order([(meal, 1)]), Status.READY_FOR_PICKUP, actor=kitchen)
        AssignmentService.accept_assignment(second_ready.pk, partner)

        assignable = list(AssignmentService.list_assignable())

        assert assignable == [ready_order]


@pytest.mark.django_db(transaction=True)
@pytest.mark.skipif(
    connection.vendor != 'postgresql',
    reason='Needs row-level locking; SQLite serializes writers at the file level',
)
class TestConcurrentAcceptOnPostgres:
    """Real two-thread race against the database"""

    def test_exactly_one_of_two_concurrent_accepts_wins(self, ready_order, partner, other_partner):
        barrier = threading.Barrier(2)
        outcomes = {}

        def accept(p):
            try:
                barrier.wait()
                AssignmentService.accept_assignment(ready_order.pk, p)
                outcomes[p.pk] = 'won'
            except AlreadyAssigned:
                outcomes[p.pk] = 'conflict'
            finally:
                close_old_connections()

        threads = [threading.Thread(target=accept, args=(p,)) for p in (partner, other_partner)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes.values()) == ['conflict', 'won']
        ready_order.refresh_from_db()
        winner_id = next(pk for pk, outcome in outcomes.items() if outcome == 'won')
        assert ready_order.delivery_partner_id == winner_id
        assert ready_order.status_history.filter(status=Status.ASSIGNED).count() == 1


@pytest.mark.django_db
class TestTransit:
    """Test pickup and out-for-delivery by the bound partner"""

    def test_bound_partner_moves_order(self, ready_order, partner):
        deliver_to_door(ready_order, partner)

        ready_order.refresh_from_db()
        assert ready_order.status == Status.OUT_FOR_DELIVERY

    def test_other_partner_cannot_pick_up(self, ready_order, partner, other_partner):
        AssignmentService.accept_assignment(ready_order.pk, partner)

        with pytest.raises(NotAuthorized):
            AssignmentService.mark_picked_up(ready_order.pk, other_partner)

    def test_location_update_reaches_in_transit_orders(
        self, ready_order, partner, event_sink, django_capture_on_commit_callbacks
    ):
        AssignmentService.accept_assignment(ready_order.pk, partner)
        AssignmentService.mark_picked_up(ready_order.pk, partner)

        with django_capture_on_commit_callbacks(execute=True):
            notified = AssignmentService.update_location(
                partner, Decimal('27.717200'), Decimal('85.324000')
            )

        assert notified == 1
        assert OrderTrackingUpdate.objects.filter(order=ready_order).count() == 1
        events = event_sink.events_for(event_type='location_update')
        assert [e['group'] for e in events] == [f'order_{ready_order.pk}']
        assert events[0]['data']['latitude'] == '27.717200'

        partner.delivery_profile.refresh_from_db()
        assert partner.delivery_profile.current_latitude == Decimal('27.717200')

    def test_location_update_skips_assigned_orders(self, ready_order, partner):
        AssignmentService.accept_assignment(ready_order.pk, partner)

        assert AssignmentService.update_location(partner, Decimal('27.7'), Decimal('85.3')) == 0


@pytest.mark.django_db
class TestCompleteDelivery:
    """Test delivery completion bookkeeping"""

    def test_completion_credits_partner_and_kitchen(self, ready_order, partner, kitchen):
        """
        CRITICAL: Delivery fee 80 credits the partner 56.00

        Business Impact: Partner pay and kitchen stats move together with the
        delivered status or not at all
        """
        deliver_to_door(ready_order, partner)

        earned = AssignmentService.complete_delivery(
            ready_order.pk, partner, proof={'otp': '4321'}
        )

        assert earned == Decimal('56.00')

        ready_order.refresh_from_db()
        assert ready_order.status == Status.DELIVERED
        assert ready_order.actual_delivery_time is not None
        assert ready_order.delivery_proof == {'otp': '4321'}
        assert ready_order.payment_status == Order.PaymentStatus.COMPLETED

        profile = partner.delivery_profile
        profile.refresh_from_db()
        assert profile.earnings == Decimal('56.00')
        assert profile.total_deliveries == 1
        assert profile.is_available is True

        kitchen.kitchen_profile.refresh_from_db()
        assert kitchen.kitchen_profile.total_orders == 1

        assert EarningEntry.objects.get(order=ready_order).amount == Decimal('56.00')

    def test_partner_stays_busy_with_other_active_order(self, ready_order, partner, place_order, meal, kitchen):
        """
        Scenario:
        - Partner carries two orders
        - Completes the first
        - Expected: still unavailable until the second is done
        """
        second = advance_order(place_order([(meal, 1)]), Status.READY_FOR_PICKUP, actor=kitchen)
        deliver_to_door(ready_order, partner)
        AssignmentService.accept_assignment(second.pk, partner)

        AssignmentService.complete_delivery(ready_order.pk, partner)

        partner.delivery_profile.refresh_from_db()
        assert partner.delivery_profile.is_available is False

    def test_only_bound_partner_can_complete(self, ready_order, partner, other_partner):
        deliver_to_door(ready_order, partner)

        with pytest.raises(NotAuthorized):
            AssignmentService.complete_delivery(ready_order.pk, other_partner)

        ready_order.refresh_from_db()
        assert ready_order.status == Status.OUT_FOR_DELIVERY

    def test_cannot_complete_before_out_for_delivery(self, ready_order, partner):
        AssignmentService.accept_assignment(ready_order.pk, partner)

        with pytest.raises(InvalidTransition):
            AssignmentService.complete_delivery(ready_order.pk, partner)

        assert not EarningEntry.objects.exists()

    def test_second_completion_does_not_pay_twice(self, ready_order, partner):
        deliver_to_door(ready_order, partner)
        AssignmentService.complete_delivery(ready_order.pk, partner)

        with pytest.raises(InvalidTransition):
            AssignmentService.complete_delivery(ready_order.pk, partner)

        partner.delivery_profile.refresh_from_db()
        assert partner.delivery_profile.earnings == Decimal('56.00')
        assert EarningEntry.objects.count() == 1

    def test_transient_error_is_retried_as_a_whole(self, ready_order, partner):
        """
        Scenario:
        - The earnings write hits a transient database error once
        - Expected: the block is rolled back and re-run, credited exactly once
        """
        from delivery.services import EarningsService

        deliver_to_door(ready_order, partner)
        real_credit = EarningsService.credit_delivery_earning
        calls = {'count': 0}

        def flaky_credit(*args, **kwargs):
            calls['count'] += 1
            if calls['count'] == 1:
                raise OperationalError('deadlock detected')
            return real_credit(*args, **kwargs)

        with mock.patch.object(EarningsService, 'credit_delivery_earning', side_effect=flaky_credit), \
                mock.patch('core_backend.utils.retry.time.sleep'):
            earned = AssignmentService.complete_delivery(ready_order.pk, partner)

        assert earned == Decimal('56.00')
        assert calls['count'] == 2
        ready_order.refresh_from_db()
        assert ready_order.status == Status.DELIVERED
        assert ready_order.status_history.filter(status=Status.DELIVERED).count() == 1
