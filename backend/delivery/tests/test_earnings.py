"""
Earnings Tests

These tests verify the earnings ledger: idempotent crediting and the
today/week/month windows reported to partners.
"""
from datetime import datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from django.utils import timezone

from core_backend.exceptions import ValidationFailed
from delivery.models import EarningEntry
from delivery.services import EarningsService

KATHMANDU = ZoneInfo('Asia/Kathmandu')


class TestPeriodStart:
    """Test the local-midnight period boundaries"""

    NOW = datetime(2025, 3, 31, 15, 45, tzinfo=KATHMANDU)

    def test_today_starts_at_local_midnight(self):
        assert EarningsService.period_start('today', self.NOW) == datetime(2025, 3, 31, tzinfo=KATHMANDU)

    def test_week_is_seven_days_before_midnight(self):
        assert EarningsService.period_start('week', self.NOW) == datetime(2025, 3, 24, tzinfo=KATHMANDU)

    def test_month_is_one_calendar_month_back(self):
        """31 March minus one month clamps to the end of February"""
        assert EarningsService.period_start('month', self.NOW) == datetime(2025, 2, 28, tzinfo=KATHMANDU)

    def test_unknown_period(self):
        with pytest.raises(ValidationFailed):
            EarningsService.period_start('decade', self.NOW)


@pytest.mark.django_db
class TestCrediting:
    def test_credit_is_idempotent_per_order(self, ready_order, partner):
        first = EarningsService.credit_delivery_earning(partner, ready_order, Decimal('56.00'))
        second = EarningsService.credit_delivery_earning(partner, ready_order, Decimal('56.00'))

        assert first == Decimal('56.00')
        assert second == Decimal('0.00')
        assert EarningEntry.objects.filter(order=ready_order).count() == 1

        partner.delivery_profile.refresh_from_db()
        assert partner.delivery_profile.earnings == Decimal('56.00')
        assert partner.delivery_profile.total_deliveries == 1


@pytest.mark.django_db
class TestQueryEarnings:
    """Test period totals against lifetime counters"""

    def test_period_totals(self, partner, place_order, meal, other_customer):
        today_order = place_order([(meal, 1)])
        old_order = place_order([(meal, 1)], by=other_customer)

        EarningsService.credit_delivery_earning(partner, today_order, Decimal('56.00'))
        EarningsService.credit_delivery_earning(partner, old_order, Decimal('35.00'))
        EarningEntry.objects.filter(order=old_order).update(
            created_at=timezone.now() - timedelta(days=10)
        )

        today = EarningsService.query_earnings(partner, 'today')
        month = EarningsService.query_earnings(partner, 'month')

        assert today == {
            'period': 'today',
            'total_earnings': Decimal('56.00'),
            'total_deliveries': 1,
            'lifetime_earnings': Decimal('91.00'),
            'lifetime_deliveries': 2,
        }
        assert month['total_earnings'] == Decimal('91.00')
        assert month['total_deliveries'] == 2

    def test_no_deliveries_yet(self, partner):
        result = EarningsService.query_earnings(partner, 'week')

        assert result['total_earnings'] == Decimal('0.00')
        assert result['total_deliveries'] == 0
