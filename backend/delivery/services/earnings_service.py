from decimal import Decimal
import logging

from dateutil.relativedelta import relativedelta
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Sum
from django.utils import timezone

from core_backend.exceptions import ValidationFailed
from delivery.models import EarningEntry
from users.models import DeliveryPartnerProfile, KitchenProfile

logger = logging.getLogger(__name__)

PERIODS = ("today", "week", "month")


class EarningsService:
    """Partner earnings and kitchen order counters."""

    @staticmethod
    def credit_delivery_earning(partner, order, amount) -> Decimal:
        """
        Record the partner's share for one delivered order and bump the
        profile counters in the database. Returns the amount credited, which
        is zero when the order was already credited.
        """
        try:
            with transaction.atomic():
                EarningEntry.objects.create(partner=partner, order=order, amount=amount)
        except IntegrityError:
            logger.warning(
                f"Earning for order {order.order_number} already credited, skipping"
            )
            return Decimal("0.00")

        DeliveryPartnerProfile.objects.filter(user=partner).update(
            earnings=F("earnings") + amount,
            total_deliveries=F("total_deliveries") + 1,
        )
        logger.info(
            f"Credited {amount} to partner {partner.pk} for order {order.order_number}"
        )
        return amount

    @staticmethod
    def increment_kitchen_order_count(kitchen) -> None:
        kitchen_id = getattr(kitchen, "pk", kitchen)
        KitchenProfile.objects.filter(user_id=kitchen_id).update(
            total_orders=F("total_orders") + 1
        )

    @staticmethod
    def period_start(period, now=None):
        """
        Start of an earnings window in the local timezone: midnight today,
        seven days before that, or one calendar month before that.
        """
        if period not in PERIODS:
            raise ValidationFailed(f"Period must be one of: {', '.join(PERIODS)}.")

        now = timezone.localtime(now or timezone.now())
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)

        if period == "week":
            start -= relativedelta(days=7)
        elif period == "month":
            start -= relativedelta(months=1)
        return start

    @staticmethod
    def query_earnings(partner, period="today", now=None) -> dict:
        start = EarningsService.period_start(period, now)

        totals = EarningEntry.objects.filter(partner=partner, created_at__gte=start).aggregate(
            total_earnings=Sum("amount"),
            total_deliveries=Count("id"),
        )
        profile = DeliveryPartnerProfile.objects.get(user=partner)

        return {
            "period": period,
            "total_earnings": totals["total_earnings"] or Decimal("0.00"),
            "total_deliveries": totals["total_deliveries"],
            "lifetime_earnings": profile.earnings,
            "lifetime_deliveries": profile.total_deliveries,
        }
