import django_filters
from core_backend.base.filters import BaseFilterSet
from .models import Order


class OrderFilter(BaseFilterSet):
    """
    Filters for order listings.

    `date` matches the calendar day the order was placed, which is what the
    kitchen dashboard groups by; `scheduled_date` matches the delivery day.
    """

    status = django_filters.MultipleChoiceFilter(choices=Order.Status.choices)
    date = django_filters.DateFilter(field_name="created_at", lookup_expr="date")
    scheduled_date = django_filters.DateFilter()

    class Meta:
        model = Order
        fields = ["status", "date", "scheduled_date", "payment_method"]
