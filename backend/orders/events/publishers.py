from decimal import Decimal
from uuid import UUID
import datetime
import logging

from django.db import transaction
from django.utils import timezone

from .sinks import get_event_sink

logger = logging.getLogger(__name__)


def order_group_name(order_id) -> str:
    return f"order_{order_id}"


def kitchen_group_name(kitchen_id) -> str:
    return f"kitchen_{kitchen_id}"


def convert_complex_types_to_str(data):
    """
    Recursively converts UUID, Decimal and date/time values to strings so the
    payload survives any channel layer serializer.
    """
    if isinstance(data, dict):
        return {k: convert_complex_types_to_str(v) for k, v in data.items()}
    elif isinstance(data, (list, tuple)):
        return [convert_complex_types_to_str(elem) for elem in data]
    elif isinstance(data, (UUID, Decimal)):
        return str(data)
    elif isinstance(data, (datetime.datetime, datetime.date, datetime.time)):
        return data.isoformat()
    return data


class OrderEventPublisher:
    """Centralized publishing of real-time order events."""

    @staticmethod
    def _dispatch(group, event_type, payload):
        """Publish once the current transaction commits; immediately outside one."""
        payload = convert_complex_types_to_str(payload)

        def send():
            try:
                get_event_sink().publish(group, event_type, payload)
            except Exception as e:
                logger.error(f"Error publishing {event_type} to {group}: {e}")

        if transaction.get_connection().in_atomic_block:
            transaction.on_commit(send)
        else:
            send()

    @staticmethod
    def status_changed(order, previous_status, note=""):
        logger.info(
            f"Publishing status_update for {order.order_number}: {previous_status} -> {order.status}"
        )
        OrderEventPublisher._dispatch(
            order_group_name(order.pk),
            'status_update',
            {
                'order_id': order.pk,
                'order_number': order.order_number,
                'status': order.status,
                'previous_status': previous_status,
                'note': note,
                'timestamp': timezone.now(),
            },
        )

    @staticmethod
    def delivery_assigned(order, partner):
        logger.info(f"Publishing delivery_assigned for {order.order_number} to partner {partner.pk}")
        OrderEventPublisher._dispatch(
            order_group_name(order.pk),
            'delivery_assigned',
            {
                'order_id': order.pk,
                'delivery_partner': {
                    'id': partner.pk,
                    'name': partner.name,
                    'phone': partner.phone,
                },
            },
        )

    @staticmethod
    def location_update(order, latitude, longitude):
        OrderEventPublisher._dispatch(
            order_group_name(order.pk),
            'location_update',
            {
                'order_id': order.pk,
                'latitude': latitude,
                'longitude': longitude,
                'timestamp': timezone.now(),
            },
        )

    @staticmethod
    def new_order(order):
        logger.info(f"Publishing new_order {order.order_number} to kitchen {order.kitchen_id}")
        OrderEventPublisher._dispatch(
            kitchen_group_name(order.kitchen_id),
            'new_order',
            {
                'order_id': order.pk,
                'order_number': order.order_number,
                'total': order.total,
                'scheduled_date': order.scheduled_date,
                'slot_start_time': order.slot_start_time,
                'slot_end_time': order.slot_end_time,
            },
        )
