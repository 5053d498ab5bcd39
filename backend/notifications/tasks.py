from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def send_order_status_notification(order_id, status):
    """Notify the customer about an order status change."""
    from orders.models import Order
    from .services import NotificationDispatcher

    try:
        order = Order.objects.select_related("customer").get(pk=order_id)
    except Order.DoesNotExist:
        logger.warning(f"Notification skipped: order {order_id} no longer exists")
        return []

    delivered = NotificationDispatcher.notify_status(order, status)
    logger.info(f"Notification for order {order.order_number} ({status}) sent via {delivered or 'no channel'}")
    return delivered
