from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
from django.template.loader import render_to_string
import logging
import requests

from core_backend.config import marketplace_settings
from core_backend.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)


ORDER_STATUS_MESSAGES = {
    "pending": "Your order #{order_number} has been placed. The kitchen will confirm it shortly.",
    "confirmed": "Your order #{order_number} has been confirmed! Your meal is being prepared with love.",
    "ready_for_pickup": "Your order #{order_number} is ready for pickup! Our delivery partner will collect it soon.",
    "out_for_delivery": "Your order #{order_number} is on its way! Get ready to enjoy your home-cooked meal.",
    "delivered": "Your order #{order_number} has been delivered! Enjoy your meal!",
    "cancelled": "Your order #{order_number} has been cancelled.",
}


def order_status_message(order_number, status):
    template = ORDER_STATUS_MESSAGES.get(status, "Order #{order_number} status: {status}")
    return template.format(order_number=order_number, status=status)


class SMSService:
    """
    Sends SMS through the HTTP gateway configured in SMS_GATEWAY_URL.
    Without a gateway the message is only logged.
    """

    timeout = 10

    def __init__(self):
        self.gateway_url = getattr(settings, "SMS_GATEWAY_URL", "")
        self.token = getattr(settings, "SMS_GATEWAY_TOKEN", "")
        self.sender_id = getattr(settings, "SMS_SENDER_ID", "HomeTaste")

    @staticmethod
    def format_phone(phone):
        if phone.startswith("+"):
            return phone
        return f"{marketplace_settings.sms_country_code}{phone}"

    def send_sms(self, phone, message):
        if not phone:
            logger.warning("SMS skipped: recipient has no phone number")
            return False

        to = self.format_phone(phone)

        if not self.gateway_url:
            logger.info(f"[SMS disabled] to={to} message={message!r}")
            return True

        try:
            response = requests.post(
                self.gateway_url,
                json={"to": to, "from": self.sender_id, "text": message},
                headers={"Authorization": f"Bearer {self.token}"} if self.token else {},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"SMS gateway request failed: {e}")

        logger.info(f"SMS sent to {to}")
        return True


class EmailService:
    def __init__(self):
        from_email_address = getattr(settings, "DEFAULT_FROM_EMAIL", "orders@hometaste.com.np")
        self.default_from_email = f"HomeTaste Flavours <{from_email_address}>"

    def send_email(self, recipient_list, subject, template_name, context):
        """
        Sends an email rendered from a Django template, with a plain-text fallback.
        """
        html_message = render_to_string(template_name, context)
        send_mail(
            subject,
            context.get("message", ""),
            self.default_from_email,
            recipient_list,
            html_message=html_message,
            fail_silently=False,
        )

    def send_order_status_email(self, order, message):
        recipient_email = order.customer.email
        if not recipient_email:
            logger.warning(f"No email address found for order_id {order.id}")
            return False

        self.send_email(
            [recipient_email],
            f"Order #{order.order_number}: {order.get_status_display()}",
            "notifications/order_status.html",
            {
                "message": message,
                "customer_name": order.customer.name,
                "order_number": order.order_number,
                "status": order.get_status_display(),
                "total": order.total,
            },
        )
        logger.info(f"Order status email sent for order {order.order_number}")
        return True


class NotificationDispatcher:
    """
    Fire-and-forget customer notifications for order status changes.

    Queued as a Celery task only after the surrounding transaction commits;
    failures are logged and never reach the caller.
    """

    @staticmethod
    def queue_status_notification(order_id, status):
        def enqueue():
            from .tasks import send_order_status_notification

            try:
                send_order_status_notification.delay(str(order_id), status)
            except Exception as e:
                logger.error(f"Could not queue notification for order {order_id}: {e}")

        transaction.on_commit(enqueue)

    @staticmethod
    def notify_status(order, status):
        """Send SMS and e-mail for one status change. Returns the channels that succeeded."""
        message = order_status_message(order.order_number, status)
        delivered = []

        try:
            if SMSService().send_sms(order.customer.phone, message):
                delivered.append("sms")
        except Exception as e:
            logger.error(f"SMS notification failed for order {order.order_number}: {e}")

        try:
            if EmailService().send_order_status_email(order, message):
                delivered.append("email")
        except Exception as e:
            logger.error(f"Email notification failed for order {order.order_number}: {e}")

        return delivered
