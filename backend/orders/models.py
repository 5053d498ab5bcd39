import random
import time
import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import IntegrityError, models, transaction
from django.utils.translation import gettext_lazy as _

from core_backend.config import marketplace_settings


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")  # Order placed
        CONFIRMED = "confirmed", _("Confirmed")  # Kitchen accepted
        PREPARING = "preparing", _("Preparing")
        READY_FOR_PICKUP = "ready_for_pickup", _("Ready for pickup")
        ASSIGNED = "assigned", _("Assigned")  # Delivery partner bound
        PICKED_UP = "picked_up", _("Picked up")
        OUT_FOR_DELIVERY = "out_for_delivery", _("Out for delivery")
        DELIVERED = "delivered", _("Delivered")
        CANCELLED = "cancelled", _("Cancelled")
        REFUNDED = "refunded", _("Refunded")

    class PaymentMethod(models.TextChoices):
        CASH = "cash", _("Cash")
        CARD = "card", _("Card")
        UPI = "upi", _("UPI")
        WALLET = "wallet", _("Wallet")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        COMPLETED = "completed", _("Completed")
        FAILED = "failed", _("Failed")
        REFUNDED = "refunded", _("Refunded")

    TERMINAL_STATUSES = (Status.DELIVERED, Status.CANCELLED, Status.REFUNDED)
    ACTIVE_DELIVERY_STATUSES = (Status.ASSIGNED, Status.PICKED_UP, Status.OUT_FOR_DELIVERY)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=32, unique=True, editable=False)

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="orders"
    )
    kitchen = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="kitchen_orders"
    )
    delivery_partner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="deliveries",
    )

    # Address snapshots, copied at creation and never edited
    pickup_address = models.JSONField(default=dict)
    delivery_address = models.JSONField(default=dict)

    scheduled_date = models.DateField()
    slot_start_time = models.TimeField()
    slot_end_time = models.TimeField()

    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True
    )

    # --- Pricing (total = subtotal + delivery_fee + tax - discount) ---
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    distance_km = models.DecimalField(max_digits=7, decimal_places=2, null=True, blank=True)

    # --- Payment ---
    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices)
    payment_status = models.CharField(
        max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    transaction_id = models.CharField(max_length=100, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    # --- Post-delivery rating ---
    rating_food = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    rating_delivery = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    rating_overall = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    rating_comment = models.TextField(blank=True)
    rated_at = models.DateTimeField(null=True, blank=True)

    # --- Cancellation ---
    cancellation_reason = models.TextField(blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cancelled_orders",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)

    estimated_delivery_time = models.DateTimeField(null=True, blank=True)
    actual_delivery_time = models.DateTimeField(null=True, blank=True)
    delivery_proof = models.JSONField(default=dict, blank=True)
    delivery_instructions = models.TextField(blank=True)
    promo_code = models.CharField(max_length=50, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer", "-created_at"], name="order_customer_recent_idx"),
            models.Index(fields=["kitchen", "status"], name="order_kitchen_status_idx"),
            models.Index(fields=["delivery_partner", "status"], name="order_partner_status_idx"),
            models.Index(fields=["scheduled_date"], name="order_scheduled_date_idx"),
        ]

    def __str__(self):
        return f"Order {self.order_number} ({self.status})"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @property
    def pricing_is_consistent(self):
        return self.total == self.subtotal + self.delivery_fee + self.tax - self.discount

    @classmethod
    def generate_order_number(cls):
        """
        Prefix + last 8 digits of the epoch-milliseconds timestamp + a
        4-digit random suffix, e.g. HT123456781234.
        """
        timestamp = str(int(time.time() * 1000))[-8:]
        suffix = random.randint(1000, 9999)
        return f"{marketplace_settings.order_number_prefix}{timestamp}{suffix}"

    def save(self, *args, **kwargs):
        if self.order_number:
            return super().save(*args, **kwargs)

        max_attempts = marketplace_settings.order_number_max_attempts
        for _ in range(max_attempts):
            candidate = self.generate_order_number()
            if Order.objects.filter(order_number=candidate).exists():
                continue
            self.order_number = candidate
            try:
                # Savepoint so a collision does not poison the outer transaction
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                if Order.objects.filter(order_number=candidate).exists():
                    # Another process took the number, retry
                    self.order_number = ""
                    self._state.adding = True
                    continue
                raise

        self.order_number = ""
        raise IntegrityError(
            "Failed to generate a unique order number after multiple retries."
        )


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    meal = models.ForeignKey(
        "meals.Meal", on_delete=models.PROTECT, related_name="order_items"
    )
    time_slot = models.ForeignKey(
        "meals.MealTimeSlot",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
        help_text=_("The slot the quantity was reserved against."),
    )
    name = models.CharField(max_length=100)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    special_instructions = models.TextField(blank=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.quantity} x {self.name}"

    @property
    def line_total(self):
        return self.unit_price * self.quantity


class OrderStatusHistory(models.Model):
    """Append-only audit trail of an order's status changes."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="status_history")
    status = models.CharField(max_length=20, choices=Order.Status.choices)
    note = models.TextField(blank=True)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["timestamp", "id"]
        verbose_name_plural = "order status history"

    def __str__(self):
        return f"{self.order_id}: {self.status}"


class OrderTrackingUpdate(models.Model):
    """A delivery partner location fix recorded against an in-flight order."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="tracking_updates")
    message = models.CharField(max_length=255, blank=True)
    latitude = models.DecimalField(max_digits=9, decimal_places=6)
    longitude = models.DecimalField(max_digits=9, decimal_places=6)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-timestamp", "-id"]
