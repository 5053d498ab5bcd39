from decimal import Decimal

from django.conf import settings
from django.db import models


class EarningEntry(models.Model):
    """
    One credited delivery. The one-to-one on order makes crediting
    idempotent: a replayed completion cannot pay a partner twice.
    """

    partner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="earning_entries"
    )
    order = models.OneToOneField(
        "orders.Order", on_delete=models.PROTECT, related_name="earning_entry"
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "earning entries"
        indexes = [
            models.Index(fields=["partner", "created_at"], name="earning_partner_recent_idx"),
        ]

    def __str__(self):
        return f"{self.partner_id}: {self.amount} for {self.order_id}"
