"""
Centralized access to the marketplace business constants.

Business logic reads VAT, delivery fees, earning share and similar values from
``marketplace_settings`` instead of touching ``django.conf.settings`` directly.
Values are resolved on every access so ``override_settings`` in tests is honoured.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import logging

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "VAT_RATE": "0.13",
    "FLAT_DELIVERY_FEE": "50.00",
    "DELIVERY_BASE_FEE": "30.00",
    "DELIVERY_PER_KM_FEE": "10.00",
    "PARTNER_EARNING_SHARE": "0.70",
    "ORDER_NUMBER_PREFIX": "HT",
    "ORDER_NUMBER_MAX_ATTEMPTS": 5,
    "TRANSIENT_RETRY_ATTEMPTS": 3,
    "EVENT_SINK": "orders.events.sinks.ChannelLayerEventSink",
    "SMS_COUNTRY_CODE": "+977",
}

DECIMAL_KEYS = (
    "VAT_RATE",
    "FLAT_DELIVERY_FEE",
    "DELIVERY_BASE_FEE",
    "DELIVERY_PER_KM_FEE",
    "PARTNER_EARNING_SHARE",
)


class MarketplaceSettings:
    """
    A singleton wrapper over ``settings.MARKETPLACE`` with typed accessors.
    """

    _instance: Optional["MarketplaceSettings"] = None

    def __new__(cls) -> "MarketplaceSettings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def _raw(self, key: str) -> Any:
        overrides = getattr(settings, "MARKETPLACE", {}) or {}
        return overrides.get(key, DEFAULTS[key])

    def _decimal(self, key: str) -> Decimal:
        try:
            return Decimal(str(self._raw(key)))
        except (InvalidOperation, ValueError):
            raise ImproperlyConfigured(f"MARKETPLACE['{key}'] must be a decimal value")

    def validate(self):
        """Fail fast on malformed configuration."""
        for key in DECIMAL_KEYS:
            if self._decimal(key) < 0:
                raise ImproperlyConfigured(f"MARKETPLACE['{key}'] cannot be negative")

        share = self.partner_earning_share
        if share > 1:
            raise ImproperlyConfigured("MARKETPLACE['PARTNER_EARNING_SHARE'] cannot exceed 1")

        if self.order_number_max_attempts < 1 or self.transient_retry_attempts < 1:
            raise ImproperlyConfigured("MARKETPLACE retry attempts must be at least 1")

    @property
    def vat_rate(self) -> Decimal:
        return self._decimal("VAT_RATE")

    @property
    def flat_delivery_fee(self) -> Decimal:
        return self._decimal("FLAT_DELIVERY_FEE")

    @property
    def delivery_base_fee(self) -> Decimal:
        return self._decimal("DELIVERY_BASE_FEE")

    @property
    def delivery_per_km_fee(self) -> Decimal:
        return self._decimal("DELIVERY_PER_KM_FEE")

    @property
    def partner_earning_share(self) -> Decimal:
        return self._decimal("PARTNER_EARNING_SHARE")

    @property
    def order_number_prefix(self) -> str:
        return str(self._raw("ORDER_NUMBER_PREFIX"))

    @property
    def order_number_max_attempts(self) -> int:
        return int(self._raw("ORDER_NUMBER_MAX_ATTEMPTS"))

    @property
    def transient_retry_attempts(self) -> int:
        return int(self._raw("TRANSIENT_RETRY_ATTEMPTS"))

    @property
    def event_sink_path(self) -> str:
        return str(self._raw("EVENT_SINK"))

    @property
    def sms_country_code(self) -> str:
        return str(self._raw("SMS_COUNTRY_CODE"))


marketplace_settings = MarketplaceSettings()
