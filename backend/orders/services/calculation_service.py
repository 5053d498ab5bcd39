import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple
import logging

from core_backend.config import marketplace_settings
from core_backend.exceptions import ValidationFailed

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
EARTH_RADIUS_KM = 6371.0


def quantize(amount) -> Decimal:
    """Round a money amount to two decimal places."""
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingBreakdown:
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal

    def as_dict(self):
        return {
            "subtotal": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "tax": self.tax,
            "discount": self.discount,
            "total": self.total,
        }


class OrderCalculationService:
    """Service for pricing orders: subtotal, delivery fee, VAT and totals."""

    @staticmethod
    def haversine_km(lat1, lon1, lat2, lon2) -> float:
        lat1, lon1, lat2, lon2 = map(math.radians, map(float, (lat1, lon1, lat2, lon2)))
        dlat = lat2 - lat1
        dlon = lon2 - lon1
        a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))

    @staticmethod
    def extract_coordinates(address) -> Optional[Tuple[float, float]]:
        """
        Return (latitude, longitude) from an address snapshot.

        Accepts flat `latitude`/`longitude` keys or a GeoJSON-style
        `location.coordinates` pair ([longitude, latitude]).
        """
        if not address:
            return None

        lat, lng = address.get("latitude"), address.get("longitude")
        if lat is None or lng is None:
            location = address.get("location") or {}
            coordinates = location.get("coordinates") if isinstance(location, dict) else None
            if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
                return None
            lng, lat = coordinates
            if lat is None or lng is None:
                return None

        try:
            lat, lng = float(lat), float(lng)
        except (TypeError, ValueError):
            raise ValidationFailed("Address coordinates must be numbers.")

        if not (math.isfinite(lat) and math.isfinite(lng)) or abs(lat) > 90 or abs(lng) > 180:
            raise ValidationFailed("Address coordinates are out of range.")
        return lat, lng

    @staticmethod
    def resolve_distance_km(pickup_address, delivery_address, distance_km=None) -> Optional[Decimal]:
        if distance_km is not None:
            return quantize(distance_km)

        origin = OrderCalculationService.extract_coordinates(pickup_address)
        destination = OrderCalculationService.extract_coordinates(delivery_address)
        if origin is None or destination is None:
            return None

        return quantize(OrderCalculationService.haversine_km(*origin, *destination))

    @staticmethod
    def delivery_fee(distance_km: Optional[Decimal]) -> Decimal:
        """Base fee + per-km charge when the distance is known, else the flat fee."""
        if distance_km is None:
            return quantize(marketplace_settings.flat_delivery_fee)
        return quantize(
            marketplace_settings.delivery_base_fee
            + marketplace_settings.delivery_per_km_fee * Decimal(str(distance_km))
        )

    @staticmethod
    def calculate(
        lines: Iterable[Tuple[Decimal, int]],
        distance_km: Optional[Decimal] = None,
        discount: Decimal = Decimal("0.00"),
    ) -> PricingBreakdown:
        """
        Price an order from (unit_price, quantity) pairs.
        """
        subtotal = quantize(sum((Decimal(str(price)) * qty for price, qty in lines), Decimal("0")))
        delivery_fee = OrderCalculationService.delivery_fee(distance_km)
        tax = quantize(subtotal * marketplace_settings.vat_rate)
        discount = quantize(discount)
        total = quantize(subtotal + delivery_fee + tax - discount)

        return PricingBreakdown(
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            tax=tax,
            discount=discount,
            total=total,
        )

    @staticmethod
    def partner_earning(delivery_fee) -> Decimal:
        """The delivery partner's share of a delivery fee."""
        return quantize(Decimal(str(delivery_fee)) * marketplace_settings.partner_earning_share)
