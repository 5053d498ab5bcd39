"""
Orders services package.

- OrderService: order lifecycle (placement, status transitions, cancellation, rating)
- OrderCalculationService: subtotal, delivery fee, VAT and partner earning calculation
"""

from .order_service import OrderService
from .calculation_service import OrderCalculationService, PricingBreakdown

__all__ = [
    'OrderService',
    'OrderCalculationService',
    'PricingBreakdown',
]
