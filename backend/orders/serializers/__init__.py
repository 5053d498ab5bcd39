from .order_serializers import (
    OrderItemSerializer,
    OrderSerializer,
    OrderStatusHistorySerializer,
    OrderTrackingUpdateSerializer,
)
from .write_serializers import (
    CancelOrderSerializer,
    OrderCreateSerializer,
    OrderItemCreateSerializer,
    RateOrderSerializer,
    UpdateOrderStatusSerializer,
)

__all__ = [
    "OrderItemSerializer",
    "OrderSerializer",
    "OrderStatusHistorySerializer",
    "OrderTrackingUpdateSerializer",
    "CancelOrderSerializer",
    "OrderCreateSerializer",
    "OrderItemCreateSerializer",
    "RateOrderSerializer",
    "UpdateOrderStatusSerializer",
]
