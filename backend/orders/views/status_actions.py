from rest_framework import permissions
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
import logging

from orders.permissions import CanUpdateOrderStatus
from orders.serializers import (
    CancelOrderSerializer,
    OrderSerializer,
    RateOrderSerializer,
    UpdateOrderStatusSerializer,
)
from orders.services import OrderService

logger = logging.getLogger(__name__)


class StatusActionsMixin:
    """
    Mixin for order status transition actions

    This mixin provides action methods for OrderViewSet. Authorization beyond
    the role gate lives in OrderService, which raises domain errors that the
    exception handler renders.
    """

    def _order_response(self, order) -> Response:
        serializer = OrderSerializer(
            order, context={"request": self.request, "view_mode": "detail"}
        )
        return Response(serializer.data)

    @action(
        detail=True,
        methods=["put"],
        url_path="status",
        permission_classes=[CanUpdateOrderStatus],
    )
    def update_status(self, request: Request, pk=None) -> Response:
        """Moves the order to the next status. Assignment and delivery use the delivery endpoints."""
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.update_status_for_actor(
            pk,
            serializer.validated_data["status"],
            request.user,
            note=serializer.validated_data["note"],
        )
        return self._order_response(order)

    @action(
        detail=True,
        methods=["put"],
        url_path="cancel",
        permission_classes=[permissions.IsAuthenticated],
    )
    def cancel(self, request: Request, pk=None) -> Response:
        """Cancels the order."""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.cancel_order(pk, request.user, serializer.validated_data["reason"])
        return self._order_response(order)

    @action(
        detail=True,
        methods=["post"],
        url_path="rate",
        permission_classes=[permissions.IsAuthenticated],
    )
    def rate(self, request: Request, pk=None) -> Response:
        serializer = RateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.rate_order(pk, request.user, **serializer.validated_data)
        return self._order_response(order)
