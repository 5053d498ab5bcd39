from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
import logging

from core_backend.pagination import StandardPagination
from users.permissions import IsDeliveryPartner
from .serializers import (
    CompleteDeliverySerializer,
    DeliveryHistoryQuerySerializer,
    DeliveryOrderSerializer,
    EarningsSerializer,
    LocationUpdateSerializer,
)
from .services import AssignmentService, EarningsService

logger = logging.getLogger(__name__)


class DeliveryPartnerView(APIView):
    """Base view for the delivery partner endpoints."""

    permission_classes = [permissions.IsAuthenticated, IsDeliveryPartner]

    def serialize_orders(self, orders):
        return DeliveryOrderSerializer(
            orders, many=True, context={"request": self.request, "view_mode": "delivery"}
        ).data

    def order_response(self, order, **extra):
        data = DeliveryOrderSerializer(
            order, context={"request": self.request, "view_mode": "delivery"}
        ).data
        return Response({"order": data, **extra})


class AvailableOrdersView(DeliveryPartnerView):
    """Orders ready for pickup that no partner has taken yet."""

    def get(self, request):
        orders = AssignmentService.list_assignable()
        data = self.serialize_orders(orders)
        return Response({"orders": data, "count": len(data)})


class AcceptDeliveryView(DeliveryPartnerView):
    def post(self, request, order_id):
        order = AssignmentService.accept_assignment(order_id, request.user)
        return self.order_response(order, message="Delivery accepted successfully")


class PickupView(DeliveryPartnerView):
    def post(self, request, order_id):
        order = AssignmentService.mark_picked_up(order_id, request.user)
        return self.order_response(order)


class OutForDeliveryView(DeliveryPartnerView):
    def post(self, request, order_id):
        order = AssignmentService.mark_out_for_delivery(order_id, request.user)
        return self.order_response(order)


class CompleteDeliveryView(DeliveryPartnerView):
    def post(self, request, order_id):
        serializer = CompleteDeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        earnings = AssignmentService.complete_delivery(
            order_id, request.user, proof=serializer.to_proof()
        )
        return Response(
            {"message": "Delivery completed successfully", "earnings": earnings},
            status=status.HTTP_200_OK,
        )


class UpdateLocationView(DeliveryPartnerView):
    def put(self, request):
        serializer = LocationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        notified = AssignmentService.update_location(request.user, **serializer.validated_data)
        return Response({"message": "Location updated successfully", "orders_notified": notified})


class ActiveDeliveriesView(DeliveryPartnerView):
    def get(self, request):
        data = self.serialize_orders(AssignmentService.active_deliveries(request.user))
        return Response({"orders": data, "count": len(data)})


class DeliveryHistoryView(DeliveryPartnerView):
    """
    Delivered orders, newest first.

    Query params:
    - start_date / end_date: optional bounds on the delivery time
    - page / limit: pagination
    """

    def get(self, request):
        query = DeliveryHistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        orders = AssignmentService.delivery_history(
            request.user,
            start=query.validated_data.get("start_date"),
            end=query.validated_data.get("end_date"),
        )

        paginator = StandardPagination()
        page = paginator.paginate_queryset(orders, request, view=self)
        return paginator.get_paginated_response(self.serialize_orders(page))


class EarningsView(DeliveryPartnerView):
    def get(self, request):
        period = request.query_params.get("period", "today")
        earnings = EarningsService.query_earnings(request.user, period)
        return Response(EarningsSerializer(earnings).data)
