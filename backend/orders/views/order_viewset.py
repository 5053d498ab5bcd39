from rest_framework import mixins, permissions, status
from rest_framework.decorators import action
from rest_framework.response import Response
import logging

from core_backend.base import ReadOnlyBaseViewSet
from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers import OrderCreateSerializer, OrderSerializer
from orders.services import OrderService
from users.permissions import IsAdminRole, IsCustomer, IsHomeKitchen

from .status_actions import StatusActionsMixin

logger = logging.getLogger(__name__)

UUID_REGEX = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"


class OrderViewSet(StatusActionsMixin, mixins.CreateModelMixin, ReadOnlyBaseViewSet):
    """
    ViewSet for orders.

    - list: the caller's own orders as a customer (admins see all)
    - retrieve: visible to the customer, the kitchen, the bound partner or an admin
    - create: customers place orders
    - kitchen: the calling kitchen's incoming orders
    - status/cancel/rate: see StatusActionsMixin
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    lookup_value_regex = UUID_REGEX
    filterset_class = OrderFilter
    search_fields = ["order_number"]
    ordering_fields = ["created_at", "scheduled_date", "total"]
    ordering = ["-created_at"]

    def get_permissions(self):
        if self.action == "create":
            return [(IsCustomer | IsAdminRole)()]
        if self.action == "kitchen":
            return [permissions.IsAuthenticated(), IsHomeKitchen()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action == "create":
            return OrderCreateSerializer
        return OrderSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["view_mode"] = "list" if self.action in ["list", "kitchen"] else "detail"
        return context

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user

        if self.action == "list" and not user.is_admin_role:
            queryset = OrderService.customer_orders(user, queryset=queryset)
        elif self.action == "kitchen":
            queryset = OrderService.kitchen_orders(user, queryset=queryset)

        return queryset

    def get_object(self):
        # Resolve through the service so non-parties get 403 rather than 404
        order = OrderService.get_order_for_user(self.kwargs[self.lookup_field], self.request.user)
        self.check_object_permissions(self.request, order)
        return order

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = serializer.save()

        response_serializer = OrderSerializer(
            order, context={"request": request, "view_mode": "detail"}
        )
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], url_path="kitchen")
    def kitchen(self, request):
        """Orders placed with the calling kitchen, filterable by status and date."""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)
