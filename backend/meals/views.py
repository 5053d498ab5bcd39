from rest_framework import permissions, status
from rest_framework.decorators import action
from rest_framework.response import Response
import logging

from core_backend.base import BaseViewSet
from users.permissions import IsHomeKitchen, IsKitchenOwnerOrAdmin
from .filters import MealFilter
from .models import Meal
from .serializers import (
    MealSerializer,
    MealWriteSerializer,
    MealReviewSerializer,
    ReviewCreateSerializer,
)
from .services import MealService

logger = logging.getLogger(__name__)


class MealViewSet(BaseViewSet):
    """
    Public meal catalogue with kitchen-owned writes.

    - list/retrieve/kitchen are public
    - create requires a verified home kitchen
    - update/destroy require the owning kitchen or an admin; destroy archives
    - review requires any authenticated user
    """

    queryset = Meal.objects.all()
    lookup_value_regex = r"\d+"
    filterset_class = MealFilter
    search_fields = ["name", "description"]
    ordering_fields = ["price", "created_at", "rating_average", "available_date"]
    ordering = ["-created_at"]

    def get_permissions(self):
        if self.action in ["list", "retrieve", "kitchen"]:
            permission_classes = [permissions.AllowAny]
        elif self.action == "create":
            permission_classes = [permissions.IsAuthenticated, IsHomeKitchen]
        elif self.action == "review":
            permission_classes = [permissions.IsAuthenticated]
        else:
            permission_classes = [permissions.IsAuthenticated, IsHomeKitchen, IsKitchenOwnerOrAdmin]
        return [permission() for permission in permission_classes]

    def get_serializer_class(self):
        if self.action in ["create", "update", "partial_update"]:
            return MealWriteSerializer
        return MealSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["view_mode"] = "list" if self.action in ["list", "kitchen"] else "detail"
        return context

    def perform_create(self, serializer):
        MealService.ensure_can_publish(self.request.user)
        serializer.save()

    def perform_destroy(self, instance):
        MealService.archive_meal(instance, self.request.user)

    @action(detail=False, methods=["get"], url_path=r"kitchen/(?P<kitchen_id>\d+)")
    def kitchen(self, request, kitchen_id=None):
        """All active meals published by one kitchen, newest first."""
        queryset = self.filter_queryset(self.get_queryset().filter(kitchen_id=kitchen_id))
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=["post"])
    def review(self, request, pk=None):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        review = MealService.add_review(pk, request.user, **serializer.validated_data)
        return Response(MealReviewSerializer(review).data, status=status.HTTP_201_CREATED)
