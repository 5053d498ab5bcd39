from rest_framework import generics, permissions
import logging

from .models import User
from .serializers import UserSerializer

logger = logging.getLogger(__name__)


class CurrentUserView(generics.RetrieveUpdateAPIView):
    """
    Retrieve or update the authenticated user's profile, including the
    kitchen or delivery partner profile that belongs to their role.
    """

    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]
    http_method_names = ["get", "put", "patch", "head", "options"]

    def get_object(self):
        return User.objects.select_related(
            "kitchen_profile", "delivery_profile"
        ).get(pk=self.request.user.pk)

    def perform_update(self, serializer):
        user = serializer.save()
        logger.info(f"User {user.pk} updated their profile")
