"""
URL configuration for the HomeTaste marketplace backend.
"""

from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def health_check(request):
    """Simple health check endpoint that doesn't require authentication"""
    return JsonResponse({"status": "ok", "message": "Backend is running"})


urlpatterns = [
    path("api/health/", health_check, name="health_check"),
    path("admin/", admin.site.urls),
    path("api/users/", include("users.urls")),
    path("api/meals/", include("meals.urls")),
    # The orders app registers its own "orders" prefix.
    path("api/", include("orders.urls")),
    path("api/delivery/", include("delivery.urls")),
]
