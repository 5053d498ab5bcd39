from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import MealViewSet

app_name = "meals"

router = SimpleRouter()
router.register(r"", MealViewSet, basename="meal")

urlpatterns = [
    path("", include(router.urls)),
]
