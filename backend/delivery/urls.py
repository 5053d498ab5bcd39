from django.urls import path
from . import views

app_name = "delivery"

urlpatterns = [
    path("available-orders/", views.AvailableOrdersView.as_view(), name="available-orders"),
    path("accept/<uuid:order_id>/", views.AcceptDeliveryView.as_view(), name="accept"),
    path("pickup/<uuid:order_id>/", views.PickupView.as_view(), name="pickup"),
    path(
        "out-for-delivery/<uuid:order_id>/",
        views.OutForDeliveryView.as_view(),
        name="out-for-delivery",
    ),
    path("complete/<uuid:order_id>/", views.CompleteDeliveryView.as_view(), name="complete"),
    path("update-location/", views.UpdateLocationView.as_view(), name="update-location"),
    path("active/", views.ActiveDeliveriesView.as_view(), name="active"),
    path("history/", views.DeliveryHistoryView.as_view(), name="history"),
    path("earnings/", views.EarningsView.as_view(), name="earnings"),
]
