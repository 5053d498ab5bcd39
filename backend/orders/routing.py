from django.urls import path

from . import consumers

websocket_urlpatterns = [
    path("ws/orders/<uuid:order_id>/", consumers.OrderTrackingConsumer.as_asgi()),
    path("ws/kitchens/<int:kitchen_id>/", consumers.KitchenOrdersConsumer.as_asgi()),
]
