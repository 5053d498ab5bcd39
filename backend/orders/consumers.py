import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from core_backend.exceptions import NotAuthorized
from .events import kitchen_group_name, order_group_name
from .exceptions import OrderNotFound
from .services import OrderService

logger = logging.getLogger(__name__)

# Application-level close codes (4000-4999 are free for application use)
CLOSE_UNAUTHENTICATED = 4001
CLOSE_FORBIDDEN = 4003
CLOSE_NOT_FOUND = 4004


class OrderEventConsumer(AsyncWebsocketConsumer):
    """
    Base consumer that relays `order.event` group messages to the socket as
    `{"type": <event>, "data": {...}}`. Subclasses resolve the group to join.
    """

    group_name = None

    async def resolve_group(self):
        raise NotImplementedError

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            logger.info(f"{self.__class__.__name__}: rejecting unauthenticated connection")
            await self.close(code=CLOSE_UNAUTHENTICATED)
            return

        try:
            self.group_name = await self.resolve_group()
        except OrderNotFound:
            await self.close(code=CLOSE_NOT_FOUND)
            return
        except NotAuthorized:
            logger.warning(
                f"{self.__class__.__name__}: user {user.pk} is not allowed on {self.scope['path']}"
            )
            await self.close(code=CLOSE_FORBIDDEN)
            return

        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.info(f"{self.__class__.__name__}: user {user.pk} joined {self.group_name}")

    async def disconnect(self, close_code):
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        # Clients only listen; a ping keeps intermediaries from timing out idle sockets
        try:
            data = json.loads(text_data or "{}")
        except json.JSONDecodeError:
            return
        if data.get("type") == "ping":
            await self.send(text_data=json.dumps({"type": "pong"}))

    async def order_event(self, event):
        await self.send(text_data=json.dumps({"type": event["event"], "data": event["data"]}))


class OrderTrackingConsumer(OrderEventConsumer):
    """Live updates for one order: status changes, assignment and partner location."""

    async def resolve_group(self):
        order_id = self.scope["url_route"]["kwargs"]["order_id"]
        await database_sync_to_async(OrderService.get_order_for_user)(order_id, self.scope["user"])
        return order_group_name(order_id)


class KitchenOrdersConsumer(OrderEventConsumer):
    """New-order feed for a kitchen dashboard."""

    async def resolve_group(self):
        kitchen_id = self.scope["url_route"]["kwargs"]["kitchen_id"]
        user = self.scope["user"]
        if user.pk != kitchen_id and not user.is_admin_role:
            raise NotAuthorized("Not authorized to follow this kitchen.")
        return kitchen_group_name(kitchen_id)
