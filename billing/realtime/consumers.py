import json
from channels.generic.websocket import AsyncWebsocketConsumer

from billing.services.notifier import QUEUE_GROUP


class BillingQueueConsumer(AsyncWebsocketConsumer):
    """Pushes queue refresh events to cashier screens."""
    GROUP = QUEUE_GROUP

    async def connect(self):
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def billing_refresh(self, event):
        # event: {"type": "billing.refresh", "reason": ..., "visitId": ..., "paymentStatus": ..., "ts": ...}
        await self.send(json.dumps(event))
