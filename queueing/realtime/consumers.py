import json

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from queueing.exceptions import NotFound
from queueing.services.counters import get_display_data
from .broadcast import counter_group


class CounterDisplayConsumer(AsyncWebsocketConsumer):
    """Public display feed for one counter: current, next and waiting token numbers."""

    async def connect(self):
        self.counter_id = int(self.scope['url_route']['kwargs']['counter_id'])
        try:
            data = await database_sync_to_async(get_display_data)(self.counter_id)
        except NotFound:
            await self.close(code=4404)
            return
        self.group = counter_group(self.counter_id)
        await self.channel_layer.group_add(self.group, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "queue.update", "data": data}))

    async def disconnect(self, close_code):
        group = getattr(self, 'group', None)
        if group:
            await self.channel_layer.group_discard(group, self.channel_name)

    async def queue_update(self, event):
        # event: {"type": "queue.update", "data": {...display data...}}
        await self.send(json.dumps(event))
