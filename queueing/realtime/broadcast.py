"""Push counter display updates to websocket subscribers."""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from queueing.services.counters import get_display_data

logger = logging.getLogger(__name__)


def counter_group(counter_id: int) -> str:
    return f'counter.{counter_id}'


def broadcast_counter_update(counter_id: int) -> bool:
    """Send the counter's display data to ``counter.<id>``; returns False if nothing was sent."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False
    try:
        data = get_display_data(counter_id)
        async_to_sync(channel_layer.group_send)(
            counter_group(counter_id), {'type': 'queue.update', 'data': data}
        )
    except Exception:
        logger.exception("display broadcast for counter %s failed", counter_id)
        return False
    return True
