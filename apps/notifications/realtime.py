"""Order updates over Redis pub/sub, consumed by the websocket gateway."""
import json
import logging

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django_redis import get_redis_connection

log = logging.getLogger(__name__)


def restaurant_channel(restaurant_id) -> str:
    return f"{settings.ORDER_UPDATES_CHANNEL_PREFIX}{restaurant_id}"


def publish(channel: str, payload: dict) -> int:
    """Publish ``payload`` as JSON; returns the number of subscribers reached."""
    conn = get_redis_connection("default")
    receivers = conn.publish(channel, json.dumps(payload, cls=DjangoJSONEncoder))
    log.debug("published to %s (%s receivers)", channel, receivers)
    return receivers
