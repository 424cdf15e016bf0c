"""
Redis Pub/Sub publisher for activity timeline updates.

Viewers subscribe to ``ACTIVITY_EVENTS_CHANNEL`` and receive one message per
newly stored Stop/Drive event. Publishing is best effort: failures are logged
and reported through the return value, never raised.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from beanie import PydanticObjectId

from config import ACTIVITY_EVENTS_CHANNEL
from core.date_utils import get_current_utc_time
from core.redis import get_shared_redis
from db.serializers import serialize_datetime, serialize_document

if TYPE_CHECKING:
    from db.models import ActivityEvent

logger = logging.getLogger(__name__)


def json_serializer(obj: Any) -> Any:
    """JSON serializer for objects not serializable by default json code."""
    if isinstance(obj, datetime):
        return serialize_datetime(obj)
    if isinstance(obj, PydanticObjectId):
        return str(obj)
    msg = f"Type {type(obj)} not serializable"
    raise TypeError(msg)


def activity_topic(engineer_id: int) -> str:
    return f"engineer:{engineer_id}"


async def publish(topic: str, payload: dict[str, Any]) -> bool:
    """Publish ``payload`` under ``topic``. Returns False on any failure."""
    try:
        client = await get_shared_redis()
        message = json.dumps(
            {
                "topic": topic,
                "payload": payload,
                "timestamp": get_current_utc_time(),
            },
            default=json_serializer,
        )
        subscribers = await client.publish(ACTIVITY_EVENTS_CHANNEL, message)
    except Exception:
        logger.exception("Failed to publish activity update for %s", topic)
        return False

    logger.debug("Published %s to %d subscriber(s)", topic, subscribers)
    return True


async def publish_activity_event(event: ActivityEvent) -> bool:
    payload = {
        "event_type": "activity_event",
        "engineerId": event.engineerId,
        "event": serialize_document(event),
    }
    return await publish(activity_topic(event.engineerId), payload)
