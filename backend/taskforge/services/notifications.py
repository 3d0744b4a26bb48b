"""Best-effort project event broadcast over Redis pub/sub.

Events go to the ``project-{id}`` channel. Delivery is at-most-once with
no acknowledgment or replay; a failed publish is logged and dropped and
never reaches the request that produced the event.
"""

import json
import logging
from collections.abc import Callable
from typing import Any

import redis.asyncio as aioredis
from fastapi.encoders import jsonable_encoder
from redis.exceptions import RedisError

from taskforge.core.config import settings
from taskforge.core.identifiers import canonical_id
from taskforge.db.base import utcnow

logger = logging.getLogger(__name__)

TASK_CREATED = "taskCreated"
TASK_UPDATED = "taskUpdated"
TASK_DELETED = "taskDeleted"
MEMBERSHIP_CHANGED = "membershipChanged"


def project_channel(project_id: Any) -> str:
    return f"project-{canonical_id(project_id)}"


async def broadcast(project_id: Any, event: str, payload: Any) -> None:
    """Publish one event. Never raises."""
    if not settings.NOTIFICATIONS_ENABLED:
        return

    channel = project_channel(project_id)
    message = json.dumps(
        jsonable_encoder(
            {
                "event": event,
                "projectId": canonical_id(project_id),
                "payload": payload,
                "emittedAt": utcnow(),
            }
        )
    )
    try:
        client = aioredis.from_url(settings.REDIS_URL)
        try:
            await client.publish(channel, message)
        finally:
            await client.aclose()
    except (RedisError, OSError) as exc:
        logger.warning("Dropped %s event for %s: %s", event, channel, exc)


class ProjectNotifier:
    """Request-scoped event emitter.

    ``schedule`` receives ``(broadcast, project_id, event, payload)``; in the
    HTTP layer it is ``BackgroundTasks.add_task``, so publishing happens
    after the response and the transaction commit.
    """

    def __init__(self, schedule: Callable[..., Any]):
        self._schedule = schedule

    def emit(self, project_id: Any, event: str, payload: Any) -> None:
        try:
            self._schedule(broadcast, project_id, event, jsonable_encoder(payload))
        except Exception:
            logger.exception("Could not schedule %s event for project %s", event, project_id)
