"""Per-user change events over Redis pub/sub.

A change event carries no data. It tells subscribers to re-fetch the
unread-notification count for that user. Publishing is best effort: it
guarantees neither delivery nor ordering.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from dgisback.errors import PublishError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from bson import ObjectId
    from redis.asyncio import Redis

LOGGER = logging.getLogger(__name__)

CHANNEL_PREFIX = "unread_notifications_changed:"
CHANGE_PAYLOAD = "updated"


def channel_for(user_id: ObjectId | str) -> str:
    """Return the pub/sub channel name for a user.

    :param user_id: The user's identifier
    :return: ``unread_notifications_changed:<hex id>``
    """
    return f"{CHANNEL_PREFIX}{user_id}"


class ChangePublisher:
    """Publishes and subscribes to per-user change events."""

    def __init__(self, redis_client: Redis) -> None:
        """Create a publisher over a shared Redis client.

        :param redis_client: asyncio Redis client, safe for concurrent use
        """
        self.redis_client = redis_client

    async def publish(self, user_id: ObjectId | str) -> None:
        """Publish one change event.

        :raises PublishError: If Redis rejected or failed the publish
        """
        channel = channel_for(user_id)
        try:
            await self.redis_client.publish(channel, CHANGE_PAYLOAD)
        except RedisError as e:
            msg = f"failed to publish on {channel}"
            raise PublishError(msg) from e

    async def publish_change(self, user_id: ObjectId | str) -> bool:
        """Publish one change event, logging instead of raising on failure.

        :param user_id: User whose notifications changed
        :return: True if the event was handed to Redis
        """
        try:
            await self.publish(user_id)
        except PublishError:
            LOGGER.warning(
                "Failed to publish notification change for user %s",
                user_id,
                exc_info=True,
            )
            return False
        LOGGER.debug("Published notification change for user %s", user_id)
        return True

    async def subscribe(self, user_id: ObjectId | str) -> AsyncIterator[str]:
        """Yield the payload of every change event for a user.

        Runs until the consumer stops iterating or the task is cancelled.

        :param user_id: User whose channel to follow
        """
        channel = channel_for(user_id)
        pubsub = self.redis_client.pubsub()
        await pubsub.subscribe(channel)
        LOGGER.debug("Subscribed to %s", channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                data = message.get("data")
                yield data.decode() if isinstance(data, bytes) else str(data)
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
            LOGGER.debug("Unsubscribed from %s", channel)
