"""
Progress Change Notifications

Publishes a ProgressChange message on Redis pub/sub whenever a progress
table is mutated, and lets readers subscribe to changes for one
(table, user) pair so they can recompute their views.

Channels are named "{PROGRESS_CHANNEL_PREFIX}:{table}:{user_id}".

Notifications are best effort: publish failures are logged and never fail
the mutation, and a reader that cannot subscribe simply polls on demand.

Usage:
    notifier = ProgressChangeNotifier()
    await notifier.publish(ProgressTable.USER_STATS, user_id, summary)

    async def on_change(change: ProgressChange) -> None:
        ...

    subscription = await notifier.subscribe(ProgressTable.USER_STATS, user_id, on_change)
    ...
    await subscription.close()
"""

import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Union

import redis.asyncio as redis
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from redis.exceptions import RedisError

from app.config import settings
from app.db.redis import LISTEN_TIMEOUT, get_redis
from app.enums.progress import ChangeType, ProgressTable
from app.models.progress import ProgressChange

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[ProgressChange], Union[None, Awaitable[None]]]
RedisFactory = Callable[[], Awaitable[redis.Redis]]


class ProgressSubscription:
    """
    Live subscription to one progress channel.

    A background task reads messages and invokes the callback once per
    change. Callback errors are logged and the listener keeps running.
    """

    def __init__(
        self,
        pubsub: Any,
        channel: str,
        on_change: ChangeCallback,
        listen_timeout: float = LISTEN_TIMEOUT,
    ):
        self.channel = channel
        self._pubsub = pubsub
        self._on_change = on_change
        self._listen_timeout = listen_timeout
        self._closed = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the listener task."""
        if self._task is None:
            self._task = asyncio.create_task(self._listen())

    async def _listen(self) -> None:
        while not self._closed:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=self._listen_timeout
                )
            except (RedisError, OSError) as e:
                logger.warning(f"Subscription to {self.channel} lost: {e}")
                return

            if message is None:
                continue

            await self.dispatch(message.get("data"))

    async def dispatch(self, data: Any) -> None:
        """Decode one raw message and invoke the callback."""
        try:
            change = ProgressChange.model_validate_json(data)
        except (PydanticValidationError, TypeError) as e:
            logger.warning(f"Ignoring malformed message on {self.channel}: {e}")
            return

        try:
            result = self._on_change(change)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"Change callback for {self.channel} failed")

    async def close(self) -> None:
        """Stop listening and release the pub/sub connection."""
        self._closed = True
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        try:
            await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
        except (RedisError, OSError) as e:
            logger.warning(f"Error closing subscription to {self.channel}: {e}")


class ProgressChangeNotifier:
    """
    Publisher/subscriber for progress table changes.

    Args:
        redis_factory: Coroutine returning a Redis client (default: shared pool).
        prefix: Channel prefix (default: settings.PROGRESS_CHANNEL_PREFIX).
    """

    def __init__(
        self,
        redis_factory: RedisFactory = get_redis,
        prefix: Optional[str] = None,
    ):
        self._redis_factory = redis_factory
        self.prefix = prefix or settings.PROGRESS_CHANNEL_PREFIX

    def channel_for(self, table: ProgressTable, user_id: str) -> str:
        return f"{self.prefix}:{table.value}:{user_id}"

    async def publish(
        self,
        table: ProgressTable,
        user_id: str,
        record: Union[BaseModel, dict[str, Any], None] = None,
        change_type: ChangeType = ChangeType.UPDATE,
    ) -> bool:
        """
        Publish a change notification.

        Returns:
            True if the message was handed to Redis, False if publishing
            failed (the failure is logged).
        """
        if isinstance(record, BaseModel):
            record = record.model_dump(mode="json")

        change = ProgressChange(
            table=table,
            user_id=user_id,
            change_type=change_type,
            record=record or {},
            occurred_at=datetime.now(timezone.utc),
        )
        channel = self.channel_for(table, user_id)

        try:
            client = await self._redis_factory()
            receivers = await client.publish(channel, change.model_dump_json())
        except (RedisError, OSError) as e:
            logger.warning(f"Failed to publish {table.value} change for {user_id}: {e}")
            return False

        logger.debug(f"Published {table.value} change on {channel} to {receivers} subscriber(s)")
        return True

    async def subscribe(
        self,
        table: ProgressTable,
        user_id: str,
        on_change: ChangeCallback,
    ) -> Optional[ProgressSubscription]:
        """
        Subscribe to changes of one table for one user.

        Returns:
            A started ProgressSubscription, or None if Redis is unreachable
            (callers fall back to polling).
        """
        channel = self.channel_for(table, user_id)
        try:
            client = await self._redis_factory()
            pubsub = client.pubsub()
            await pubsub.subscribe(channel)
        except (RedisError, OSError) as e:
            logger.warning(f"Cannot subscribe to {channel}, falling back to polling: {e}")
            return None

        subscription = ProgressSubscription(pubsub, channel, on_change)
        subscription.start()
        logger.info(f"Subscribed to {channel}")
        return subscription
