"""
Unit Tests for Progress Change Notifications.

Tests for:
- Channel naming
- Publishing (payload shape, failure tolerance)
- Subscribing, dispatching to callbacks and closing
- Fallback to polling when Redis is unreachable
"""

import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.enums.progress import ChangeType, ProgressTable
from app.models.progress import ProgressChange, UserStreakSummary
from app.services.progress.notifications import (
    ProgressChangeNotifier,
    ProgressSubscription,
)


@pytest.fixture
def notifier(mock_redis) -> ProgressChangeNotifier:
    return ProgressChangeNotifier(redis_factory=AsyncMock(return_value=mock_redis), prefix="test")


def change_payload(user_id: str = "user-1") -> str:
    return ProgressChange(
        table=ProgressTable.USER_STATS,
        user_id=user_id,
        record={"current_streak": 2},
        occurred_at=datetime(2025, 3, 15, 9, 0, tzinfo=timezone.utc),
    ).model_dump_json()


# =============================================================================
# Publishing
# =============================================================================


class TestPublish:
    """Tests for ProgressChangeNotifier.publish."""

    def test_channel_naming(self, notifier) -> None:
        assert notifier.channel_for(ProgressTable.USER_PROGRESS, "user-1") == "test:user_progress:user-1"

    @pytest.mark.asyncio
    async def test_publishes_json_change(self, notifier, mock_redis) -> None:
        summary = UserStreakSummary(
            user_id="user-1", current_streak=2, longest_streak=4, last_activity_date=date(2025, 3, 15)
        )

        assert await notifier.publish(ProgressTable.USER_STATS, "user-1", summary) is True

        channel, payload = mock_redis.publish.call_args[0]
        change = ProgressChange.model_validate_json(payload)
        assert channel == "test:user_stats:user-1"
        assert change.change_type == ChangeType.UPDATE
        assert change.record["current_streak"] == 2
        assert change.record["last_activity_date"] == "2025-03-15"

    @pytest.mark.asyncio
    async def test_publish_without_record(self, notifier, mock_redis) -> None:
        await notifier.publish(ProgressTable.USER_PROGRESS, "user-1", change_type=ChangeType.INSERT)

        change = ProgressChange.model_validate_json(mock_redis.publish.call_args[0][1])
        assert change.record == {}
        assert change.change_type == ChangeType.INSERT

    @pytest.mark.asyncio
    async def test_publish_failure_returns_false(self, notifier, mock_redis) -> None:
        mock_redis.publish.side_effect = RedisConnectionError("down")

        assert await notifier.publish(ProgressTable.USER_STATS, "user-1") is False

    @pytest.mark.asyncio
    async def test_unreachable_redis_returns_false(self) -> None:
        notifier = ProgressChangeNotifier(redis_factory=AsyncMock(side_effect=OSError("refused")))

        assert await notifier.publish(ProgressTable.USER_STATS, "user-1") is False


# =============================================================================
# Subscribing
# =============================================================================


class TestSubscribe:
    """Tests for ProgressChangeNotifier.subscribe and ProgressSubscription."""

    @pytest.mark.asyncio
    async def test_subscribe_and_close(self, notifier, mock_redis) -> None:
        subscription = await notifier.subscribe(ProgressTable.USER_STATS, "user-1", MagicMock())
        pubsub = mock_redis.pubsub.return_value

        assert subscription is not None
        assert subscription.is_active
        pubsub.subscribe.assert_awaited_once_with("test:user_stats:user-1")

        await subscription.close()

        assert not subscription.is_active
        pubsub.unsubscribe.assert_awaited_once_with("test:user_stats:user-1")
        pubsub.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_subscribe_failure_returns_none(self, notifier, mock_redis) -> None:
        mock_redis.pubsub.return_value.subscribe.side_effect = RedisConnectionError("down")

        assert await notifier.subscribe(ProgressTable.USER_STATS, "user-1", MagicMock()) is None

    @pytest.mark.asyncio
    async def test_listener_delivers_changes(self, notifier, mock_redis) -> None:
        """A published message reaches the callback exactly once."""
        messages = [{"type": "message", "data": change_payload()}]

        async def get_message(*args, **kwargs):
            await asyncio.sleep(0.01)
            return messages.pop() if messages else None

        mock_redis.pubsub.return_value.get_message = AsyncMock(side_effect=get_message)
        received = asyncio.Event()
        changes: list[ProgressChange] = []

        async def on_change(change: ProgressChange) -> None:
            changes.append(change)
            received.set()

        subscription = await notifier.subscribe(ProgressTable.USER_STATS, "user-1", on_change)
        await asyncio.wait_for(received.wait(), timeout=2)
        await subscription.close()

        assert len(changes) == 1
        assert changes[0].record == {"current_streak": 2}

    @pytest.mark.asyncio
    async def test_listener_stops_on_connection_loss(self, mock_redis) -> None:
        pubsub = mock_redis.pubsub.return_value
        pubsub.get_message = AsyncMock(side_effect=RedisConnectionError("lost"))
        subscription = ProgressSubscription(pubsub, "test:user_stats:u", MagicMock())

        subscription.start()
        await asyncio.sleep(0.05)

        assert not subscription.is_active
        await subscription.close()


class TestDispatch:
    """Tests for ProgressSubscription.dispatch."""

    @pytest.mark.asyncio
    async def test_sync_callback(self) -> None:
        callback = MagicMock()
        subscription = ProgressSubscription(MagicMock(), "c", callback)

        await subscription.dispatch(change_payload())

        callback.assert_called_once()
        assert callback.call_args[0][0].user_id == "user-1"

    @pytest.mark.asyncio
    async def test_async_callback(self) -> None:
        callback = AsyncMock()
        subscription = ProgressSubscription(MagicMock(), "c", callback)

        await subscription.dispatch(change_payload().encode())

        callback.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data",
        [
            pytest.param("not json", id="garbage"),
            pytest.param('{"table": "user_stats"}', id="missing_fields"),
            pytest.param(None, id="none"),
        ],
    )
    async def test_malformed_messages_ignored(self, data) -> None:
        callback = MagicMock()
        subscription = ProgressSubscription(MagicMock(), "c", callback)

        await subscription.dispatch(data)

        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_callback_errors_are_contained(self) -> None:
        callback = MagicMock(side_effect=RuntimeError("boom"))
        subscription = ProgressSubscription(MagicMock(), "c", callback)

        await subscription.dispatch(change_payload())

        callback.assert_called_once()
