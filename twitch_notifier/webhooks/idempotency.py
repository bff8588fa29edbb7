"""
EventSub message deduplication.

Twitch redelivers a notification when it does not see a timely 2xx, using
the same message id. Seen ids are remembered for a TTL; a repeat is
acknowledged without running fan-out a second time.

- Memory backend: TTL dict, single process only
- Redis backend: ``SET key 1 NX EX ttl`` for an atomic check-and-mark,
  fail-open when Redis is unavailable
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timedelta

from twitch_notifier.core.logging.logger import get_logger
from twitch_notifier.persistence.redis.redis_client import RedisClient

_KEY_PREFIX = "twitch_notifier:seen"


class MessageDeduplicator(ABC):
    """Check-and-mark for EventSub message ids."""

    def __init__(self, ttl_seconds: int = 600):
        self.ttl_seconds = ttl_seconds
        self.logger = get_logger(__name__)

    @abstractmethod
    async def is_duplicate(self, message_id: str) -> bool:
        """
        Record ``message_id`` as seen and report whether it was seen before.

        Args:
            message_id: EventSub message id header value

        Returns:
            True if this id has already been processed within the TTL
        """


class MemoryMessageDeduplicator(MessageDeduplicator):
    def __init__(self, ttl_seconds: int = 600):
        super().__init__(ttl_seconds)
        self._seen: dict[str, datetime] = {}
        self._lock = asyncio.Lock()

    async def is_duplicate(self, message_id: str) -> bool:
        if not message_id:
            return False  # No id = can't dedup, allow through

        now = datetime.now()
        async with self._lock:
            self._purge_expired(now)
            if message_id in self._seen:
                self.logger.info(f"Duplicate EventSub message ignored: {message_id}")
                return True
            self._seen[message_id] = now + timedelta(seconds=self.ttl_seconds)
            return False

    def _purge_expired(self, now: datetime) -> None:
        expired = [key for key, expires_at in self._seen.items() if expires_at <= now]
        for key in expired:
            del self._seen[key]


class RedisMessageDeduplicator(MessageDeduplicator):
    async def is_duplicate(self, message_id: str) -> bool:
        if not message_id:
            return False

        key = f"{_KEY_PREFIX}:{message_id}"
        try:
            async with RedisClient.connection("dedup") as redis:
                # SET NX returns None when the key already existed
                was_set = await redis.set(key, "1", nx=True, ex=self.ttl_seconds)
        except Exception as e:
            # Redis down: fail open
            self.logger.warning(
                f"Redis unavailable for message dedup, allowing {message_id}: {e}"
            )
            return False

        if not was_set:
            self.logger.info(f"Duplicate EventSub message ignored: {message_id}")
            return True
        return False


def create_message_deduplicator(backend: str, ttl_seconds: int) -> MessageDeduplicator:
    """Deduplicator sharing the subscription store's backend."""
    if backend == "redis":
        return RedisMessageDeduplicator(ttl_seconds)
    return MemoryMessageDeduplicator(ttl_seconds)
