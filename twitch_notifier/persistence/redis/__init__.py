"""Redis persistence backend."""

from .redis_client import RedisClient
from .redis_manager import RedisManager
from .redis_store import RedisSubscriptionStore

__all__ = ["RedisClient", "RedisManager", "RedisSubscriptionStore"]
