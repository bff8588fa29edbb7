"""Store selection by backend name."""

from twitch_notifier.core.types import StoreType, validate_store_type
from twitch_notifier.domain.interfaces.subscription_store import ISubscriptionStore


def create_subscription_store(backend: str) -> ISubscriptionStore:
    """
    Create the subscription store for ``backend``.

    The redis backend expects RedisManager to have set up the pools.

    Raises:
        ValueError: Unknown backend name
    """
    store_type = validate_store_type(backend)
    if store_type == StoreType.REDIS:
        from .redis.redis_store import RedisSubscriptionStore

        return RedisSubscriptionStore()

    from .memory.memory_store import MemorySubscriptionStore

    return MemorySubscriptionStore()
