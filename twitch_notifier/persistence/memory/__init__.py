"""In-memory persistence backend."""

from .memory_store import MemorySubscriptionStore

__all__ = ["MemorySubscriptionStore"]
