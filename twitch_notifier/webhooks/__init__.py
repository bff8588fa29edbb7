"""EventSub webhook ingestion: signatures, message models, dedup and dispatch."""

from .dispatcher import EventSubDispatcher
from .idempotency import (
    MemoryMessageDeduplicator,
    MessageDeduplicator,
    RedisMessageDeduplicator,
    create_message_deduplicator,
)
from .signature import compute_signature, verify

__all__ = [
    "EventSubDispatcher",
    "MemoryMessageDeduplicator",
    "MessageDeduplicator",
    "RedisMessageDeduplicator",
    "compute_signature",
    "create_message_deduplicator",
    "verify",
]
