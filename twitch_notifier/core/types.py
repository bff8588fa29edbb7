"""
Core type definitions for the Twitch notifier.

Store backend selection and the error codes shared by the exception hierarchy.
"""

from enum import Enum
from typing import Literal


class StoreType(Enum):
    """
    Supported subscription store backends.

    The store holds one record per broadcaster with the set of Discord
    servers that want its notifications.
    """

    MEMORY = "memory"
    """In-memory store (default) - Fast but lost on restart, single process only."""

    REDIS = "redis"
    """Redis-backed store - Persistent and shared between worker processes."""


# Type alias for user-friendly type hints
StoreTypeOptions = Literal["memory", "redis"]


def validate_store_type(store_type: str) -> StoreType:
    """
    Validate and convert a store type string to StoreType enum.

    Args:
        store_type: String representation of store type

    Returns:
        Validated StoreType enum value

    Raises:
        ValueError: If store_type is not supported

    Example:
        >>> validate_store_type("redis")
        StoreType.REDIS
    """
    try:
        return StoreType(store_type.lower())
    except ValueError as e:
        supported_types = [st.value for st in StoreType]
        raise ValueError(
            f"Unsupported store type: {store_type}. "
            f"Supported types: {', '.join(supported_types)}"
        ) from e


class ErrorCode(str, Enum):
    """Error codes carried by every NotifierError."""

    AUTHENTICATION_FAILED = "authentication_failed"
    MALFORMED_PAYLOAD = "malformed_payload"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    NOT_FOUND = "not_found"
    CONFIGURATION_ERROR = "configuration_error"
    CONFLICT = "conflict"
