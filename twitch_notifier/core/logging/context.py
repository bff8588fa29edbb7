"""
Request context management using contextvars for automatic propagation.

Controllers set the tenant (discord server) and broadcaster for the request
once, and every logger created afterwards in the same task picks them up.
Background fan-out tasks inherit a copy of the context they were spawned in.
"""

from contextvars import ContextVar

_tenant_context: ContextVar[str | None] = ContextVar(
    "tenant_id", default=None
)  # Discord server from management requests
_broadcaster_context: ContextVar[str | None] = ContextVar(
    "broadcaster_id", default=None
)  # Twitch broadcaster from requests and notifications


def set_request_context(
    tenant_id: str | None = None,
    broadcaster_id: str | None = None,
) -> None:
    """
    Set the request context for the current async context.

    Args:
        tenant_id: Discord server the request acts on behalf of
        broadcaster_id: Twitch broadcaster the request concerns
    """
    if tenant_id is not None:
        _tenant_context.set(tenant_id)
    if broadcaster_id is not None:
        _broadcaster_context.set(broadcaster_id)


def get_current_tenant_context() -> str | None:
    """Get the current tenant ID, or None if not set."""
    return _tenant_context.get()


def get_current_broadcaster_context() -> str | None:
    """Get the current broadcaster ID, or None if not set."""
    return _broadcaster_context.get()


def clear_request_context() -> None:
    """
    Clear the request context.

    Context is isolated per request already; this is mostly useful for tests.
    """
    _tenant_context.set(None)
    _broadcaster_context.set(None)


def get_context_info() -> dict[str, str | None]:
    """Get current context information for debugging."""
    return {
        "tenant_id": get_current_tenant_context(),
        "broadcaster_id": get_current_broadcaster_context(),
    }
