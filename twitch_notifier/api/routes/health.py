"""
Health check endpoint.
"""

from typing import Any

from fastapi import APIRouter, Request

from twitch_notifier.core.config.settings import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """
    Basic health check.

    Reports which store backend and which Twitch client (live or mock) the
    running application uses.
    """
    state = request.app.state
    store = getattr(state, "subscription_store", None)
    twitch_client = getattr(state, "twitch_client", None)

    health_data: dict[str, Any] = {
        "status": "healthy",
        "version": settings.version,
        "environment": settings.environment,
        "store_backend": store.backend_name if store else settings.store_backend,
        "twitch_client": twitch_client.client_name if twitch_client else None,
    }

    redis_manager = getattr(state, "redis_manager", None)
    if redis_manager is not None:
        health_data["redis"] = await redis_manager.get_health_status()

    return health_data
