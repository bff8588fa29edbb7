"""
Dependency providers for API routes.

Everything here reads objects NotifierCorePlugin placed on ``app.state``
during startup.
"""

from fastapi import Request

from twitch_notifier.domain.services.subscription_manager import SubscriptionManager
from twitch_notifier.webhooks.dispatcher import EventSubDispatcher


def _from_state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise RuntimeError(
            f"app.state.{name} is not available - was the application lifespan started?"
        )
    return value


def get_subscription_manager(request: Request) -> SubscriptionManager:
    return _from_state(request, "subscription_manager")


def get_event_dispatcher(request: Request) -> EventSubDispatcher:
    return _from_state(request, "event_dispatcher")

