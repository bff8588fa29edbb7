"""
EventSub webhook route.

Twitch posts every delivery (verification, notification, revocation) to
this one endpoint.
"""

from fastapi import APIRouter, Depends, Request

from twitch_notifier.api.controllers import WebhookController
from twitch_notifier.api.dependencies import get_event_dispatcher
from twitch_notifier.webhooks.dispatcher import EventSubDispatcher


def create_events_router() -> APIRouter:
    """Create the router for ``POST /events``."""
    webhook_controller = WebhookController()

    router = APIRouter(
        tags=["EventSub"],
        responses={
            204: {"description": "Revocation acknowledged"},
            403: {"description": "Forbidden - signature verification failed"},
            500: {"description": "Internal Server Error"},
        },
    )

    @router.post("/events")
    async def receive_event(
        request: Request,
        dispatcher: EventSubDispatcher = Depends(get_event_dispatcher),
    ):
        """Receive an EventSub delivery. Verification challenges are echoed as text/plain."""
        return await webhook_controller.handle_event(request, dispatcher)

    return router
