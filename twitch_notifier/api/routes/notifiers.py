"""
Management routes used by the Discord bot.

Bodies are read from the raw request so validation failures share the
500 ``{"message": ...}`` shape with every other failure.
"""

from fastapi import APIRouter, Depends, Request

from twitch_notifier.api.controllers import NotifierController
from twitch_notifier.api.dependencies import get_subscription_manager
from twitch_notifier.domain.services.subscription_manager import SubscriptionManager


def create_notifier_router() -> APIRouter:
    notifier_controller = NotifierController()

    router = APIRouter(
        tags=["Notifiers"],
        responses={500: {"description": "Resolution, upstream or validation failure"}},
    )

    @router.post("/addTwitchNotifier")
    async def add_twitch_notifier(
        request: Request,
        manager: SubscriptionManager = Depends(get_subscription_manager),
    ):
        """Body ``{discord_server, twitch_url}``: follow a broadcaster."""
        return await notifier_controller.add_notifier(request, manager)

    @router.post("/removeTwitchNotifier")
    async def remove_twitch_notifier(
        request: Request,
        manager: SubscriptionManager = Depends(get_subscription_manager),
    ):
        """Body ``{discord_server, twitch_url}``: stop following a broadcaster."""
        return await notifier_controller.remove_notifier(request, manager)

    @router.post("/listTwitchNotifiers")
    async def list_twitch_notifiers(
        request: Request,
        manager: SubscriptionManager = Depends(get_subscription_manager),
    ):
        """Body ``{discord_server}``: array of channel URLs the server follows."""
        return await notifier_controller.list_notifiers(request, manager)

    return router
