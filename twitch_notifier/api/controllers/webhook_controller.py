"""
EventSub webhook controller.

Reads the raw body exactly as delivered (the signature covers those bytes)
and hands it to the dispatcher.
"""

from fastapi import Request
from fastapi.responses import Response

from twitch_notifier.core.logging.logger import get_logger
from twitch_notifier.webhooks.dispatcher import EventSubDispatcher


class WebhookController:
    def __init__(self):
        self.logger = get_logger(__name__)

    async def handle_event(
        self, request: Request, dispatcher: EventSubDispatcher
    ) -> Response:
        raw_body = await request.body()
        self.logger.debug(f"EventSub delivery: {len(raw_body)} bytes")
        return await dispatcher.dispatch(request.headers, raw_body)
