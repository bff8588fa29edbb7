"""
EventSub delivery dispatcher.

Each delivery passes through these stages, stopping at the first terminal one:

1. Verify the HMAC signature (403 on mismatch)
2. Classify by the message-type header
   - webhook_callback_verification: echo the challenge as text/plain
   - revocation: log the payload, 204
   - anything else: process as a notification
3. Acknowledge the notification with 200 and run fan-out in a background task

Failures after verification and before the acknowledgment become
500 ``{"message": ...}``. Failures during fan-out are only logged.
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping

from fastapi.responses import JSONResponse, PlainTextResponse, Response

from twitch_notifier.core.config.settings import settings
from twitch_notifier.core.errors import ConfigurationError, MalformedPayload
from twitch_notifier.core.logging.context import set_request_context
from twitch_notifier.core.logging.logger import get_logger

from .idempotency import MessageDeduplicator
from .messages import (
    MessageHeaders,
    MessageType,
    parse_message,
)
from .signature import verify

NotificationHandler = Callable[[str], Awaitable[object]]


def require_secret() -> str:
    """
    Current webhook secret.

    Raises:
        ConfigurationError: SECRET is not configured
    """
    if not settings.secret:
        raise ConfigurationError("SECRET")
    return settings.secret


class EventSubDispatcher:
    """Routes verified EventSub deliveries to their handlers."""

    def __init__(
        self,
        notification_handler: NotificationHandler,
        deduplicator: MessageDeduplicator,
    ):
        """
        Args:
            notification_handler: Coroutine function taking a broadcaster id,
                run in the background for every new notification
            deduplicator: Filters out redelivered notification ids
        """
        self.notification_handler = notification_handler
        self.deduplicator = deduplicator
        self.logger = get_logger(__name__)
        self._background_tasks: set[asyncio.Task] = set()

    @property
    def background_tasks(self) -> set[asyncio.Task]:
        """Fan-out tasks still running."""
        return self._background_tasks

    async def dispatch(self, headers: Mapping[str, str], raw_body: bytes) -> Response:
        message_headers = MessageHeaders.from_mapping(headers)

        try:
            secret = require_secret()
        except ConfigurationError as e:
            self.logger.error(f"Cannot verify EventSub delivery: {e.message}")
            return JSONResponse(status_code=500, content={"message": e.message})

        if not verify(
            secret,
            message_headers.message_id,
            message_headers.message_timestamp,
            raw_body,
            message_headers.message_signature,
        ):
            self.logger.warning(
                f"signatures dont match for message '{message_headers.message_id}'"
            )
            return Response(status_code=403)

        message_type = message_headers.message_type
        if message_type == MessageType.VERIFICATION:
            return self._handle_verification(raw_body)
        if message_type == MessageType.REVOCATION:
            return self._handle_revocation(raw_body)

        try:
            return await self._handle_notification(message_headers, raw_body)
        except Exception as e:
            message = getattr(e, "message", None) or str(e) or type(e).__name__
            self.logger.error(
                f"Error handling EventSub notification: {message}", exc_info=True
            )
            return JSONResponse(status_code=500, content={"message": message})

    def _handle_verification(self, raw_body: bytes) -> Response:
        try:
            message = parse_message(MessageType.VERIFICATION, raw_body)
        except MalformedPayload as e:
            self.logger.error(f"Bad verification request: {e.message}")
            return JSONResponse(status_code=500, content={"message": e.message})

        if message.subscription:
            self.logger.info(
                f"✅ Verified subscription {message.subscription.id} "
                f"({message.subscription.type})"
            )
        return PlainTextResponse(content=message.challenge, status_code=200)

    def _handle_revocation(self, raw_body: bytes) -> Response:
        self.logger.warning(
            f"EventSub subscription revoked: {raw_body.decode('utf-8', errors='replace')}"
        )
        return Response(status_code=204)

    async def _handle_notification(
        self, message_headers: MessageHeaders, raw_body: bytes
    ) -> Response:
        message = parse_message(message_headers.message_type, raw_body)

        broadcaster_id = message.event.broadcaster_user_id
        set_request_context(broadcaster_id=broadcaster_id)

        if await self.deduplicator.is_duplicate(message_headers.message_id):
            return Response(status_code=200)

        self.logger.info(
            f"📡 {message.subscription.type or 'notification'} "
            f"for {message.event.broadcaster_user_login or broadcaster_id}"
        )
        self._spawn(broadcaster_id)
        return Response(status_code=200)

    def _spawn(self, broadcaster_id: str) -> None:
        task = asyncio.create_task(self._run_notification(broadcaster_id))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _run_notification(self, broadcaster_id: str) -> None:
        try:
            await self.notification_handler(broadcaster_id)
        except Exception as e:
            self.logger.error(
                f"Background notification processing failed: {e}", exc_info=True
            )

    async def wait_for_background_tasks(self) -> None:
        """Wait for in-flight fan-out tasks; used at shutdown and in tests."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
