"""
Notifier Core Plugin

Always installed. Sets up logging, the shared HTTP session, the Twitch and
event-sender clients, the subscription store and the services built on
them, and registers the core middleware and routes.
"""

import asyncio
from typing import TYPE_CHECKING

import aiohttp
from fastapi import FastAPI

from twitch_notifier.api.middleware.error_handler import ErrorHandlerMiddleware
from twitch_notifier.api.middleware.request_logging import RequestLoggingMiddleware
from twitch_notifier.api.routes import (
    create_events_router,
    create_notifier_router,
    health_router,
)
from twitch_notifier.domain.interfaces.event_sender_interface import IEventSender
from twitch_notifier.domain.interfaces.subscription_store import ISubscriptionStore
from twitch_notifier.domain.interfaces.twitch_interface import ITwitchClient
from twitch_notifier.domain.services.notification_fanout import NotificationFanout
from twitch_notifier.domain.services.subscription_manager import SubscriptionManager
from twitch_notifier.messaging.event_sender.client import EventSenderClient
from twitch_notifier.messaging.twitch.factory import create_twitch_client
from twitch_notifier.persistence.store_factory import create_subscription_store
from twitch_notifier.webhooks.dispatcher import EventSubDispatcher
from twitch_notifier.webhooks.idempotency import (
    MessageDeduplicator,
    create_message_deduplicator,
)

from ..config.settings import settings
from ..logging.logger import get_app_logger, setup_app_logging
from ..types import StoreType

if TYPE_CHECKING:
    from ..factory.notifier_builder import NotifierBuilder

BACKGROUND_DRAIN_TIMEOUT = 10


def install_services(
    app: FastAPI,
    *,
    twitch_client: ITwitchClient,
    event_sender: IEventSender,
    store: ISubscriptionStore,
    deduplicator: MessageDeduplicator,
) -> None:
    """
    Build the services from their collaborators and place everything on ``app.state``.

    Called by the core startup hook; tests call it directly with fakes.
    """
    fanout = NotificationFanout(store, twitch_client, event_sender)

    app.state.twitch_client = twitch_client
    app.state.event_sender = event_sender
    app.state.subscription_store = store
    app.state.subscription_manager = SubscriptionManager(store, twitch_client)
    app.state.notification_fanout = fanout
    app.state.event_dispatcher = EventSubDispatcher(
        fanout.handle_stream_online, deduplicator
    )


class NotifierCorePlugin:
    """
    Core notifier functionality as a plugin.

    - Logging setup
    - Shared aiohttp session
    - Middleware stack (ErrorHandler outer, RequestLogging inner)
    - Routes: /events, management endpoints, /health
    """

    def __init__(self, store_type: StoreType = StoreType.MEMORY):
        self.store_type = store_type

    def configure(self, builder: "NotifierBuilder") -> None:
        builder.add_middleware(ErrorHandlerMiddleware, priority=80)
        builder.add_middleware(RequestLoggingMiddleware, priority=90)

        builder.add_router(health_router)
        builder.add_router(create_events_router())
        builder.add_router(create_notifier_router())

        builder.add_startup_hook(self._core_startup, priority=10)
        builder.add_shutdown_hook(self._core_shutdown, priority=90)

        get_app_logger().debug(
            f"✅ NotifierCorePlugin configured - store: {self.store_type.value}"
        )

    async def startup(self, app: FastAPI) -> None:
        await self._core_startup(app)

    async def shutdown(self, app: FastAPI) -> None:
        await self._core_shutdown(app)

    async def _core_startup(self, app: FastAPI) -> None:
        """
        Runs first (priority 10). The redis store and deduplicator only touch
        redis when used, so they can be created before RedisPlugin starts
        the pools.
        """
        setup_app_logging()
        logger = get_app_logger()

        logger.info(f"🚀 Starting Twitch Notifier v{settings.version}")
        logger.info(f"📊 Environment: {settings.environment}")
        logger.info(f"📝 Log level: {settings.log_level}")
        logger.info(f"💾 Store backend: {self.store_type.value}")
        if not settings.secret:
            logger.warning("⚠️ SECRET is not set - every EventSub delivery will fail")

        connector = aiohttp.TCPConnector(
            limit=100,
            keepalive_timeout=30,
            enable_cleanup_closed=True,
        )
        session = aiohttp.ClientSession(
            connector=connector, timeout=aiohttp.ClientTimeout(total=30)
        )
        app.state.http_session = session
        logger.info("🌐 Persistent HTTP session created - connections: 100, keepalive: 30s")

        install_services(
            app,
            twitch_client=create_twitch_client(session),
            event_sender=EventSenderClient(session, settings.event_sender_url),
            store=create_subscription_store(self.store_type.value),
            deduplicator=create_message_deduplicator(
                self.store_type.value, settings.dedup_ttl_seconds
            ),
        )

        logger.info(f"📍 EventSub callback: {settings.callback_url or '(CALLBACK_URL not set)'}")
        logger.info(f"📤 Event sender: {settings.event_sender_url}")
        logger.info("✅ Notifier core startup completed")

    async def _core_shutdown(self, app: FastAPI) -> None:
        """Runs last (priority 90): drain fan-out, then close the HTTP session."""
        logger = get_app_logger()

        dispatcher = getattr(app.state, "event_dispatcher", None)
        if dispatcher is not None and dispatcher.background_tasks:
            logger.info(
                f"⏳ Waiting for {len(dispatcher.background_tasks)} fan-out tasks"
            )
            try:
                await asyncio.wait_for(
                    dispatcher.wait_for_background_tasks(),
                    timeout=BACKGROUND_DRAIN_TIMEOUT,
                )
            except TimeoutError:
                logger.warning("Fan-out tasks still running at shutdown")

        session = getattr(app.state, "http_session", None)
        if session is not None:
            await session.close()
            logger.info("🌐 Persistent HTTP session closed cleanly")

        logger.info("✅ Notifier core shutdown completed")
