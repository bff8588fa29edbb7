"""
Redis Plugin

Opens the redis pools behind the redis subscription store and the message
deduplicator, and closes them at shutdown. TwitchNotifier installs it for
``store="redis"``.
"""

from typing import TYPE_CHECKING

from twitch_notifier.persistence.redis.redis_client import POOL_DB_MAPPING
from twitch_notifier.persistence.redis.redis_manager import RedisManager

from ..config.settings import settings
from ..logging.logger import get_app_logger

if TYPE_CHECKING:
    from fastapi import FastAPI

    from ..factory.notifier_builder import NotifierBuilder

REDIS_HOOK_PRIORITY = 20


class RedisPlugin:
    """
    Example:
        builder.add_plugin(RedisPlugin(redis_url="redis://cache:6379"))
    """

    def __init__(self, redis_url: str | None = None, max_connections: int | None = None):
        self.redis_url = redis_url or settings.redis_url
        self.max_connections = max_connections or settings.redis_max_connections

    def configure(self, builder: "NotifierBuilder") -> None:
        # Pools are open before user hooks (50) and closed before the core
        # plugin closes the HTTP session (90 runs last)
        builder.add_startup_hook(self.startup, priority=REDIS_HOOK_PRIORITY)
        builder.add_shutdown_hook(self.shutdown, priority=REDIS_HOOK_PRIORITY)

    async def startup(self, app: "FastAPI") -> None:
        """
        Raises:
            RuntimeError: Pools could not be opened or did not answer PING
        """
        logger = get_app_logger()
        logger.info(
            f"🔴 Opening Redis pools at {self.redis_url} "
            f"({self.max_connections} connections each)"
        )
        try:
            await RedisManager.initialize(
                redis_url=self.redis_url, max_connections=self.max_connections
            )
        except (ValueError, ConnectionError) as e:
            logger.error(f"❌ Redis unavailable, refusing to start: {e}")
            raise RuntimeError(f"Redis startup failed: {e}") from e

        app.state.redis_manager = RedisManager
        logger.info(f"✅ Redis ready ({len(POOL_DB_MAPPING)} pools)")

    async def shutdown(self, app: "FastAPI") -> None:
        await RedisManager.cleanup()
        app.state.redis_manager = None
        get_app_logger().info("🔴 Redis pools closed")
