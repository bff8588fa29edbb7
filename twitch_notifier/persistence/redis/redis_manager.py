"""
Redis lifecycle for the application: set up the pools, check that each one
answers PING, report health and close them again.
"""

import logging
from typing import Any

from ...core.config.settings import settings
from .redis_client import POOL_DB_MAPPING, RedisClient

logger = logging.getLogger(__name__)


class RedisManager:
    _initialized: bool = False

    @classmethod
    async def initialize(
        cls, redis_url: str | None = None, max_connections: int | None = None
    ) -> None:
        """
        Set up every pool and PING it.

        Args:
            redis_url: Defaults to settings.redis_url
            max_connections: Per pool, defaults to settings.redis_max_connections

        Raises:
            ValueError: No redis URL configured
            ConnectionError: At least one pool did not answer
        """
        if cls._initialized:
            return

        url = redis_url or settings.redis_url
        if not url:
            raise ValueError("REDIS_URL is required for the redis store backend")

        RedisClient.setup_single_url(
            url, max_connections=max_connections or settings.redis_max_connections
        )

        pools = await cls._ping_pools()
        failed = [alias for alias, status in pools.items() if status["status"] != "healthy"]
        if failed:
            await RedisClient.close()
            raise ConnectionError(f"Redis pools not answering: {', '.join(failed)}")

        cls._initialized = True
        logger.info(
            "✅ Redis pools ready: "
            + ", ".join(f"{alias}:db{db}" for alias, db in POOL_DB_MAPPING.items())
        )

    @classmethod
    async def _ping_pools(cls) -> dict[str, dict[str, Any]]:
        pools: dict[str, dict[str, Any]] = {}
        for alias, db in POOL_DB_MAPPING.items():
            try:
                redis = await RedisClient.get(alias)
                await redis.ping()
                pools[alias] = {"status": "healthy", "db": db}
            except Exception as e:
                logger.error(f"❌ Redis pool '{alias}' (db{db}) failed PING: {e}")
                pools[alias] = {"status": "unhealthy", "db": db, "error": str(e)}
        return pools

    @classmethod
    async def get_health_status(cls) -> dict[str, Any]:
        """``{"initialized": bool, "pools": {alias: {"status", "db", ...}}}``"""
        if not cls._initialized:
            return {"initialized": False, "pools": {}}
        return {"initialized": True, "pools": await cls._ping_pools()}

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._initialized

    @classmethod
    async def cleanup(cls) -> None:
        if not cls._initialized:
            return
        try:
            await RedisClient.close()
            logger.info("🔴 Redis pools closed")
        finally:
            cls._initialized = False
