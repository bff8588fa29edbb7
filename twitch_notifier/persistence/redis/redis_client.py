"""
Per-process redis pools for the notifier.

Two logical databases on one server:

- ``subscriptions`` (db 0): broadcaster subscription hashes
- ``dedup`` (db 1): EventSub message ids already processed

Uvicorn workers fork after import, and a pool inherited from the parent
process must not be reused in the child. Pools are therefore tagged with
the pid that created them and rebuilt when the pid changes.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import ClassVar, Literal
from urllib.parse import urlsplit, urlunsplit

from redis.asyncio import ConnectionPool, Redis

log = logging.getLogger("RedisClient")

PoolAlias = Literal["subscriptions", "dedup"]

POOL_DB_MAPPING: dict[PoolAlias, int] = {
    "subscriptions": 0,
    "dedup": 1,
}


def db_url(base_url: str, db: int) -> str:
    """
    ``base_url`` pointed at database ``db``.

    A database number already present on ``base_url`` is replaced.
    """
    parts = urlsplit(base_url)
    if parts.path.strip("/"):
        log.warning(f"Ignoring database number in REDIS_URL '{base_url}'")
    return urlunsplit(parts._replace(path=f"/{db}"))


class RedisClient:
    """Class-level registry of one pool and client per alias for the current process."""

    _pools: ClassVar[dict[PoolAlias, ConnectionPool]] = {}
    _clients: ClassVar[dict[PoolAlias, Redis]] = {}
    _pid: ClassVar[int | None] = None

    @classmethod
    def setup_single_url(cls, base_url: str, *, max_connections: int = 64) -> None:
        """Create every pool in POOL_DB_MAPPING from one server URL."""
        cls._forget_if_forked()
        for alias, db in POOL_DB_MAPPING.items():
            if alias in cls._pools:
                log.debug(f"Redis pool '{alias}' already set up in PID {cls._pid}")
                continue
            url = db_url(base_url, db)
            log.info(f"Initialising Redis pool '{alias}' in PID {cls._pid} ({url})")
            pool = ConnectionPool.from_url(
                url,
                decode_responses=True,
                encoding="utf-8",
                max_connections=max_connections,
            )
            cls._pools[alias] = pool
            cls._clients[alias] = Redis(connection_pool=pool)

    @classmethod
    def _forget_if_forked(cls) -> None:
        pid = os.getpid()
        if cls._pid is not None and cls._pid != pid:
            log.info(f"PID changed {cls._pid} -> {pid}, dropping inherited Redis pools")
            cls._pools.clear()
            cls._clients.clear()
        cls._pid = pid

    @classmethod
    def is_ready(cls, alias: PoolAlias) -> bool:
        return alias in cls._clients and cls._pid == os.getpid()

    @classmethod
    async def close(cls) -> None:
        """Disconnect every pool owned by this process."""
        if cls._pid != os.getpid():
            return
        for alias in list(cls._pools):
            pool = cls._pools.pop(alias)
            cls._clients.pop(alias, None)
            log.info(f"Closing Redis pool '{alias}' in PID {cls._pid}")
            await pool.disconnect()
        cls._pid = None

    @classmethod
    async def get(cls, alias: PoolAlias = "subscriptions") -> Redis:
        """
        Client for ``alias``.

        Raises:
            RuntimeError: The pools were not set up in this process
        """
        if not cls.is_ready(alias):
            raise RuntimeError(f"Redis pool '{alias}' is not set up in this process")
        return cls._clients[alias]

    @classmethod
    @asynccontextmanager
    async def connection(cls, alias: PoolAlias = "subscriptions") -> AsyncIterator[Redis]:
        """
        ``async with RedisClient.connection("dedup") as redis: ...``

        Connections go back to the pool after each command.
        """
        yield await cls.get(alias)
