"""
Main TwitchNotifier application class.

Wraps NotifierBuilder with the core plugin and, for the redis backend, the
redis plugin.
"""

from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI

from .config.settings import settings
from .factory.notifier_builder import LifespanHook, NotifierBuilder
from .logging.logger import get_app_logger
from .plugins.notifier_core_plugin import NotifierCorePlugin
from .types import StoreType, StoreTypeOptions, validate_store_type

if TYPE_CHECKING:
    from .factory.plugin import NotifierPlugin


class TwitchNotifier:
    """
    Simple Usage:
        notifier = TwitchNotifier()
        notifier.run()

    Advanced Usage:
        notifier = TwitchNotifier(store="redis")
        notifier.add_plugin(MyPlugin())
        notifier.add_startup_hook(my_startup, priority=30)
        app = notifier.app
    """

    def __init__(self, store: StoreTypeOptions = "memory", config: dict | None = None):
        """
        Args:
            store: Subscription store backend ('memory' or 'redis')
            config: FastAPI constructor overrides

        Raises:
            ValueError: If the store type is not supported
        """
        self.store_type = validate_store_type(store)
        self._app: FastAPI | None = None

        self._builder = NotifierBuilder()
        self._builder.add_plugin(NotifierCorePlugin(store_type=self.store_type))
        if self.store_type == StoreType.REDIS:
            from .plugins.redis_plugin import RedisPlugin

            self._builder.add_plugin(RedisPlugin())

        self._builder.configure(
            version=settings.version,
            docs_url="/docs" if settings.is_development else None,
            redoc_url="/redoc" if settings.is_development else None,
            **(config or {}),
        )

    @property
    def app(self) -> FastAPI:
        """The FastAPI application, built on first access."""
        if self._app is None:
            self._app = self._builder.build()
            get_app_logger().debug(
                f"App built - store: {self.store_type.value}, "
                f"plugins: {len(self._builder.plugins)}"
            )
        return self._app

    def add_plugin(self, plugin: "NotifierPlugin") -> "TwitchNotifier":
        """Add a plugin. Must be called before ``app`` is first accessed."""
        self._ensure_not_built()
        self._builder.add_plugin(plugin)
        return self

    def add_startup_hook(self, hook: LifespanHook, priority: int = 50) -> "TwitchNotifier":
        self._ensure_not_built()
        self._builder.add_startup_hook(hook, priority)
        return self

    def add_shutdown_hook(self, hook: LifespanHook, priority: int = 50) -> "TwitchNotifier":
        self._ensure_not_built()
        self._builder.add_shutdown_hook(hook, priority)
        return self

    def _ensure_not_built(self) -> None:
        if self._app is not None:
            raise RuntimeError("Application already built; add plugins and hooks first")

    def run(self, host: str = "0.0.0.0", port: int | None = None, **kwargs) -> None:
        """
        Serve the application with uvicorn (no reload; use the CLI ``dev``
        command for auto-reload).
        """
        port = port or settings.port
        logger = get_app_logger()
        logger.info(f"Starting Twitch Notifier v{settings.version} on {host}:{port}")
        uvicorn.run(
            self.app,
            host=host,
            port=port,
            log_level=settings.log_level.lower(),
            **kwargs,
        )
