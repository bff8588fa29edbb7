"""
NotifierBuilder - plugin-based FastAPI application factory.
"""

from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI

from ..logging.logger import get_app_logger

if TYPE_CHECKING:
    from .plugin import NotifierPlugin

LifespanHook = Callable[[FastAPI], Awaitable[None]]


class NotifierBuilder:
    """
    Fluent builder for the notifier's FastAPI application.

    - Plugins register everything during ``build()``
    - Middleware is ordered by priority (lower = outer)
    - Startup hooks run in ascending priority, shutdown hooks in descending
      priority, all inside one lifespan

    Example:
        app = (NotifierBuilder()
            .add_plugin(NotifierCorePlugin(store_type=StoreType.REDIS))
            .add_plugin(RedisPlugin())
            .configure(title="Twitch Notifier")
            .build())
    """

    def __init__(self):
        self.plugins: list[NotifierPlugin] = []
        self.middlewares: list[tuple[type, dict, int]] = []  # (class, kwargs, priority)
        self.routers: list[tuple[Any, dict]] = []  # (router, include_kwargs)
        self.startup_hooks: list[tuple[LifespanHook, int]] = []
        self.shutdown_hooks: list[tuple[LifespanHook, int]] = []
        self.config_overrides: dict[str, Any] = {}

    def add_plugin(self, plugin: "NotifierPlugin") -> "NotifierBuilder":
        self.plugins.append(plugin)
        return self

    def add_middleware(
        self, middleware_class: type, priority: int = 50, **kwargs: Any
    ) -> "NotifierBuilder":
        """
        Add middleware with priority ordering.

        Args:
            middleware_class: Middleware class to add
            priority: Lower numbers wrap higher ones (outer middleware)
            **kwargs: Middleware configuration parameters
        """
        self.middlewares.append((middleware_class, kwargs, priority))
        return self

    def add_router(self, router: Any, **kwargs: Any) -> "NotifierBuilder":
        self.routers.append((router, kwargs))
        return self

    def add_startup_hook(
        self, hook: LifespanHook, priority: int = 50
    ) -> "NotifierBuilder":
        """
        Add a startup hook.

        Priority Guidelines:
        - 10: Core (logging, HTTP session, clients, store)
        - 20: Infrastructure (redis pools)
        - 50: User hooks (default)
        """
        self.startup_hooks.append((hook, priority))
        return self

    def add_shutdown_hook(
        self, hook: LifespanHook, priority: int = 50
    ) -> "NotifierBuilder":
        """
        Add a shutdown hook. Higher priorities run first, so core cleanup
        (priority 90) runs last.
        """
        self.shutdown_hooks.append((hook, priority))
        return self

    def configure(self, **overrides: Any) -> "NotifierBuilder":
        """Override FastAPI constructor arguments."""
        self.config_overrides.update(overrides)
        return self

    def build(self) -> FastAPI:
        """
        Build the FastAPI application.

        1. Configure plugins (sync)
        2. Create the app with the unified lifespan
        3. Add middleware by priority
        4. Include routers
        """
        logger = get_app_logger()

        for plugin in self.plugins:
            plugin.configure(self)
        logger.debug(
            f"⚙️ {len(self.plugins)} plugins configured: {len(self.middlewares)} middlewares, "
            f"{len(self.routers)} routers, {len(self.startup_hooks)} startup hooks, "
            f"{len(self.shutdown_hooks)} shutdown hooks"
        )

        @asynccontextmanager
        async def unified_lifespan(app: FastAPI):
            try:
                await self._execute_startup_hooks(app)
                logger.info("✅ All startup hooks completed successfully")
                yield
            except Exception as e:
                logger.error(f"❌ Error during startup phase: {e}", exc_info=True)
                raise
            finally:
                await self._execute_shutdown_hooks(app)
                logger.info("✅ All shutdown hooks completed")

        config = {
            "title": "Twitch Notifier",
            "description": "Twitch EventSub to Discord notification fan-out",
            "lifespan": unified_lifespan,
        }
        config.update(self.config_overrides)
        app = FastAPI(**config)

        # add_middleware prepends, so add the innermost first
        for middleware_class, kwargs, priority in sorted(
            self.middlewares, key=lambda x: x[2], reverse=True
        ):
            app.add_middleware(middleware_class, **kwargs)
            logger.debug(
                f"Added middleware {middleware_class.__name__} (priority: {priority})"
            )

        for router, kwargs in self.routers:
            app.include_router(router, **kwargs)

        return app

    async def _execute_startup_hooks(self, app: FastAPI) -> None:
        logger = get_app_logger()
        for hook, priority in sorted(self.startup_hooks, key=lambda x: x[1]):
            hook_name = getattr(hook, "__name__", "anonymous_hook")
            logger.debug(f"⚡ Startup hook: {hook_name} (priority: {priority})")
            try:
                await hook(app)
            except Exception as e:
                logger.error(f"❌ Startup hook {hook_name} failed: {e}", exc_info=True)
                raise

    async def _execute_shutdown_hooks(self, app: FastAPI) -> None:
        logger = get_app_logger()
        for hook, priority in sorted(
            self.shutdown_hooks, key=lambda x: x[1], reverse=True
        ):
            hook_name = getattr(hook, "__name__", "anonymous_hook")
            try:
                logger.debug(f"🛑 Shutdown hook: {hook_name} (priority: {priority})")
                await hook(app)
            except Exception as e:
                # Keep going: one failed cleanup must not skip the rest
                logger.error(
                    f"❌ Error in shutdown hook {hook_name}: {e}", exc_info=True
                )
