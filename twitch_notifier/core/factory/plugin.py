"""
Plugin protocol for NotifierBuilder.

A plugin registers middleware, routers and lifespan hooks while the app is
being built, and may do async work when the app starts and stops.
"""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from fastapi import FastAPI

    from .notifier_builder import NotifierBuilder


class NotifierPlugin(Protocol):
    """
    Lifecycle contract:

    1. ``configure``: synchronous, during ``NotifierBuilder.build()``
    2. ``startup``: async, inside the FastAPI lifespan
    3. ``shutdown``: async, inside the FastAPI lifespan, reverse of startup
    """

    def configure(self, builder: "NotifierBuilder") -> None:
        """Register middleware, routers and hooks with the builder."""
        ...

    async def startup(self, app: "FastAPI") -> None:
        """Open connections and place shared objects on ``app.state``."""
        ...

    async def shutdown(self, app: "FastAPI") -> None:
        """Release what ``startup`` acquired."""
        ...
