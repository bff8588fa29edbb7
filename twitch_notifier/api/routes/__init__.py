"""HTTP routes."""

from .events import create_events_router
from .health import router as health_router
from .notifiers import create_notifier_router

__all__ = ["create_events_router", "create_notifier_router", "health_router"]
