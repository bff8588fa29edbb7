from .notifier_dependencies import (
    get_event_dispatcher,
    get_subscription_manager,
)

__all__ = [
    "get_event_dispatcher",
    "get_subscription_manager",
]
