"""
Domain interfaces.

Defines the contracts that infrastructure layer must implement.
"""

from .event_sender_interface import IEventSender
from .subscription_store import ISubscriptionStore
from .twitch_interface import ITwitchClient

__all__ = [
    "IEventSender",
    "ISubscriptionStore",
    "ITwitchClient",
]
