"""
Domain services.

Subscription reference counting and notification fan-out.
"""

from .notification_fanout import NotificationFanout
from .subscription_manager import SubscriptionManager

__all__ = [
    "NotificationFanout",
    "SubscriptionManager",
]
