"""Domain models."""

from .broadcast import (
    BROADCAST_CONFIGURATION_EVENT,
    BROADCAST_EVENT,
    EVENT_SOURCE_DELIVERY,
    BroadcastConfiguration,
    BroadcastNotification,
)
from .subscription import SubscriptionRecord, TenantSubscription
from .twitch import AppAccessToken, BroadcasterUser, ChannelInfo, EventSubSubscription

__all__ = [
    "AppAccessToken",
    "BroadcasterUser",
    "ChannelInfo",
    "EventSubSubscription",
    "BROADCAST_CONFIGURATION_EVENT",
    "BROADCAST_EVENT",
    "EVENT_SOURCE_DELIVERY",
    "BroadcastConfiguration",
    "BroadcastNotification",
    "SubscriptionRecord",
    "TenantSubscription",
]
