"""
Subscription record: one per broadcaster with at least one interested server.

The record is shared by every Discord server that follows the broadcaster
and points at the single EventSub subscription backing all of them.
"""

from pydantic import BaseModel, Field

TWITCH_CHANNEL_BASE_URL = "https://www.twitch.tv"


class TenantSubscription(BaseModel):
    """Per-server entry inside a subscription record."""

    subscribed: bool = True


class SubscriptionRecord(BaseModel):
    """
    Reference-counted registry entry for one broadcaster.

    Attributes:
        broadcaster_id: Twitch user id, primary key
        broadcaster_name: Login name captured when the record was created
        subscription_id: The one stream.online EventSub subscription for this broadcaster
        tenants: Discord server id -> subscription flag
    """

    broadcaster_id: str
    broadcaster_name: str
    subscription_id: str
    tenants: dict[str, TenantSubscription] = Field(default_factory=dict)

    @property
    def twitch_url(self) -> str:
        return f"{TWITCH_CHANNEL_BASE_URL}/{self.broadcaster_name}"

    def subscribed_tenants(self) -> list[str]:
        """Ids of servers currently subscribed."""
        return [
            tenant_id
            for tenant_id, entry in self.tenants.items()
            if entry.subscribed
        ]

    def is_subscribed(self, tenant_id: str) -> bool:
        entry = self.tenants.get(tenant_id)
        return entry is not None and entry.subscribed
