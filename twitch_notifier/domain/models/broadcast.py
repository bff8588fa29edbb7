"""Models exchanged with the downstream event sender."""

from typing import Any

from pydantic import BaseModel, ConfigDict

BROADCAST_CONFIGURATION_EVENT = "BROADCAST_CONFIGURATION"
BROADCAST_EVENT = "MADDEN_BROADCAST"
EVENT_SOURCE_DELIVERY = "EVENT_SOURCE"


class BroadcastConfiguration(BaseModel):
    """
    A server's broadcast filter, as stored by the event sender.

    A server may have saved several over time; the newest ``timestamp`` wins.
    """

    model_config = ConfigDict(extra="ignore")

    key: str | None = None
    title_keyword: str
    channel_id: str | None = None
    role: str | None = None
    timestamp: Any = None

    def matches(self, title: str) -> bool:
        """Case-insensitive substring match of the keyword against a stream title."""
        return self.title_keyword.lower() in title.lower()


class BroadcastNotification(BaseModel):
    """Event forwarded to a server when a matching broadcast goes live."""

    key: str
    title: str
    video: str
    event_type: str = BROADCAST_EVENT
    delivery: str = EVENT_SOURCE_DELIVERY
