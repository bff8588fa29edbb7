"""Twitch Helix client interface, implemented by the live and mock clients."""

from abc import ABC, abstractmethod

from ..models.twitch import (
    BroadcasterUser,
    ChannelInfo,
    EventSubSubscription,
)


class ITwitchClient(ABC):
    """Operations the notifier needs from the Twitch API."""

    @property
    @abstractmethod
    def client_name(self) -> str:
        """Short label for health output ("twitch" or "mock")."""

    @abstractmethod
    async def retrieve_broadcaster(self, twitch_url: str) -> BroadcasterUser:
        """
        Resolve a channel URL to its user.

        The login is the last path segment of ``twitch_url``.

        Raises:
            NotFound: No such user
            UpstreamUnavailable: Twitch returned an error
        """

    @abstractmethod
    async def retrieve_channel(self, broadcaster_id: str) -> ChannelInfo:
        """Fetch current channel info, including the stream title."""

    @abstractmethod
    async def subscribe_stream_online(
        self, broadcaster_id: str
    ) -> EventSubSubscription:
        """Create a stream.online EventSub webhook subscription."""

    @abstractmethod
    async def delete_subscription(self, subscription_id: str) -> None:
        """Delete an EventSub subscription. An already-missing one is success."""
