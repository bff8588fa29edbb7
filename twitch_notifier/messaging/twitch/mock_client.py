"""
Offline Twitch client for local development.

Used when CLIENT_ID is not configured. Returns the TwitchDev sample data
from the Helix reference and performs no network calls.
"""

from twitch_notifier.core.logging.logger import get_logger
from twitch_notifier.domain.interfaces.twitch_interface import ITwitchClient
from twitch_notifier.domain.models.twitch import (
    BroadcasterUser,
    ChannelInfo,
    EventSubSubscription,
)


MOCK_BROADCASTER = BroadcasterUser(
    id="141981764", login="twitchdev", display_name="TwitchDev"
)
MOCK_CHANNEL = ChannelInfo(
    broadcaster_id="141981764",
    broadcaster_login="twitchdev",
    broadcaster_name="TwitchDev",
    title="TwitchDev Monthly Update // May 6, 2021",
    game_name="Science & Technology",
)
MOCK_SUBSCRIPTION_ID = "f1c2a387-161a-49f9-a165-0f21d7a4e1c4"


class MockTwitchClient(ITwitchClient):
    """Canned-response client that records subscribe and delete calls."""

    def __init__(self):
        self.logger = get_logger(__name__)
        self.subscribed: list[str] = []
        self.deleted: list[str] = []

    @property
    def client_name(self) -> str:
        return "mock"

    async def retrieve_broadcaster(self, twitch_url: str) -> BroadcasterUser:
        return MOCK_BROADCASTER.model_copy()

    async def retrieve_channel(self, broadcaster_id: str) -> ChannelInfo:
        return MOCK_CHANNEL.model_copy()

    async def subscribe_stream_online(
        self, broadcaster_id: str
    ) -> EventSubSubscription:
        self.subscribed.append(broadcaster_id)
        return EventSubSubscription(
            id=MOCK_SUBSCRIPTION_ID,
            status="webhook_callback_verification_pending",
            type="stream.online",
            version="1",
            condition={"broadcaster_user_id": broadcaster_id},
        )

    async def delete_subscription(self, subscription_id: str) -> None:
        self.deleted.append(subscription_id)
        self.logger.info(f"{subscription_id} is deleted")
