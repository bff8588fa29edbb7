"""
Pytest configuration and common fixtures for Twitch notifier tests.

Provides in-process fakes for the Twitch API and the event sender, plus an
application wired with them that can be driven through TestClient without
running the lifespan.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from twitch_notifier.core.config.settings import settings
from twitch_notifier.core.errors import NotFound, UpstreamUnavailable
from twitch_notifier.core.logging.context import clear_request_context
from twitch_notifier.core.notifier_app import TwitchNotifier
from twitch_notifier.core.plugins.notifier_core_plugin import install_services
from twitch_notifier.domain.interfaces.event_sender_interface import IEventSender
from twitch_notifier.domain.interfaces.twitch_interface import ITwitchClient
from twitch_notifier.domain.models.broadcast import BroadcastConfiguration
from twitch_notifier.domain.models.twitch import (
    BroadcasterUser,
    ChannelInfo,
    EventSubSubscription,
)
from twitch_notifier.domain.services.subscription_manager import SubscriptionManager
from twitch_notifier.messaging.twitch.client import login_from_url
from twitch_notifier.persistence.memory.memory_store import MemorySubscriptionStore
from twitch_notifier.webhooks.idempotency import MemoryMessageDeduplicator
from twitch_notifier.webhooks.signature import compute_signature

TEST_SECRET = "s3cr3t-for-tests"

BROADCASTERS = {
    "twitchdev": BroadcasterUser(id="141981764", login="twitchdev", display_name="TwitchDev"),
    "ladderking": BroadcasterUser(id="5550001", login="ladderking", display_name="LadderKing"),
    "quietstreamer": BroadcasterUser(id="5550002", login="quietstreamer", display_name="Quiet"),
}


class FakeTwitchClient(ITwitchClient):
    """Twitch client backed by the BROADCASTERS table, counting upstream calls."""

    def __init__(self, titles: dict[str, str] | None = None):
        self.titles = titles or {}
        self.subscribe_calls: list[str] = []
        self.delete_calls: list[str] = []
        self.channel_error: Exception | None = None
        self._next_subscription = 0

    @property
    def client_name(self) -> str:
        return "fake"

    async def retrieve_broadcaster(self, twitch_url: str) -> BroadcasterUser:
        user = BROADCASTERS.get(login_from_url(twitch_url))
        if user is None:
            raise NotFound(f"Could not find information on {twitch_url} on Twitch!")
        return user

    async def retrieve_channel(self, broadcaster_id: str) -> ChannelInfo:
        if self.channel_error is not None:
            raise self.channel_error
        user = next(u for u in BROADCASTERS.values() if u.id == broadcaster_id)
        return ChannelInfo(
            broadcaster_id=user.id,
            broadcaster_login=user.login,
            broadcaster_name=user.display_name,
            title=self.titles.get(user.id, "Just chatting"),
        )

    async def subscribe_stream_online(self, broadcaster_id: str) -> EventSubSubscription:
        self.subscribe_calls.append(broadcaster_id)
        self._next_subscription += 1
        return EventSubSubscription(
            id=f"sub-{broadcaster_id}-{self._next_subscription}",
            status="webhook_callback_verification_pending",
            type="stream.online",
        )

    async def delete_subscription(self, subscription_id: str) -> None:
        self.delete_calls.append(subscription_id)


class FakeEventSender(IEventSender):
    """Event sender with per-server configurations; records what was sent."""

    def __init__(self):
        self.configurations: dict[str, BroadcastConfiguration] = {}
        self.failures: dict[str, Exception] = {}
        self.sent: list[dict[str, str]] = []

    def configure(self, tenant_id: str, keyword: str) -> None:
        self.configurations[tenant_id] = BroadcastConfiguration(
            title_keyword=keyword, timestamp=1, channel_id=f"channel-{tenant_id}"
        )

    async def latest_broadcast_configuration(self, tenant_id: str):
        if tenant_id in self.failures:
            raise self.failures[tenant_id]
        return self.configurations.get(tenant_id)

    async def send_broadcast(self, tenant_id: str, title: str, video_url: str) -> None:
        self.sent.append({"tenant": tenant_id, "title": title, "video": video_url})


def signed_headers(
    body: bytes,
    message_type: str,
    message_id: str = "msg-1",
    timestamp: str = "2024-05-06T18:00:00Z",
    secret: str = TEST_SECRET,
) -> dict[str, str]:
    """EventSub headers for ``body`` signed with ``secret``."""
    return {
        "Twitch-Eventsub-Message-Id": message_id,
        "Twitch-Eventsub-Message-Timestamp": timestamp,
        "Twitch-Eventsub-Message-Signature": compute_signature(
            secret, message_id, timestamp, body
        ),
        "Twitch-Eventsub-Message-Type": message_type,
        "Content-Type": "application/json",
    }


@pytest.fixture(autouse=True)
def webhook_secret(monkeypatch):
    """Every test runs with a known webhook secret."""
    monkeypatch.setattr(settings, "secret", TEST_SECRET)
    yield TEST_SECRET
    clear_request_context()


@pytest.fixture
def twitch_client() -> FakeTwitchClient:
    return FakeTwitchClient()


@pytest.fixture
def event_sender() -> FakeEventSender:
    return FakeEventSender()


@pytest.fixture
def memory_store() -> MemorySubscriptionStore:
    return MemorySubscriptionStore()


@pytest.fixture
def manager(memory_store, twitch_client) -> SubscriptionManager:
    return SubscriptionManager(memory_store, twitch_client)


@pytest.fixture
def app(twitch_client, event_sender, memory_store) -> FastAPI:
    """Notifier app with fakes on app.state (lifespan not run)."""
    fastapi_app = TwitchNotifier(store="memory").app
    install_services(
        fastapi_app,
        twitch_client=twitch_client,
        event_sender=event_sender,
        store=memory_store,
        deduplicator=MemoryMessageDeduplicator(ttl_seconds=600),
    )
    return fastapi_app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def mock_redis():
    """Mock Redis client for testing."""
    mock = MagicMock()
    mock.ping = AsyncMock(return_value=True)
    mock.set = AsyncMock(return_value=True)
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def upstream_error() -> UpstreamUnavailable:
    return UpstreamUnavailable("twitch is down", status=503)


@pytest.fixture
def sign():
    """Build signed EventSub headers: ``sign(body, message_type, message_id=...)``."""
    return signed_headers
