"""
Twitch Helix API client.

Key Design Decisions:
- Shared aiohttp session injected from the application lifespan
- Every call goes through TokenManager.with_valid_token (one retry on 401)
- Non-2xx responses raise UpstreamUnavailable carrying the response text
- Deleting an EventSub subscription that is already gone counts as success
"""

import json
from dataclasses import dataclass
from typing import Any

import aiohttp

from twitch_notifier.core.config.settings import settings
from twitch_notifier.core.errors import (
    ConfigurationError,
    NotFound,
    UpstreamUnavailable,
)
from twitch_notifier.core.logging.logger import get_logger
from twitch_notifier.domain.interfaces.twitch_interface import ITwitchClient
from twitch_notifier.domain.models.twitch import (
    BroadcasterUser,
    ChannelInfo,
    EventSubSubscription,
)

from .token_manager import TokenManager

STREAM_ONLINE_TYPE = "stream.online"
STREAM_ONLINE_VERSION = "1"


@dataclass
class HelixResponse:
    """Status and body of a finished Helix request."""

    status: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.text) if self.text else {}


class TwitchUrlBuilder:
    """Builds URLs for Helix endpoints."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    def get_users_url(self) -> str:
        return f"{self.base_url}/users"

    def get_channels_url(self) -> str:
        return f"{self.base_url}/channels"

    def get_subscriptions_url(self) -> str:
        return f"{self.base_url}/eventsub/subscriptions"


def login_from_url(twitch_url: str) -> str:
    """Last path segment of a channel URL; a bare login is returned unchanged."""
    return twitch_url.strip().rstrip("/").rsplit("/", 1)[-1]


class TwitchClient(ITwitchClient):
    """Helix client authenticated with an app access token."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        client_id: str,
        client_secret: str | None = None,
        callback_url: str | None = None,
        secret: str | None = None,
        api_url: str = settings.twitch_api_url,
        auth_url: str = settings.twitch_auth_url,
        token_manager: TokenManager | None = None,
    ):
        """Initialize the client.

        Args:
            session: Persistent aiohttp session (managed by FastAPI lifespan)
            client_id: Twitch application client id
            client_secret: Twitch application client secret
            callback_url: Public URL of POST /events, sent when subscribing
            secret: Webhook HMAC secret, sent when subscribing
            api_url: Helix base URL
            auth_url: OAuth token endpoint
            token_manager: Override for tests
        """
        self.session = session
        self.client_id = client_id
        self.callback_url = callback_url
        self.secret = secret
        self.logger = get_logger(__name__)
        self.url_builder = TwitchUrlBuilder(api_url)
        self.token_manager = token_manager or TokenManager(
            session, client_id, client_secret, auth_url
        )

    @property
    def client_name(self) -> str:
        return "twitch"

    def _get_headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Client-Id": self.client_id,
        }

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> HelixResponse:
        async def operation(token: str) -> HelixResponse:
            async with self.session.request(
                method, url, headers=self._get_headers(token), params=params, json=payload
            ) as response:
                return HelixResponse(response.status, await response.text())

        try:
            response = await self.token_manager.with_valid_token(operation)
        except aiohttp.ClientError as e:
            self.logger.error(f"Twitch {method} {url} failed: {e}")
            raise UpstreamUnavailable(f"twitch call failed: {e}") from e

        self.logger.debug(f"Twitch {method} {url} params={params} -> {response.status}")
        return response

    @staticmethod
    def _first_entry(response: HelixResponse) -> dict[str, Any] | None:
        data = response.json().get("data") or []
        return data[0] if data else None

    async def retrieve_broadcaster(self, twitch_url: str) -> BroadcasterUser:
        login = login_from_url(twitch_url)
        if not login:
            raise NotFound(f"Could not find {twitch_url} on Twitch!")

        response = await self._request(
            "GET", self.url_builder.get_users_url(), params={"login": login}
        )
        if not response.ok:
            raise UpstreamUnavailable(
                f"Could not find {login} on Twitch! {response.text}",
                status=response.status,
            )

        entry = self._first_entry(response)
        if entry is None:
            raise NotFound(f"Could not find information on {login} on Twitch!")
        return BroadcasterUser.model_validate(entry)

    async def retrieve_channel(self, broadcaster_id: str) -> ChannelInfo:
        response = await self._request(
            "GET",
            self.url_builder.get_channels_url(),
            params={"broadcaster_id": broadcaster_id},
        )
        if not response.ok:
            raise UpstreamUnavailable(
                f"twitch call for {broadcaster_id} failed {response.text}",
                status=response.status,
            )

        entry = self._first_entry(response)
        if entry is None:
            raise NotFound("no twitch channel information found")
        return ChannelInfo.model_validate(entry)

    async def subscribe_stream_online(
        self, broadcaster_id: str
    ) -> EventSubSubscription:
        if not self.callback_url:
            raise ConfigurationError("CALLBACK_URL")
        if not self.secret:
            raise ConfigurationError("SECRET")

        payload = {
            "type": STREAM_ONLINE_TYPE,
            "version": STREAM_ONLINE_VERSION,
            "condition": {"broadcaster_user_id": broadcaster_id},
            "transport": {
                "method": "webhook",
                "callback": self.callback_url,
                "secret": self.secret,
            },
        }
        response = await self._request(
            "POST", self.url_builder.get_subscriptions_url(), payload=payload
        )
        if not response.ok:
            raise UpstreamUnavailable(
                f"Could not create subscription for {broadcaster_id}, error: {response.text}",
                status=response.status,
            )

        entry = self._first_entry(response)
        if entry is None:
            raise UpstreamUnavailable(
                f"Twitch returned no subscription for {broadcaster_id}",
                status=response.status,
            )
        subscription = EventSubSubscription.model_validate(entry)
        self.logger.info(
            f"Created {STREAM_ONLINE_TYPE} subscription {subscription.id} "
            f"for {broadcaster_id} ({subscription.status})"
        )
        return subscription

    async def delete_subscription(self, subscription_id: str) -> None:
        response = await self._request(
            "DELETE",
            self.url_builder.get_subscriptions_url(),
            params={"id": subscription_id},
        )
        if response.status == 404:
            self.logger.info(f"Subscription {subscription_id} already deleted")
            return
        if not response.ok:
            raise UpstreamUnavailable(
                f"Could not delete subscription {subscription_id}, error: {response.text}",
                status=response.status,
            )
        self.logger.info(f"Deleted subscription {subscription_id}")
