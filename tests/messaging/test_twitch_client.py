"""
Tests for TwitchClient against a fake Helix API served by aiohttp.
"""

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from twitch_notifier.core.errors import (
    ConfigurationError,
    NotFound,
    UpstreamUnavailable,
)
from twitch_notifier.messaging.twitch.client import (
    TwitchClient,
    TwitchUrlBuilder,
    login_from_url,
)


class FakeHelix:
    """Minimal Helix: users, channels and EventSub subscriptions."""

    def __init__(self):
        self.issued_tokens = 0
        self.rejected_tokens: set[str] = set()
        self.subscriptions: dict[str, dict] = {"sub-existing": {"id": "sub-existing"}}
        self.requests: list[tuple[str, str]] = []
        self.fail_users_with: int | None = None
        self.last_subscription_payload: dict | None = None

    def application(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/oauth2/token", self.token)
        app.router.add_get("/helix/users", self.users)
        app.router.add_get("/helix/channels", self.channels)
        app.router.add_post("/helix/eventsub/subscriptions", self.subscribe)
        app.router.add_delete("/helix/eventsub/subscriptions", self.unsubscribe)
        return app

    def _authorized(self, request: web.Request) -> bool:
        self.requests.append((request.method, request.path))
        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        return (
            bool(token)
            and token not in self.rejected_tokens
            and request.headers.get("Client-Id") == "cid"
        )

    async def token(self, request: web.Request) -> web.Response:
        form = await request.post()
        if form.get("client_secret") != "csecret":
            return web.Response(status=403, text="invalid client secret")
        assert form.get("grant_type") == "client_credentials"
        self.issued_tokens += 1
        return web.json_response(
            {"access_token": f"token-{self.issued_tokens}", "expires_in": 3600, "token_type": "bearer"}
        )

    async def users(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=401, text="invalid oauth token")
        if self.fail_users_with:
            return web.Response(status=self.fail_users_with, text="helix is sad")
        login = request.query.get("login")
        if login != "twitchdev":
            return web.json_response({"data": []})
        return web.json_response(
            {
                "data": [
                    {
                        "id": "141981764",
                        "login": "twitchdev",
                        "display_name": "TwitchDev",
                        "type": "",
                        "broadcaster_type": "partner",
                    }
                ]
            }
        )

    async def channels(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=401)
        if request.query.get("broadcaster_id") != "141981764":
            return web.json_response({"data": []})
        return web.json_response(
            {
                "data": [
                    {
                        "broadcaster_id": "141981764",
                        "broadcaster_login": "twitchdev",
                        "broadcaster_name": "TwitchDev",
                        "title": "TwitchDev Monthly Update",
                        "game_name": "Science & Technology",
                        "delay": 0,
                    }
                ]
            }
        )

    async def subscribe(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=401)
        payload = await request.json()
        self.last_subscription_payload = payload
        subscription_id = f"sub-{len(self.subscriptions) + 1}"
        entry = {
            "id": subscription_id,
            "status": "webhook_callback_verification_pending",
            "type": payload["type"],
            "version": payload["version"],
            "condition": payload["condition"],
            "cost": 1,
        }
        self.subscriptions[subscription_id] = entry
        return web.json_response({"data": [entry], "total": 1}, status=202)

    async def unsubscribe(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=401)
        if self.subscriptions.pop(request.query.get("id"), None) is None:
            return web.Response(status=404, text="subscription not found")
        return web.Response(status=204)


@pytest.fixture
def helix():
    return FakeHelix()


@pytest_asyncio.fixture
async def twitch(helix):
    server = TestServer(helix.application())
    await server.start_server()
    async with aiohttp.ClientSession() as session:
        yield TwitchClient(
            session=session,
            client_id="cid",
            client_secret="csecret",
            callback_url="https://notifier.example.com/events",
            secret="s3cr3t",
            api_url=str(server.make_url("/helix")),
            auth_url=str(server.make_url("/oauth2/token")),
        )
    await server.close()


class TestUrls:
    @pytest.mark.parametrize(
        "url, login",
        [
            ("https://www.twitch.tv/twitchdev", "twitchdev"),
            ("https://www.twitch.tv/twitchdev/", "twitchdev"),
            ("twitchdev", "twitchdev"),
            ("  https://twitch.tv/twitchdev  ", "twitchdev"),
        ],
    )
    def test_login_from_url(self, url, login):
        assert login_from_url(url) == login

    def test_url_builder(self):
        builder = TwitchUrlBuilder("https://api.twitch.tv/helix/")

        assert builder.get_users_url() == "https://api.twitch.tv/helix/users"
        assert builder.get_channels_url() == "https://api.twitch.tv/helix/channels"
        assert (
            builder.get_subscriptions_url()
            == "https://api.twitch.tv/helix/eventsub/subscriptions"
        )


@pytest.mark.asyncio
class TestTwitchClient:
    async def test_client_name(self, twitch):
        assert twitch.client_name == "twitch"

    async def test_retrieve_broadcaster(self, twitch, helix):
        user = await twitch.retrieve_broadcaster("https://www.twitch.tv/twitchdev")

        assert user.id == "141981764"
        assert user.login == "twitchdev"
        assert helix.issued_tokens == 1

    async def test_unknown_broadcaster_is_not_found(self, twitch):
        with pytest.raises(NotFound):
            await twitch.retrieve_broadcaster("https://www.twitch.tv/nobody")

    async def test_helix_error_is_upstream_unavailable(self, twitch, helix):
        helix.fail_users_with = 503

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await twitch.retrieve_broadcaster("twitchdev")

        assert exc_info.value.status == 503
        assert "helix is sad" in exc_info.value.message

    async def test_expired_token_is_refreshed_once(self, twitch, helix):
        await twitch.retrieve_broadcaster("twitchdev")
        helix.rejected_tokens.add("token-1")

        user = await twitch.retrieve_broadcaster("twitchdev")

        assert user.id == "141981764"
        assert helix.issued_tokens == 2
        assert twitch.token_manager.token == "token-2"

    async def test_retrieve_channel(self, twitch):
        channel = await twitch.retrieve_channel("141981764")

        assert channel.title == "TwitchDev Monthly Update"
        assert channel.broadcaster_login == "twitchdev"

    async def test_missing_channel_is_not_found(self, twitch):
        with pytest.raises(NotFound):
            await twitch.retrieve_channel("999")

    async def test_subscribe_stream_online(self, twitch, helix):
        subscription = await twitch.subscribe_stream_online("141981764")

        assert subscription.id in helix.subscriptions
        assert subscription.status == "webhook_callback_verification_pending"
        assert helix.last_subscription_payload == {
            "type": "stream.online",
            "version": "1",
            "condition": {"broadcaster_user_id": "141981764"},
            "transport": {
                "method": "webhook",
                "callback": "https://notifier.example.com/events",
                "secret": "s3cr3t",
            },
        }

    async def test_subscribe_without_callback_url(self, twitch, helix):
        twitch.callback_url = None

        with pytest.raises(ConfigurationError) as exc_info:
            await twitch.subscribe_stream_online("141981764")

        assert exc_info.value.message == "no CALLBACK_URL defined!"
        assert helix.requests == []

    async def test_delete_subscription(self, twitch, helix):
        await twitch.delete_subscription("sub-existing")

        assert "sub-existing" not in helix.subscriptions

    async def test_delete_missing_subscription_succeeds(self, twitch):
        await twitch.delete_subscription("sub-gone")

    async def test_bad_client_secret_is_upstream_unavailable(self, twitch):
        twitch.token_manager.client_secret = "wrong"

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await twitch.retrieve_channel("141981764")

        assert exc_info.value.status == 403

    async def test_connection_error_is_upstream_unavailable(self, twitch):
        twitch.url_builder = TwitchUrlBuilder("http://127.0.0.1:1/helix")

        with pytest.raises(UpstreamUnavailable):
            await twitch.retrieve_channel("141981764")
