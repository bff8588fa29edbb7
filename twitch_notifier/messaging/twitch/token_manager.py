"""
App access token management for the Helix API.

The token is fetched with the client-credentials grant on first use and
replaced only when Helix rejects it with 401.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

import aiohttp

from twitch_notifier.core.errors import ConfigurationError, UpstreamUnavailable
from twitch_notifier.core.logging.logger import get_logger
from twitch_notifier.domain.models.twitch import AppAccessToken

UNAUTHORIZED = 401


class StatusResponse(Protocol):
    status: int


R = TypeVar("R", bound=StatusResponse)


class TokenManager:
    """
    Owns the app access token.

    Refreshes are serialized by a lock so a burst of 401s triggers a single
    token request.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        client_id: str,
        client_secret: str | None,
        auth_url: str,
    ):
        self.session = session
        self.client_id = client_id
        self.client_secret = client_secret
        self.auth_url = auth_url
        self.logger = get_logger(__name__)
        self._token: str | None = None
        self._lock = asyncio.Lock()

    @property
    def token(self) -> str | None:
        return self._token

    async def get_token(self, stale_token: str | None = None) -> str:
        """
        Return a usable token, fetching a new one when needed.

        Args:
            stale_token: Token that was just rejected. If it is still the
                current token a refresh is forced; if another caller already
                replaced it, the newer token is returned as-is.
        """
        async with self._lock:
            if self._token and self._token != stale_token:
                return self._token
            self._token = await self._request_token()
            return self._token

    async def with_valid_token(self, operation: Callable[[str], Awaitable[R]]) -> R:
        """
        Run ``operation(token)``, retrying exactly once after a forced
        refresh if the response is 401.

        The second response is returned whatever its status.
        """
        token = await self.get_token()
        response = await operation(token)
        if response.status != UNAUTHORIZED:
            return response

        self.logger.warning("Twitch rejected app access token, refreshing")
        token = await self.get_token(stale_token=token)
        return await operation(token)

    async def _request_token(self) -> str:
        if not self.client_secret:
            raise ConfigurationError("CLIENT_SECRET")

        form = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "client_credentials",
        }
        async with self.session.post(self.auth_url, data=form) as response:
            if response.status >= 300:
                error_text = await response.text()
                self.logger.error(
                    f"Token refresh failed: {response.status} - {error_text}"
                )
                raise UpstreamUnavailable(
                    f"could not refresh token: {error_text}", status=response.status
                )
            payload = await response.json()

        token = AppAccessToken.model_validate(payload)
        self.logger.info("🔑 Twitch app access token refreshed")
        return token.access_token
