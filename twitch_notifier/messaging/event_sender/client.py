"""
HTTP client for the downstream event sender.

The event sender stores events per key (a Discord server id) and delivers
them to that server's bot. The notifier reads broadcast configurations from
it and posts broadcast events to it.
"""

import json
from datetime import datetime
from typing import Any

import aiohttp

from twitch_notifier.core.config.settings import settings
from twitch_notifier.core.errors import UpstreamUnavailable
from twitch_notifier.core.logging.logger import get_logger
from twitch_notifier.domain.interfaces.event_sender_interface import IEventSender
from twitch_notifier.domain.models.broadcast import (
    BROADCAST_CONFIGURATION_EVENT,
    BroadcastConfiguration,
    BroadcastNotification,
)


# Epoch values at or above this are milliseconds (1e11 s is the year 5138)
_EPOCH_MILLISECONDS_FROM = 1e11


def _epoch_seconds(value: float) -> float:
    return value / 1000 if abs(value) >= _EPOCH_MILLISECONDS_FROM else value


def _timestamp_sort_key(configuration: BroadcastConfiguration) -> float:
    """
    Epoch seconds of a configuration timestamp, or -inf when unreadable.

    Epoch seconds, epoch milliseconds, numeric strings and ISO-8601 are all
    brought to seconds so mixed formats sort together.
    """
    value = configuration.timestamp
    if isinstance(value, bool) or value is None:
        return float("-inf")
    if isinstance(value, int | float):
        return _epoch_seconds(float(value))
    try:
        return _epoch_seconds(float(value))
    except (TypeError, ValueError):
        pass
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp()
    except ValueError:
        return float("-inf")


class EventSenderClient(IEventSender):
    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str = settings.event_sender_url,
    ):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.logger = get_logger(__name__)

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        url = f"{self.base_url}/{path}"
        try:
            async with self.session.post(url, json=payload) as response:
                if response.status >= 300:
                    error_text = await response.text()
                    self.logger.error(
                        f"Event sender {path} failed: {response.status} - {error_text}"
                    )
                    raise UpstreamUnavailable(
                        f"event sender {path} failed: {error_text}",
                        status=response.status,
                    )
                body = await response.text()
        except aiohttp.ClientError as e:
            raise UpstreamUnavailable(f"event sender {path} failed: {e}") from e
        return json.loads(body) if body else None

    async def latest_broadcast_configuration(
        self, tenant_id: str
    ) -> BroadcastConfiguration | None:
        """
        Fetch the newest broadcast configuration for a server.

        Returns:
            The configuration with the highest timestamp, or None if the
            server never saved one
        """
        payload = {
            "key": tenant_id,
            "event_types": [BROADCAST_CONFIGURATION_EVENT],
            "after": 0,
            "limit": 1,
        }
        events = await self._post("query", payload) or {}
        raw_configurations = events.get(BROADCAST_CONFIGURATION_EVENT) or []

        configurations = [
            BroadcastConfiguration.model_validate(item) for item in raw_configurations
        ]
        if not configurations:
            return None
        configurations.sort(key=_timestamp_sort_key, reverse=True)
        return configurations[0]

    async def send_broadcast(self, tenant_id: str, title: str, video_url: str) -> None:
        notification = BroadcastNotification(key=tenant_id, title=title, video=video_url)
        await self._post("post", notification.model_dump())
        self.logger.info(f"Broadcast forwarded: {title}")
