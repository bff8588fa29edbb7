"""Chooses the live or mock Twitch client from settings."""

import aiohttp

from twitch_notifier.core.config.settings import Settings, settings
from twitch_notifier.core.logging.logger import get_logger
from twitch_notifier.domain.interfaces.twitch_interface import ITwitchClient

from .client import TwitchClient
from .mock_client import MockTwitchClient


def create_twitch_client(
    session: aiohttp.ClientSession, config: Settings = settings
) -> ITwitchClient:
    """Live client when CLIENT_ID is set, otherwise the offline mock."""
    logger = get_logger(__name__)
    if config.uses_mock_twitch:
        logger.warning("CLIENT_ID not set - using mock Twitch client")
        return MockTwitchClient()

    return TwitchClient(
        session=session,
        client_id=config.client_id,
        client_secret=config.client_secret,
        callback_url=config.callback_url,
        secret=config.secret,
        api_url=config.twitch_api_url,
        auth_url=config.twitch_auth_url,
    )
