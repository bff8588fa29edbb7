"""Twitch Helix integration."""

from .client import TwitchClient, TwitchUrlBuilder
from .factory import create_twitch_client
from .mock_client import MockTwitchClient
from .token_manager import TokenManager

__all__ = [
    "MockTwitchClient",
    "TokenManager",
    "TwitchClient",
    "TwitchUrlBuilder",
    "create_twitch_client",
]
