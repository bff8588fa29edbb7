"""Configuration for the Twitch notifier."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
