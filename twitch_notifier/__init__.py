"""
Twitch Notifier - Twitch EventSub stream.online fan-out to Discord servers.

Example:
    from twitch_notifier import TwitchNotifier

    TwitchNotifier(store="redis").run()
"""

from .core.config.settings import settings
from .core.notifier_app import TwitchNotifier

__version__ = settings.version

__all__ = ["TwitchNotifier", "__version__"]
