from .notifier_models import DiscordServerRequest, NotifierRequest

__all__ = ["DiscordServerRequest", "NotifierRequest"]
