"""Application factory."""

from .notifier_builder import NotifierBuilder
from .plugin import NotifierPlugin

__all__ = ["NotifierBuilder", "NotifierPlugin"]
