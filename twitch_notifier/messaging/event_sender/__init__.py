"""Downstream event sender integration."""

from .client import EventSenderClient

__all__ = ["EventSenderClient"]
