"""ASGI entry point: ``uvicorn twitch_notifier.main:create_app --factory``."""

from fastapi import FastAPI

from twitch_notifier.core.config.settings import settings
from twitch_notifier.core.notifier_app import TwitchNotifier


def create_app() -> FastAPI:
    """Build the application for the store backend named by STORE_BACKEND."""
    return TwitchNotifier(store=settings.store_backend).app
