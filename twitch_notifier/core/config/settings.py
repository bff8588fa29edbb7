"""
Settings for the Twitch notifier service.

Environment variable configuration for the webhook receiver, the Twitch API
client, the downstream event sender and the subscription store. A ``.env``
in the working directory is loaded first.
"""

import os
import tomllib
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(".env")

_FALLBACK_VERSION = "0.1.0"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
ENVIRONMENTS = ("DEV", "PROD")


def _project_version() -> str:
    """``project.version`` from the nearest pyproject.toml above this file."""
    here = Path(__file__).resolve()
    for directory in here.parents:
        candidate = directory / "pyproject.toml"
        if not candidate.is_file():
            continue
        try:
            with candidate.open("rb") as f:
                version = tomllib.load(f).get("project", {}).get("version")
        except (OSError, tomllib.TOMLDecodeError):
            continue
        if version:
            return version
    return _FALLBACK_VERSION


class Settings:
    """Values read from the environment when the object is created."""

    def __init__(self):
        # --- service ---------------------------------------------------------
        self.version: str = _project_version()
        self.port: int = int(os.getenv("PORT", "8000"))
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.log_dir: str = os.getenv("LOG_DIR", "./logs")
        self.environment: str = os.getenv("ENVIRONMENT", "DEV")

        # --- EventSub webhook ------------------------------------------------
        # Shared HMAC secret, also handed to Twitch when subscriptions are created
        self.secret: str | None = os.getenv("SECRET")
        # Public URL Twitch delivers notifications to (our POST /events)
        self.callback_url: str | None = os.getenv("CALLBACK_URL")
        self.dedup_ttl_seconds: int = int(os.getenv("DEDUP_TTL_SECONDS", "600"))

        # --- Twitch API ------------------------------------------------------
        self.client_id: str | None = os.getenv("CLIENT_ID")
        self.client_secret: str | None = os.getenv("CLIENT_SECRET")
        self.twitch_api_url: str = os.getenv(
            "TWITCH_API_URL", "https://api.twitch.tv/helix"
        )
        self.twitch_auth_url: str = os.getenv(
            "TWITCH_AUTH_URL", "https://id.twitch.tv/oauth2/token"
        )

        # --- event sender ----------------------------------------------------
        self.event_sender_url: str = os.getenv(
            "EVENT_SENDER_URL", "http://localhost:3000"
        )

        # --- subscription store ----------------------------------------------
        self.store_backend: str = os.getenv("STORE_BACKEND", "memory").lower()
        self.redis_url: str | None = os.getenv("REDIS_URL")
        self.redis_max_connections: int = int(os.getenv("REDIS_MAX_CONNECTIONS", "64"))

        self._normalize()

    def _normalize(self) -> None:
        """
        Raises:
            ValueError: LOG_LEVEL is not one of LOG_LEVELS
        """
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {list(LOG_LEVELS)}")

        self.environment = self.environment.upper()
        if self.environment not in ENVIRONMENTS:
            self.environment = "DEV"

    @property
    def uses_mock_twitch(self) -> bool:
        """True when CLIENT_ID is unset and the offline Twitch client is used."""
        return not self.client_id

    @property
    def has_redis(self) -> bool:
        return self.redis_url is not None

    @property
    def is_development(self) -> bool:
        return self.environment == "DEV"

    @property
    def is_production(self) -> bool:
        return self.environment == "PROD"


settings = Settings()
