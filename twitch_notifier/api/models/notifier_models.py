"""Request bodies of the management endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class DiscordServerRequest(BaseModel):
    """Body of ``POST /listTwitchNotifiers``."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    discord_server: str = Field(..., min_length=1)


class NotifierRequest(DiscordServerRequest):
    """Body of ``POST /addTwitchNotifier`` and ``POST /removeTwitchNotifier``."""

    twitch_url: str = Field(..., min_length=1)
