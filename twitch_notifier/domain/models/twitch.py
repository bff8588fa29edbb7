"""Helix response models used by the notifier."""

from pydantic import BaseModel, ConfigDict, Field


class HelixModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class BroadcasterUser(HelixModel):
    """``GET /users`` entry."""

    id: str
    login: str
    display_name: str = ""


class ChannelInfo(HelixModel):
    """``GET /channels`` entry."""

    broadcaster_id: str
    broadcaster_login: str = ""
    broadcaster_name: str = ""
    title: str = ""
    game_name: str = ""


class EventSubSubscription(HelixModel):
    """``POST /eventsub/subscriptions`` entry."""

    id: str
    status: str = ""
    type: str = ""
    version: str = ""
    condition: dict[str, str] = Field(default_factory=dict)


class AppAccessToken(HelixModel):
    """Client-credentials grant response."""

    access_token: str
    expires_in: int | None = None
    token_type: str = "bearer"
