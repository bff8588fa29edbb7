"""
EventSub message models.

One pydantic model per message type. Raw webhook input is validated into one
of these at the boundary; anything that does not fit becomes MalformedPayload.
"""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from twitch_notifier.core.errors import MalformedPayload

# Notification request headers (Starlette header lookup is case-insensitive)
MESSAGE_ID_HEADER = "twitch-eventsub-message-id"
MESSAGE_TIMESTAMP_HEADER = "twitch-eventsub-message-timestamp"
MESSAGE_SIGNATURE_HEADER = "twitch-eventsub-message-signature"
MESSAGE_TYPE_HEADER = "twitch-eventsub-message-type"


class MessageType(str, Enum):
    """Declared EventSub message types."""

    VERIFICATION = "webhook_callback_verification"
    NOTIFICATION = "notification"
    REVOCATION = "revocation"
    UNKNOWN = "unknown"

    @classmethod
    def from_header(cls, value: str | None) -> "MessageType":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


class MessageHeaders(BaseModel):
    """The four EventSub headers of a delivery."""

    message_id: str = ""
    message_timestamp: str = ""
    message_signature: str = ""
    message_type: MessageType = MessageType.UNKNOWN

    @classmethod
    def from_mapping(cls, headers: Any) -> "MessageHeaders":
        """
        Read EventSub headers from a request header mapping.

        Absent headers read as empty strings. They are not rejected here: a
        delivery without them cannot carry a matching signature, so signature
        verification turns them away.
        """
        return cls(
            message_id=headers.get(MESSAGE_ID_HEADER) or "",
            message_timestamp=headers.get(MESSAGE_TIMESTAMP_HEADER) or "",
            message_signature=headers.get(MESSAGE_SIGNATURE_HEADER) or "",
            message_type=MessageType.from_header(headers.get(MESSAGE_TYPE_HEADER)),
        )


class SubscriptionInfo(BaseModel):
    """The subscription object Twitch embeds in every message."""

    model_config = ConfigDict(extra="ignore")

    id: str
    status: str | None = None
    type: str | None = None
    version: str | None = None
    condition: dict[str, Any] = Field(default_factory=dict)
    created_at: str | None = None


class VerificationMessage(BaseModel):
    """``webhook_callback_verification``: echo the challenge back."""

    model_config = ConfigDict(extra="ignore")

    challenge: str
    subscription: SubscriptionInfo | None = None


class RevocationMessage(BaseModel):
    """``revocation``: Twitch dropped one of our subscriptions."""

    model_config = ConfigDict(extra="ignore")

    subscription: SubscriptionInfo


class StreamOnlineEvent(BaseModel):
    """Event body of a ``stream.online`` notification."""

    model_config = ConfigDict(extra="ignore")

    broadcaster_user_id: str
    broadcaster_user_login: str | None = None
    broadcaster_user_name: str | None = None
    id: str | None = None
    type: str | None = None
    started_at: str | None = None


class NotificationMessage(BaseModel):
    """``notification``: a broadcaster went live."""

    model_config = ConfigDict(extra="ignore")

    subscription: SubscriptionInfo
    event: StreamOnlineEvent


def _load_json(raw_body: bytes) -> dict[str, Any]:
    try:
        payload = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedPayload(f"request body is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedPayload("request body must be a JSON object")
    return payload


def parse_message(
    message_type: MessageType, raw_body: bytes
) -> VerificationMessage | RevocationMessage | NotificationMessage:
    """
    Validate a raw body into the variant for its declared message type.

    Unknown message types are treated like notifications, which is how the
    pipeline routes anything that is not verification or revocation.

    Raises:
        MalformedPayload: If the body is not JSON or misses required fields
    """
    payload = _load_json(raw_body)
    model: type[BaseModel]
    if message_type == MessageType.VERIFICATION:
        model = VerificationMessage
    elif message_type == MessageType.REVOCATION:
        model = RevocationMessage
    else:
        model = NotificationMessage

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise MalformedPayload(
            f"invalid {message_type.value} payload: {e.error_count()} validation error(s)"
        ) from e
