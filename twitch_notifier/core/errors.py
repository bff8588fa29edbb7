"""
Exception hierarchy for the Twitch notifier.

Every failure the service knows about is a NotifierError carrying an
ErrorCode. The HTTP layer renders all of them as ``{"message": ...}``.
"""

from .types import ErrorCode


class NotifierError(Exception):
    """Base exception for notifier errors."""

    def __init__(self, message: str, error_code: ErrorCode):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class AuthenticationFailure(NotifierError):
    """Raised when a webhook signature does not match."""

    def __init__(self, message: str = "Webhook signature verification failed"):
        super().__init__(message, ErrorCode.AUTHENTICATION_FAILED)


class MalformedPayload(NotifierError):
    """Raised when a request is missing fields or does not parse."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.MALFORMED_PAYLOAD)


class UpstreamUnavailable(NotifierError):
    """Raised when Twitch or the event sender fails a call."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message, ErrorCode.UPSTREAM_UNAVAILABLE)


class NotFound(NotifierError):
    """Raised when a broadcaster, channel or subscription does not exist."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.NOT_FOUND)


class ConfigurationError(NotifierError):
    """Raised when a required setting is missing at the moment it is needed."""

    def __init__(self, setting_name: str):
        self.setting_name = setting_name
        super().__init__(
            f"no {setting_name} defined!", ErrorCode.CONFIGURATION_ERROR
        )


class Conflict(NotifierError):
    """Raised when concurrent changes to a record keep invalidating an update."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFLICT)
