"""
Core: configuration, logging, errors, the application factory and plugins.
"""

from .config.settings import settings
from .errors import (
    AuthenticationFailure,
    ConfigurationError,
    Conflict,
    MalformedPayload,
    NotFound,
    NotifierError,
    UpstreamUnavailable,
)
from .types import ErrorCode, StoreType

__all__ = [
    "AuthenticationFailure",
    "ConfigurationError",
    "Conflict",
    "ErrorCode",
    "MalformedPayload",
    "NotFound",
    "NotifierError",
    "StoreType",
    "UpstreamUnavailable",
    "settings",
]
