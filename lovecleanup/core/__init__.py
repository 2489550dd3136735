"""Configuration, logging and error types shared across LoveCleanup."""

from lovecleanup.core.config import Settings, clear_settings_cache, get_settings
from lovecleanup.core.errors import (
    ErrorTag,
    InvalidCredential,
    LoveCleanupError,
    MalformedResponse,
    ProviderError,
    QuotaExhausted,
    RemoteUnavailable,
    SessionLimitReached,
    SessionNotFound,
)

__all__ = [
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "ErrorTag",
    "LoveCleanupError",
    "ProviderError",
    "RemoteUnavailable",
    "MalformedResponse",
    "QuotaExhausted",
    "InvalidCredential",
    "SessionLimitReached",
    "SessionNotFound",
]
