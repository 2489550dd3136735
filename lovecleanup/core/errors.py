"""
Error taxonomy for LoveCleanup.

Provider errors are raised by backends and always caught by the provider
chain, which turns them into a tagged ``AIResponse``. They never reach the
caller of ``ProviderChain.respond``.
"""

from enum import Enum

# =============================================================================
# ERROR TAGS
# =============================================================================


class ErrorTag(str, Enum):
    """Error tags surfaced on responses for UI display."""

    SESSION_LIMIT = "session_limit"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_KEY = "invalid_key"
    REMOTE_UNAVAILABLE = "remote_unavailable"
    MALFORMED_RESPONSE = "malformed_response"
    INTERNAL_ERROR = "internal_error"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class LoveCleanupError(Exception):
    """Base exception for LoveCleanup errors."""

    pass


class ProviderError(LoveCleanupError):
    """A remote text-generation backend failed."""

    tag: ErrorTag = ErrorTag.REMOTE_UNAVAILABLE
    sticky: bool = False

    def __init__(self, provider: str, message: str = "") -> None:
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}" if message else provider)


class RemoteUnavailable(ProviderError):
    """Network, timeout or non-2xx failure. Safe to retry on a later turn."""

    tag = ErrorTag.REMOTE_UNAVAILABLE


class MalformedResponse(RemoteUnavailable):
    """Backend answered 2xx but the payload lacked the expected field."""

    tag = ErrorTag.MALFORMED_RESPONSE


class QuotaExhausted(ProviderError):
    """Billing quota exhausted. Disables the backend for the process lifetime."""

    tag = ErrorTag.QUOTA_EXCEEDED
    sticky = True


class InvalidCredential(ProviderError):
    """API key rejected. Disables the backend for the process lifetime."""

    tag = ErrorTag.INVALID_KEY
    sticky = True


class SessionLimitReached(LoveCleanupError):
    """The conversation used up its request budget."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Session request limit of {limit} reached")


class SessionNotFound(LoveCleanupError):
    """Unknown chat or confirmation session id (HTTP layer only)."""

    def __init__(self, kind: str, session_id: str) -> None:
        self.kind = kind
        self.session_id = session_id
        super().__init__(f"Unknown {kind} session: {session_id}")
