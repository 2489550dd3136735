"""
Data model for the Luna chat engine.

Enums for classification results, the caller-supplied chat context, and
the immutable message/history records owned by a conversation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from lovecleanup.core.errors import ErrorTag

# =============================================================================
# ENUMS
# =============================================================================


class Mood(str, Enum):
    """Mood derived from user text."""

    NEUTRAL = "neutral"
    SAD = "sad"
    ANXIOUS = "anxious"
    ANGRY = "angry"
    HOPEFUL = "hopeful"
    CONFUSED = "confused"


class Intent(str, Enum):
    """Intent derived from user text."""

    TECHNICAL = "technical"
    MOTIVATIONAL = "motivational"
    EMOTIONAL = "emotional"
    GENERAL = "general"
    GREETING = "greeting"
    GRATITUDE = "gratitude"


class ResponseType(str, Enum):
    """Type tag attached to a reply; keys the quick-reply table."""

    EMOTIONAL = "emotional"
    TECHNICAL = "technical"
    MOTIVATIONAL = "motivational"
    GENERAL = "general"
    GREETING = "greeting"
    FALLBACK = "fallback"


class ConversationStage(str, Enum):
    """How far along the conversation is, by history length."""

    INITIAL = "initial"
    EARLY = "early"
    DEVELOPING = "developing"
    ESTABLISHED = "established"


class ChatStage(str, Enum):
    """Where the user is in the cleanup journey."""

    ONBOARDING = "onboarding"
    ACTIVE_CLEANUP = "active_cleanup"
    POST_CLEANUP = "post_cleanup"


class AppState(str, Enum):
    """Screen the user was on when chatting."""

    SCANNING_PHOTOS = "scanning_photos"
    DELETING_MESSAGES = "deleting_messages"
    SOCIAL_CLEANUP = "social_cleanup"
    PROGRESS_VIEW = "progress_view"
    DASHBOARD = "dashboard"


class Sender(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


# =============================================================================
# PYDANTIC MODELS
# =============================================================================


class ChatContext(BaseModel):
    """Caller-supplied snapshot of the UI state. Never mutated by the engine."""

    model_config = ConfigDict(frozen=True)

    stage: ChatStage = Field(default=ChatStage.ONBOARDING, description="Cleanup journey stage")
    user_mood: Mood = Field(default=Mood.NEUTRAL, description="Mood as known by the UI")
    last_action: str | None = Field(default=None, description="Last action taken in the app")
    days_active: int = Field(default=0, ge=0, description="Days since the user started")
    user_name: str | None = Field(default=None, description="Display name")
    app_state: AppState | None = Field(default=None, description="Current screen")


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass(frozen=True)
class HistoryEntry:
    """One entry of the rolling conversation window."""

    role: str  # 'user' or 'assistant'
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to the role/content mapping most chat APIs expect."""
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class Message:
    """Single chat message shown to the user.

    Frozen: streaming updates create a new instance with ``dataclasses.replace``.
    """

    sender: Sender
    text: str
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    response_type: ResponseType | None = None
    quick_replies: tuple[str, ...] = ()
    streaming: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "sender": self.sender.value,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
            "response_type": self.response_type.value if self.response_type else None,
            "quick_replies": list(self.quick_replies),
            "streaming": self.streaming,
        }


@dataclass
class AIResponse:
    """Result of one chat turn. Always populated, even on failure."""

    text: str
    type: ResponseType
    quick_replies: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)
    error: ErrorTag | None = None
    source: str = "fallback"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "text": self.text,
            "type": self.type.value,
            "quick_replies": list(self.quick_replies),
            "timestamp": self.timestamp.isoformat(),
            "error": self.error.value if self.error else None,
            "source": self.source,
        }
