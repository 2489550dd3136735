"""
Base interface for remote text-generation backends.

Every backend (free public endpoints, the OpenAI assistant, Claude) inherits
from ``TextProvider``. Readiness is an explicit typed state set by
``initialize()``; sticky errors disable a backend for the process lifetime.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from lovecleanup.chat.models import ChatContext, HistoryEntry
from lovecleanup.core.errors import ErrorTag, ProviderError

if TYPE_CHECKING:
    from lovecleanup.chat.session import ConversationSession

# =============================================================================
# ENUMS
# =============================================================================


class ProviderState(str, Enum):
    """Readiness of a backend."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


# =============================================================================
# MODELS
# =============================================================================


class ProviderDescriptor(BaseModel):
    """Static name and priority of a backend (lower priority runs first)."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Backend name used in logs and responses")
    priority: int = Field(ge=0, description="Attempt order, ascending")


@dataclass
class ProviderRequest:
    """Everything a backend needs for one attempt."""

    message: str
    prompt: str
    system_prompt: str
    session: ConversationSession
    context: ChatContext | None = None
    history: tuple[HistoryEntry, ...] = field(default_factory=tuple)

    def chat_messages(self, limit: int = 6) -> list[dict[str, str]]:
        """System prompt, the last ``limit`` history entries and the prompt."""
        recent = self.history[-limit:] if limit else ()
        return [
            {"role": "system", "content": self.system_prompt},
            *(entry.to_dict() for entry in recent),
            {"role": "user", "content": self.prompt},
        ]


# =============================================================================
# PROVIDER
# =============================================================================


class TextProvider(ABC):
    """
    Abstract remote text-generation backend.

    Subclasses implement ``generate`` and raise ``ProviderError`` subclasses
    on any failure. They never return empty text.
    """

    def __init__(self, name: str, priority: int) -> None:
        self.descriptor = ProviderDescriptor(name=name, priority=priority)
        self.state = ProviderState.UNINITIALIZED
        self.sticky_error: ErrorTag | None = None

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def priority(self) -> int:
        return self.descriptor.priority

    @property
    def available(self) -> bool:
        """Whether the chain should attempt this backend."""
        return self.state != ProviderState.FAILED and self.sticky_error is None

    async def initialize(self) -> ProviderState:
        """Prepare the backend. Default: nothing to prepare."""
        self.state = ProviderState.READY
        return self.state

    @abstractmethod
    async def generate(self, request: ProviderRequest) -> str:
        """
        Produce reply text for a request.

        Raises:
            ProviderError: On any failure.
        """
        ...

    def mark_sticky(self, error: ProviderError) -> None:
        """Disable this backend after a quota or credential failure."""
        if not error.sticky:
            return
        self.sticky_error = error.tag
        logger.warning(f"Provider {self.name} disabled: {error.tag.value}")

    def reset_sticky(self, tag: ErrorTag | None = None) -> None:
        """Clear the sticky flag (all flags, or only ``tag``)."""
        if tag is None or self.sticky_error == tag:
            self.sticky_error = None

    def reset_thread(self) -> None:
        """Forget per-conversation remote state. Default: none kept."""
        return None

    async def aclose(self) -> None:
        """Release network resources."""
        return None

    def stats(self) -> dict[str, Any]:
        """Status snapshot."""
        return {
            "name": self.name,
            "priority": self.priority,
            "state": self.state.value,
            "sticky_error": self.sticky_error.value if self.sticky_error else None,
            "available": self.available,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"
