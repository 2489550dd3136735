"""
In-process registry of chat and confirmation sessions.

Each HTTP client flow owns its own ``LunaChat`` and ``ConfirmationSession``.
The remote backends are shared by every chat of the process, so a quota or
credential failure disables a backend for all conversations. Sessions left
idle longer than the configured timeout are evicted.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Collection, Mapping, Sequence
from uuid import uuid4

from loguru import logger

from lovecleanup.chat.engine import LunaChat
from lovecleanup.cleanup.confirmation import ConfirmationSession
from lovecleanup.cleanup.executor import (
    CleanupCategory,
    CleanupExecutor,
    SimulatedCleanupExecutor,
)
from lovecleanup.core.config import Settings, get_settings
from lovecleanup.core.errors import SessionNotFound
from lovecleanup.providers.base import TextProvider
from lovecleanup.providers.chain import build_providers, close_providers

ChatFactory = Callable[[], LunaChat]


class SessionRegistry:
    """
    Owns every live session of the API process.

    Args:
        chat_factory: Builds a new ``LunaChat``. Defaults to one over the
            process-wide backends.
        executor: Collaborator run when a confirmation commits.
        settings: Source of the backend configuration and the idle timeout.
        idle_timeout: Seconds a session may stay unused before eviction.
        clock: Monotonic time source.
        providers: Backends shared by every chat. Built from settings on
            first use when omitted.
    """

    def __init__(
        self,
        chat_factory: ChatFactory | None = None,
        executor: CleanupExecutor | None = None,
        settings: Settings | None = None,
        idle_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        providers: Sequence[TextProvider] | None = None,
    ) -> None:
        self.chat_factory = chat_factory or self._default_chat
        self.executor = executor or SimulatedCleanupExecutor()
        self._settings = settings
        self._idle_timeout = idle_timeout
        self.clock = clock
        self.chats: dict[str, LunaChat] = {}
        self.confirmations: dict[str, ConfirmationSession] = {}
        self.last_used: dict[str, float] = {}
        self._providers: list[TextProvider] | None = list(providers) if providers is not None else None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def idle_timeout(self) -> float:
        if self._idle_timeout is None:
            return self.settings.lovecleanup_session_idle_timeout
        return self._idle_timeout

    @property
    def providers(self) -> list[TextProvider]:
        """Backends shared by every chat, built on first use."""
        if self._providers is None:
            self._providers = build_providers(self.settings)
        return self._providers

    def _default_chat(self) -> LunaChat:
        return LunaChat(settings=self.settings, providers=self.providers)

    def touch(self, session_id: str) -> None:
        """Mark a session as used now."""
        self.last_used[session_id] = self.clock()

    # =========================================================================
    # CHAT
    # =========================================================================

    def create_chat(self) -> tuple[str, LunaChat]:
        session_id = str(uuid4())
        chat = self.chat_factory()
        self.chats[session_id] = chat
        self.touch(session_id)
        logger.info(f"Chat session {session_id} created")
        return session_id, chat

    def get_chat(self, session_id: str) -> LunaChat:
        """
        Look up a chat session.

        Raises:
            SessionNotFound: If the id is unknown.
        """
        chat = self.chats.get(session_id)
        if chat is None:
            raise SessionNotFound("chat", session_id)
        self.touch(session_id)
        return chat

    async def close_chat(self, session_id: str) -> None:
        chat = self.chats.pop(session_id, None)
        if chat is None:
            raise SessionNotFound("chat", session_id)
        self.last_used.pop(session_id, None)
        await chat.aclose()
        logger.info(f"Chat session {session_id} closed")

    # =========================================================================
    # CONFIRMATION
    # =========================================================================

    def create_confirmation(
        self, target_counts: Mapping[CleanupCategory | str, int]
    ) -> ConfirmationSession:
        confirmation = ConfirmationSession(target_counts)
        self.confirmations[confirmation.id] = confirmation
        self.touch(confirmation.id)
        return confirmation

    def get_confirmation(self, confirmation_id: str) -> ConfirmationSession:
        """
        Look up an open confirmation.

        Raises:
            SessionNotFound: If the id is unknown or the session was discarded.
        """
        confirmation = self.confirmations.get(confirmation_id)
        if confirmation is None:
            raise SessionNotFound("confirmation", confirmation_id)
        self.touch(confirmation_id)
        return confirmation

    def discard_confirmation(self, confirmation_id: str) -> None:
        """Forget a cancelled or committed confirmation."""
        self.confirmations.pop(confirmation_id, None)
        self.last_used.pop(confirmation_id, None)

    # =========================================================================
    # EVICTION
    # =========================================================================

    async def evict_idle(self, keep: Collection[str] = ()) -> int:
        """
        Close chats and drop confirmations unused for ``idle_timeout`` seconds.

        Args:
            keep: Session ids never evicted, such as chats with a live socket.

        Returns:
            Number of sessions evicted.
        """
        deadline = self.clock() - self.idle_timeout
        idle = [sid for sid, used in self.last_used.items() if used <= deadline and sid not in keep]

        for session_id in idle:
            self.last_used.pop(session_id, None)
            chat = self.chats.pop(session_id, None)
            if chat is not None:
                await chat.aclose()
            self.confirmations.pop(session_id, None)

        if idle:
            logger.info(f"Evicted {len(idle)} idle sessions")
        return len(idle)

    async def aclose(self) -> None:
        """Close every chat and the shared backends, and drop all sessions."""
        for chat in self.chats.values():
            await chat.aclose()
        self.chats.clear()
        self.confirmations.clear()
        self.last_used.clear()
        if self._providers is not None:
            await close_providers(self._providers)
            self._providers = None


registry = SessionRegistry()


def get_registry() -> SessionRegistry:
    """FastAPI dependency returning the process registry."""
    return registry
