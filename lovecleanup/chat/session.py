"""
Conversation session state.

Owns the bounded history window, the per-session request budget and the
opaque handle of any external conversation thread.
"""

from __future__ import annotations

from collections import deque
from typing import Any

from loguru import logger

from lovecleanup.chat.models import HistoryEntry
from lovecleanup.core.errors import SessionLimitReached

DEFAULT_WINDOW = 20
DEFAULT_REQUEST_LIMIT = 50


class ConversationSession:
    """
    Rolling history plus request counter for one conversation.

    History is FIFO-trimmed so it never holds more than ``window_size``
    entries. Entries are immutable once appended.

    Attributes:
        window_size: Maximum number of retained entries.
        request_limit: Remote requests allowed before ``reset()``.
        request_count: Requests recorded so far.
        generation: Bumped by every ``reset()``; lets a turn in flight notice it
            belongs to a conversation that no longer exists.
        thread_handle: Opaque id of a remote thread, if one was created.
    """

    def __init__(
        self,
        window_size: int = DEFAULT_WINDOW,
        request_limit: int = DEFAULT_REQUEST_LIMIT,
    ) -> None:
        if window_size < 1:
            raise ValueError("window_size must be positive")
        if request_limit < 1:
            raise ValueError("request_limit must be positive")

        self.window_size = window_size
        self.request_limit = request_limit
        self.request_count = 0
        self.generation = 0
        self.thread_handle: str | None = None
        self._history: deque[HistoryEntry] = deque(maxlen=window_size)

    def append(self, role: str, content: str) -> HistoryEntry:
        """Append an entry, evicting the oldest ones past the window."""
        entry = HistoryEntry(role=role, content=content)
        self._history.append(entry)
        return entry

    def window(self) -> tuple[HistoryEntry, ...]:
        """Snapshot of the retained history, oldest first."""
        return tuple(self._history)

    def __len__(self) -> int:
        return len(self._history)

    @property
    def limit_reached(self) -> bool:
        """Whether the request budget is used up."""
        return self.request_count >= self.request_limit

    def requests_remaining(self) -> int:
        """Requests left before the session limit."""
        return max(self.request_limit - self.request_count, 0)

    def record_request(self) -> int:
        """
        Count one remote turn.

        Returns:
            The new request count.

        Raises:
            SessionLimitReached: If the budget was already exhausted.
        """
        if self.limit_reached:
            raise SessionLimitReached(self.request_limit)
        self.request_count += 1
        return self.request_count

    def reset(self) -> None:
        """Clear history and counters and drop the external thread handle."""
        self._history.clear()
        self.request_count = 0
        self.generation += 1
        if self.thread_handle is not None:
            logger.debug(f"Dropping thread handle {self.thread_handle}")
        self.thread_handle = None

    def stats(self) -> dict[str, Any]:
        """Session statistics for status displays."""
        return {
            "message_count": len(self._history),
            "request_count": self.request_count,
            "requests_remaining": self.requests_remaining(),
            "request_limit": self.request_limit,
            "thread_handle": self.thread_handle,
        }
