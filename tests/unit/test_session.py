"""
Unit tests for ConversationSession.
"""

import dataclasses

import pytest

from lovecleanup.chat.session import ConversationSession
from lovecleanup.core.errors import SessionLimitReached


class TestHistoryWindow:
    """Tests for the bounded history."""

    def test_append_returns_entry(self, session: ConversationSession) -> None:
        """Test append stores and returns the entry."""
        entry = session.append("user", "oi")

        assert entry.role == "user"
        assert entry.content == "oi"
        assert session.window() == (entry,)

    def test_never_exceeds_window(self) -> None:
        """Test FIFO eviction keeps the newest entries."""
        session = ConversationSession(window_size=4)

        for i in range(10):
            session.append("user", f"m{i}")
            assert len(session) <= 4

        assert [entry.content for entry in session.window()] == ["m6", "m7", "m8", "m9"]

    def test_entries_are_immutable(self, session: ConversationSession) -> None:
        """Test entries cannot be changed after append."""
        entry = session.append("assistant", "olá")

        with pytest.raises(dataclasses.FrozenInstanceError):
            entry.content = "outro"  # type: ignore[misc]

    def test_window_is_snapshot(self, session: ConversationSession) -> None:
        """Test the returned window does not track later appends."""
        snapshot = session.window()
        session.append("user", "oi")

        assert snapshot == ()

    @pytest.mark.parametrize("kwargs", [{"window_size": 0}, {"request_limit": 0}])
    def test_rejects_non_positive_sizes(self, kwargs: dict) -> None:
        """Test invalid sizes are rejected."""
        with pytest.raises(ValueError):
            ConversationSession(**kwargs)


class TestRequestBudget:
    """Tests for the request counter."""

    def test_record_until_limit(self) -> None:
        """Test the counter stops at the limit."""
        session = ConversationSession(request_limit=2)

        assert session.record_request() == 1
        assert session.record_request() == 2
        assert session.limit_reached
        assert session.requests_remaining() == 0

        with pytest.raises(SessionLimitReached) as exc_info:
            session.record_request()

        assert exc_info.value.limit == 2
        assert session.request_count == 2


class TestReset:
    """Tests for reset."""

    def test_reset_clears_everything(self) -> None:
        """Test reset clears history, counter and thread handle."""
        session = ConversationSession(request_limit=5)
        session.append("user", "oi")
        session.record_request()
        session.thread_handle = "thread_abc"

        session.reset()

        assert session.window() == ()
        assert session.requests_remaining() == 5
        assert session.thread_handle is None

    def test_reset_is_idempotent(self, session: ConversationSession) -> None:
        """Test resetting twice gives the same state."""
        session.append("user", "oi")
        session.reset()
        first = session.stats()
        session.reset()

        assert session.stats() == first
        assert session.requests_remaining() == session.request_limit

    def test_stats(self, session: ConversationSession) -> None:
        """Test stats reports counters."""
        session.append("user", "oi")
        session.record_request()

        stats = session.stats()

        assert stats["message_count"] == 1
        assert stats["request_count"] == 1
        assert stats["requests_remaining"] == 49
        assert stats["thread_handle"] is None
