"""Pytest configuration and shared fixtures."""

import os
import random
from collections.abc import Generator

import pytest

# Set test environment: no real keys, no free endpoints, no delays
os.environ["OPENAI_API_KEY"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ.setdefault("LOVECLEANUP_FREE_PROVIDERS", "false")
os.environ.setdefault("LOVECLEANUP_STREAM_MIN_DELAY_MS", "0")
os.environ.setdefault("LOVECLEANUP_STREAM_MAX_DELAY_MS", "0")
os.environ.setdefault("LOVECLEANUP_LOG_LEVEL", "DEBUG")


async def no_sleep(_seconds: float) -> None:
    """Sleep replacement that returns immediately."""
    return None


@pytest.fixture
def mock_settings() -> Generator:
    """Clear the settings cache around a test."""
    from lovecleanup.core.config import clear_settings_cache

    clear_settings_cache()

    yield

    clear_settings_cache()


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(1312)


@pytest.fixture
def session():
    """Fresh conversation session with default limits."""
    from lovecleanup.chat.session import ConversationSession

    return ConversationSession()


@pytest.fixture
def generator(rng):
    """Response generator with a seeded random source."""
    from lovecleanup.chat.generator import ResponseGenerator

    return ResponseGenerator(rng=rng)


@pytest.fixture
def offline_chain(session, generator):
    """Provider chain with no remote backends."""
    from lovecleanup.providers.chain import ProviderChain

    return ProviderChain([], generator, session)


@pytest.fixture
def instant_streaming(rng):
    """Streaming delivery that never waits."""
    from lovecleanup.chat.streaming import StreamingDelivery

    return StreamingDelivery(min_delay_ms=0, max_delay_ms=0, rng=rng, sleep=no_sleep)


@pytest.fixture
def sample_counts() -> dict:
    """Per-category counts shown on the risk disclosure step."""
    return {"messages": 120, "photos": 80, "social": 40, "financial": 10}


@pytest.fixture
def sample_context():
    """Typical chat context during an active cleanup."""
    from lovecleanup.chat.models import AppState, ChatContext, ChatStage, Mood

    return ChatContext(
        stage=ChatStage.ACTIVE_CLEANUP,
        user_mood=Mood.SAD,
        last_action="deleted_photos",
        days_active=3,
        user_name="Ana",
        app_state=AppState.SCANNING_PHOTOS,
    )


# Markers
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
