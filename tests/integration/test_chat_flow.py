"""
Integration tests for complete chat conversations.

The chain runs with real classifier, generator, session and streaming; only
the remote backends are replaced.
"""

import random

import pytest

from lovecleanup.chat.classifier import classify
from lovecleanup.chat.engine import LunaChat
from lovecleanup.chat.generator import ResponseGenerator, quick_replies_for
from lovecleanup.chat.models import Intent, Mood, ResponseType, Sender
from lovecleanup.chat.session import ConversationSession
from lovecleanup.chat.streaming import StreamingDelivery
from lovecleanup.chat.templates import MOOD_POOLS, SESSION_LIMIT_REPLY
from lovecleanup.core.errors import ErrorTag, QuotaExhausted, RemoteUnavailable
from lovecleanup.providers.base import ProviderRequest, TextProvider
from lovecleanup.providers.chain import ProviderChain

# =============================================================================
# TEST FIXTURES
# =============================================================================


async def no_sleep(_seconds: float) -> None:
    return None


class FlakyProvider(TextProvider):
    """Backend that fails every other call, then runs out of quota."""

    def __init__(self, quota_after: int) -> None:
        super().__init__("flaky", 0)
        self.calls = 0
        self.quota_after = quota_after

    async def generate(self, request: ProviderRequest) -> str:
        self.calls += 1
        if self.calls > self.quota_after:
            raise QuotaExhausted(self.name, "insufficient_quota")
        if self.calls % 2 == 0:
            raise RemoteUnavailable(self.name, "HTTP 503")
        return f"Luna: resposta {self.calls}"


def make_chat(*providers: TextProvider, request_limit: int = 50, seed: int = 11) -> LunaChat:
    chain = ProviderChain(
        list(providers),
        ResponseGenerator(rng=random.Random(seed)),
        ConversationSession(request_limit=request_limit),
    )
    streaming = StreamingDelivery(min_delay_ms=0, max_delay_ms=0, sleep=no_sleep)
    return LunaChat(chain=chain, streaming=streaming)


def sad_pool_texts() -> list[str]:
    """Every reply the sad pool can produce, template prefix included."""
    return [template.template.split("{helper}")[0] for template in MOOD_POOLS[Mood.SAD]]


# =============================================================================
# TESTS
# =============================================================================


@pytest.mark.integration
class TestChatFlow:
    """End-to-end conversations."""

    @pytest.mark.asyncio
    async def test_sad_message_offline(self) -> None:
        """Test a sad message yields a sad-pool reply with emotional quick replies."""
        chat = make_chat()

        classification = classify("estou muito triste")
        final = await chat.send("estou muito triste")

        assert classification.mood == Mood.SAD
        assert classification.intent == Intent.EMOTIONAL
        assert any(final.text.startswith(prefix) for prefix in sad_pool_texts())
        assert list(final.quick_replies) == quick_replies_for(ResponseType.EMOTIONAL)
        assert chat.last_response.error is None

    @pytest.mark.asyncio
    async def test_session_limit_over_many_turns(self) -> None:
        """Test turns past the budget get the fixed reply and the counter stops."""
        chat = make_chat(request_limit=20)
        responses = []

        for turn in range(25):
            responses.append(await chat.ask(f"mensagem número {turn}"))

        for response in responses[:20]:
            assert response.error is None
        for response in responses[20:]:
            assert response.text == SESSION_LIMIT_REPLY
            assert response.error == ErrorTag.SESSION_LIMIT
        assert chat.chain.session.request_count == 20
        assert chat.chain.session.requests_remaining() == 0

    @pytest.mark.asyncio
    async def test_reset_replays_same_classification(self) -> None:
        """Test the classifier keeps no memory across a reset."""
        turns = ["oi", "estou muito triste", "como funciona o scanner?", "obrigada", "tenho raiva"]
        chat = make_chat()

        first_run = [classify(text) for text in turns]
        for text in turns:
            await chat.send(text)
        chat.reset()
        second_run = [classify(text) for text in turns]
        for text in turns:
            await chat.send(text)

        assert first_run == second_run
        assert len(chat.history()) == 2 * len(turns)

    @pytest.mark.asyncio
    async def test_remote_then_fallback(self) -> None:
        """Test replies switch to the local generator once quota runs out."""
        provider = FlakyProvider(quota_after=3)
        chat = make_chat(provider)

        first = await chat.ask("oi")
        second = await chat.ask("oi")
        third = await chat.ask("oi")
        fourth = await chat.ask("oi")
        fifth = await chat.ask("oi")

        assert first.source == "flaky"
        assert first.text == "resposta 1"
        assert second.source == "fallback"
        assert second.error is None
        assert third.source == "flaky"
        assert fourth.error == ErrorTag.QUOTA_EXCEEDED
        assert fifth.error == ErrorTag.QUOTA_EXCEEDED
        assert provider.calls == 4

    @pytest.mark.asyncio
    async def test_transcript_roles(self) -> None:
        """Test the visible transcript alternates user and assistant."""
        chat = make_chat()

        for text in ("oi", "estou ansioso", "valeu"):
            await chat.send(text)

        senders = [message.sender for message in chat.history()]
        assert senders == [Sender.USER, Sender.ASSISTANT] * 3
        assert len(chat.chain.session) == 6
