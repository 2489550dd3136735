"""Unit tests for the provider chain."""

import pytest

from lovecleanup.chat.generator import ResponseGenerator
from lovecleanup.chat.models import ChatContext, ChatStage, ConversationStage, ResponseType
from lovecleanup.chat.session import ConversationSession
from lovecleanup.chat.templates import APOLOGY_REPLY, GREETINGS, SESSION_LIMIT_REPLY
from lovecleanup.core.config import Settings
from lovecleanup.core.errors import (
    ErrorTag,
    InvalidCredential,
    MalformedResponse,
    QuotaExhausted,
    RemoteUnavailable,
)
from lovecleanup.providers.base import ProviderRequest, ProviderState, TextProvider
from lovecleanup.providers.chain import ProviderChain, build_default_chain, clean_response

# =============================================================================
# FIXTURES
# =============================================================================


class StubProvider(TextProvider):
    """Backend returning scripted results."""

    def __init__(self, name: str, priority: int, results: list | None = None) -> None:
        super().__init__(name, priority)
        self.results = list(results or [])
        self.requests: list[ProviderRequest] = []
        self.thread_resets = 0

    async def generate(self, request: ProviderRequest) -> str:
        self.requests.append(request)
        result = self.results.pop(0) if self.results else RemoteUnavailable(self.name, "empty script")
        if isinstance(result, Exception):
            raise result
        return result

    def reset_thread(self) -> None:
        self.thread_resets += 1


def make_chain(*providers: TextProvider, session: ConversationSession | None = None, rng=None):
    import random

    session = session if session is not None else ConversationSession()
    return ProviderChain(list(providers), ResponseGenerator(rng=rng or random.Random(7)), session)


# =============================================================================
# TEST CLEAN RESPONSE
# =============================================================================


class TestCleanResponse:
    """Tests for clean_response."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Luna: Olá!", "Olá!"),
            ("  assistant: Tudo bem?", "Tudo bem?"),
            ("AI: [INST] oi [/INST]", "oi"),
            ("Texto normal", "Texto normal"),
            ("Eu sou Luna: sua amiga", "Eu sou Luna: sua amiga"),
        ],
    )
    def test_cleaning(self, raw: str, expected: str) -> None:
        """Test role labels and instruction tokens are stripped."""
        assert clean_response(raw) == expected

    def test_only_leading_label_removed(self) -> None:
        """Test a second label is kept."""
        assert clean_response("Luna: Luna: oi") == "Luna: oi"


# =============================================================================
# TEST RESPOND
# =============================================================================


class TestProviderChainRespond:
    """Tests for ProviderChain.respond."""

    @pytest.mark.asyncio
    async def test_offline_emotional_reply(self, offline_chain: ProviderChain) -> None:
        """Test the local fallback answers a sad message."""
        response = await offline_chain.respond("estou muito triste")

        assert response.type == ResponseType.EMOTIONAL
        assert response.source == "fallback"
        assert response.error is None
        assert response.text
        assert "Como posso me sentir melhor?" in response.quick_replies

    @pytest.mark.asyncio
    async def test_first_success_wins(self) -> None:
        """Test the first backend that answers is used."""
        first = StubProvider("first", 0, ["Luna: Estou aqui com você."])
        second = StubProvider("second", 1, ["nunca usado"])
        chain = make_chain(first, second)

        response = await chain.respond("estou triste")

        assert response.text == "Estou aqui com você."
        assert response.source == "first"
        assert response.type == ResponseType.EMOTIONAL
        assert response.error is None
        assert not second.requests

    @pytest.mark.asyncio
    async def test_falls_through_on_error(self) -> None:
        """Test a failing backend hands over to the next one."""
        first = StubProvider("first", 0, [RemoteUnavailable("first", "down")])
        second = StubProvider("second", 1, ["Oi! 💜"])
        chain = make_chain(first, second)

        response = await chain.respond("oi")

        assert response.source == "second"
        assert response.type == ResponseType.GREETING
        assert first.available

    @pytest.mark.asyncio
    async def test_unexpected_exception_falls_through(self) -> None:
        """Test a crashing backend does not abort the turn."""
        first = StubProvider("first", 0, [KeyError("boom")])
        second = StubProvider("second", 1, ["Tudo bem."])
        chain = make_chain(first, second)

        response = await chain.respond("oi")

        assert response.source == "second"

    @pytest.mark.asyncio
    async def test_priority_order(self) -> None:
        """Test backends run in ascending priority regardless of list order."""
        late = StubProvider("late", 50, ["tarde"])
        early = StubProvider("early", 1, ["cedo"])
        chain = make_chain(late, early)

        response = await chain.respond("oi")

        assert [p.name for p in chain.providers] == ["early", "late"]
        assert response.text == "cedo"

    @pytest.mark.asyncio
    async def test_empty_after_cleaning_falls_back(self) -> None:
        """Test a reply that is only a role label counts as a failure."""
        provider = StubProvider("stub", 0, ["Luna:   "])
        chain = make_chain(provider)

        response = await chain.respond("oi")

        assert response.source == "fallback"

    @pytest.mark.asyncio
    async def test_all_fail_uses_fallback(self) -> None:
        """Test transient failures produce an untagged fallback reply."""
        provider = StubProvider("stub", 0, [MalformedResponse("stub", "no text")])
        chain = make_chain(provider)

        response = await chain.respond("estou muito triste")

        assert response.source == "fallback"
        assert response.error is None
        assert response.type == ResponseType.EMOTIONAL


class TestStickyFailures:
    """Tests for quota and credential failures."""

    @pytest.mark.asyncio
    async def test_quota_disables_backend(self) -> None:
        """Test a quota failure is tagged and the backend skipped afterwards."""
        provider = StubProvider("stub", 0, [QuotaExhausted("stub", "quota"), "nunca"])
        chain = make_chain(provider)

        first = await chain.respond("oi")
        second = await chain.respond("oi de novo")

        assert first.error == ErrorTag.QUOTA_EXCEEDED
        assert second.error == ErrorTag.QUOTA_EXCEEDED
        assert len(provider.requests) == 1
        assert not provider.available

    @pytest.mark.asyncio
    async def test_invalid_key_tag(self) -> None:
        """Test a rejected key tags the fallback reply."""
        provider = StubProvider("stub", 0, [InvalidCredential("stub", "bad key")])
        chain = make_chain(provider)

        response = await chain.respond("oi")

        assert response.error == ErrorTag.INVALID_KEY
        assert response.source == "fallback"

    @pytest.mark.asyncio
    async def test_quota_tag_wins_over_invalid_key(self) -> None:
        """Test quota is reported when both sticky failures exist."""
        a = StubProvider("a", 0, [InvalidCredential("a", "bad key")])
        b = StubProvider("b", 1, [QuotaExhausted("b", "quota")])
        chain = make_chain(a, b)

        response = await chain.respond("oi")

        assert response.error == ErrorTag.QUOTA_EXCEEDED

    @pytest.mark.asyncio
    async def test_reset_quota_flags(self) -> None:
        """Test quota flags can be cleared while credential flags stay."""
        a = StubProvider("a", 0, [InvalidCredential("a", "bad key")])
        b = StubProvider("b", 1, [QuotaExhausted("b", "quota"), "de volta"])
        chain = make_chain(a, b)
        await chain.respond("oi")

        chain.reset_quota_flags()
        response = await chain.respond("oi")

        assert b.available
        assert not a.available
        assert response.source == "b"

    @pytest.mark.asyncio
    async def test_failed_initialize_skipped(self) -> None:
        """Test a backend that fails to initialize is never asked."""

        class BrokenInit(StubProvider):
            async def initialize(self) -> ProviderState:
                raise RuntimeError("no network")

        provider = BrokenInit("broken", 0, ["nunca"])
        chain = make_chain(provider)

        response = await chain.respond("oi")

        assert response.source == "fallback"
        assert provider.state == ProviderState.FAILED
        assert not provider.requests


class TestSessionBudget:
    """Tests for the session request limit."""

    @pytest.mark.asyncio
    async def test_limit_reply(self) -> None:
        """Test the fixed reply once the budget is spent."""
        provider = StubProvider("stub", 0, ["um", "dois", "três"])
        chain = make_chain(provider, session=ConversationSession(request_limit=2))

        await chain.respond("oi")
        await chain.respond("oi")
        response = await chain.respond("estou triste")

        assert response.text == SESSION_LIMIT_REPLY
        assert response.error == ErrorTag.SESSION_LIMIT
        assert response.source == "session_limit"
        assert response.type == ResponseType.EMOTIONAL
        assert chain.session.request_count == 2
        assert len(provider.requests) == 2

    @pytest.mark.asyncio
    async def test_limit_does_not_touch_history(self) -> None:
        """Test limited turns are not recorded."""
        chain = make_chain(session=ConversationSession(request_limit=1))

        await chain.respond("oi")
        before = len(chain.session)
        await chain.respond("oi")

        assert len(chain.session) == before

    @pytest.mark.asyncio
    async def test_reset_restores_budget(self) -> None:
        """Test reset clears history, counter and remote threads."""
        provider = StubProvider("stub", 0, [])
        chain = make_chain(provider, session=ConversationSession(request_limit=1))
        chain.session.thread_handle = "thread_x"
        await chain.respond("oi")

        chain.reset()
        response = await chain.respond("oi")

        assert response.error is None
        assert chain.session.request_count == 1
        assert chain.session.thread_handle is None
        assert provider.thread_resets == 1


class TestRequestBuilding:
    """Tests for what backends receive."""

    @pytest.mark.asyncio
    async def test_history_excludes_current_message(self) -> None:
        """Test the request history holds only prior turns."""
        provider = StubProvider("stub", 0, ["primeira", "segunda"])
        chain = make_chain(provider)

        await chain.respond("oi")
        await chain.respond("tudo bem?")

        second = provider.requests[1]
        assert [entry.content for entry in second.history] == ["oi", "primeira"]
        assert second.message == "tudo bem?"

    @pytest.mark.asyncio
    async def test_context_prefix(self) -> None:
        """Test the prompt carries the name and stage prefix."""
        provider = StubProvider("stub", 0, ["ok"])
        chain = make_chain(provider)
        context = ChatContext(stage=ChatStage.ACTIVE_CLEANUP, user_name="Ana")

        await chain.respond("oi", context)

        request = provider.requests[0]
        assert request.prompt == "[Nome: Ana, Estágio: active_cleanup] oi"
        assert request.context is context

    @pytest.mark.asyncio
    async def test_greeting_follows_stage(self, offline_chain: ProviderChain) -> None:
        """Test the fallback greeting changes once the conversation started."""
        first = await offline_chain.respond("oi")
        second = await offline_chain.respond("oi")

        assert first.text == GREETINGS[ConversationStage.INITIAL]
        assert second.text == GREETINGS[ConversationStage.EARLY]


class TestUnexpectedFailure:
    """Tests for failures outside the backends."""

    @pytest.mark.asyncio
    async def test_generator_crash_returns_apology(
        self, offline_chain: ProviderChain, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test an internal error still yields a reply."""

        def explode(*args, **kwargs):
            raise RuntimeError("template bug")

        monkeypatch.setattr(offline_chain.generator, "generate", explode)

        response = await offline_chain.respond("oi")

        assert response.text == APOLOGY_REPLY
        assert response.error == ErrorTag.INTERNAL_ERROR
        assert response.type == ResponseType.FALLBACK


class TestChainLifecycle:
    """Tests for initialize, stats and the factory."""

    @pytest.mark.asyncio
    async def test_initialize_reports_states(self) -> None:
        """Test initialize returns one state per backend."""
        chain = make_chain(StubProvider("a", 0), StubProvider("b", 1))

        states = await chain.initialize()

        assert states == {"a": ProviderState.READY, "b": ProviderState.READY}

    def test_stats(self) -> None:
        """Test stats merge session counters and backend status."""
        chain = make_chain(StubProvider("a", 0))

        stats = chain.stats()

        assert stats["request_count"] == 0
        assert stats["providers"][0]["name"] == "a"

    def test_default_chain_order(self) -> None:
        """Test configured backends are ordered assistant, Claude, free."""
        settings = Settings(
            openai_api_key="sk-test",
            anthropic_api_key="sk-ant-test",
            lovecleanup_free_providers=True,
            _env_file=None,
        )

        chain = build_default_chain(settings)

        assert [p.name for p in chain.providers] == [
            "openai_assistant",
            "claude",
            "ollama",
            "perplexity",
            "together",
            "replicate",
        ]

    def test_default_chain_offline(self) -> None:
        """Test no keys and no free backends gives an empty chain."""
        settings = Settings(
            openai_api_key="",
            anthropic_api_key="",
            lovecleanup_free_providers=False,
            lovecleanup_session_request_limit=7,
            _env_file=None,
        )

        chain = build_default_chain(settings)

        assert chain.providers == []
        assert chain.session.request_limit == 7


class ResettingProvider(StubProvider):
    """Backend during whose call the conversation is reset."""

    async def generate(self, request: ProviderRequest) -> str:
        request.session.reset()
        return "resposta de outra conversa"


class TestSharedBackends:
    """Tests for chains sharing backends and for resets mid-turn."""

    @pytest.mark.asyncio
    async def test_initialize_keeps_existing_state(self) -> None:
        """Test a backend already initialized by another chain is left alone."""
        provider = StubProvider("a", 0)
        provider.state = ProviderState.FAILED

        states = await make_chain(provider).initialize()

        assert states == {"a": ProviderState.FAILED}

    @pytest.mark.asyncio
    async def test_aclose_leaves_shared_backends(self) -> None:
        """Test a chain that does not own its backends never closes them."""
        closed: list[str] = []

        class Closing(StubProvider):
            async def aclose(self) -> None:
                closed.append(self.name)

        provider = Closing("a", 0)
        shared = ProviderChain([provider], ResponseGenerator(), ConversationSession(), owns_providers=False)
        owning = ProviderChain([provider], ResponseGenerator(), ConversationSession())

        await shared.aclose()
        assert closed == []

        await owning.aclose()
        assert closed == ["a"]

    @pytest.mark.asyncio
    async def test_default_chain_with_shared_providers(self) -> None:
        """Test passing backends uses them as-is and does not take ownership."""
        provider = StubProvider("a", 0)
        settings = Settings(openai_api_key="", anthropic_api_key="", _env_file=None)

        chain = build_default_chain(settings, providers=[provider])

        assert chain.providers == [provider]
        assert chain.owns_providers is False

    @pytest.mark.asyncio
    async def test_reply_after_reset_not_recorded(self) -> None:
        """Test a reply landing after a session reset stays out of the new history."""
        chain = make_chain(ResettingProvider("a", 0))

        response = await chain.respond("oi")

        assert response.text == "resposta de outra conversa"
        assert chain.session.window() == ()
