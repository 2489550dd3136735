"""Unit tests for the Luna chat engine."""

from dataclasses import replace

import anyio
import pytest
from rich.console import Console

from lovecleanup.chat.engine import LunaChat, start_chat_cli
from lovecleanup.chat.generator import ResponseGenerator
from lovecleanup.chat.models import Message, ResponseType, Sender
from lovecleanup.chat.session import ConversationSession
from lovecleanup.chat.streaming import StreamingDelivery
from lovecleanup.providers.base import ProviderRequest, TextProvider
from lovecleanup.providers.chain import ProviderChain

LONG_REPLY = " ".join(f"palavra{i}" for i in range(30))


class ScriptedProvider(TextProvider):
    """Backend answering from a fixed list."""

    def __init__(self, replies: list[str]) -> None:
        super().__init__("scripted", 0)
        self.replies = list(replies)

    async def generate(self, request: ProviderRequest) -> str:
        return self.replies.pop(0)


@pytest.fixture
def chat(offline_chain, instant_streaming) -> LunaChat:
    """Chat engine without remote backends or delays."""
    return LunaChat(chain=offline_chain, streaming=instant_streaming)


class TestLunaChatSend:
    """Tests for LunaChat.send."""

    @pytest.mark.asyncio
    async def test_send_returns_final_message(self, chat: LunaChat) -> None:
        """Test the final message is complete and no longer streaming."""
        final = await chat.send("estou muito triste")

        assert final.sender == Sender.ASSISTANT
        assert final.text == chat.last_response.text
        assert not final.streaming
        assert final.response_type == ResponseType.EMOTIONAL
        assert final.quick_replies

    @pytest.mark.asyncio
    async def test_transcript_order(self, chat: LunaChat) -> None:
        """Test user then assistant entries are recorded."""
        await chat.send("oi")

        history = chat.history()
        assert [m.sender for m in history] == [Sender.USER, Sender.ASSISTANT]
        assert history[0].text == "oi"

    @pytest.mark.asyncio
    async def test_updates_grow_then_finish(self, chat: LunaChat) -> None:
        """Test partial updates grow word by word and end with the final message."""
        updates: list[Message] = []

        final = await chat.send("estou muito triste", on_update=updates.append)

        partials = [u for u in updates if u.streaming]
        assert partials
        assert all(len(a.text) <= len(b.text) for a, b in zip(partials, partials[1:]))
        assert updates[-1] == final
        assert len({u.id for u in updates}) == 1

    @pytest.mark.asyncio
    async def test_async_update_callback(self, chat: LunaChat) -> None:
        """Test coroutine callbacks are awaited."""
        seen: list[str] = []

        async def on_update(message: Message) -> None:
            seen.append(message.text)

        await chat.send("oi", on_update=on_update)

        assert seen[-1] == chat.last_response.text

    @pytest.mark.asyncio
    async def test_new_turn_cancels_reveal(self, rng) -> None:
        """Test a second message stops the reveal of the first."""
        chain = ProviderChain(
            [ScriptedProvider([LONG_REPLY, "Tudo certo."])],
            ResponseGenerator(rng=rng),
            ConversationSession(),
        )
        chat = LunaChat(chain=chain, streaming=StreamingDelivery(min_delay_ms=10, max_delay_ms=10))
        first_updates: list[Message] = []
        first_chunk = anyio.Event()
        results: dict[str, Message] = {}

        def on_first(message: Message) -> None:
            first_updates.append(message)
            first_chunk.set()

        async def first_turn() -> None:
            results["first"] = await chat.send("me conta algo", on_update=on_first)

        async with anyio.create_task_group() as tg:
            tg.start_soon(first_turn)
            await first_chunk.wait()
            results["second"] = await chat.send("oi")

        streamed = [m for m in first_updates if m.streaming]
        assert len(streamed) < 30
        assert results["first"].text == LONG_REPLY
        assert results["second"].text == "Tudo certo."
        assert chat.messages[1].text == LONG_REPLY
        assert not any(m.streaming for m in chat.messages)


class TestLunaChatAsk:
    """Tests for the non-streaming turn."""

    @pytest.mark.asyncio
    async def test_ask_records_transcript(self, chat: LunaChat) -> None:
        """Test ask returns the response and updates the transcript."""
        response = await chat.ask("obrigada")

        assert response.type == ResponseType.GENERAL
        assert len(chat.messages) == 2
        assert chat.messages[1].text == response.text
        assert chat.last_response is response


class TestLunaChatReset:
    """Tests for reset."""

    @pytest.mark.asyncio
    async def test_reset_clears_everything(self, chat: LunaChat) -> None:
        """Test reset clears transcript and session."""
        await chat.send("oi")

        chat.reset()

        assert chat.history() == ()
        assert chat.last_response is None
        assert len(chat.chain.session) == 0
        assert chat.chain.session.request_count == 0

    @pytest.mark.asyncio
    async def test_initialize_once(self, chat: LunaChat, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test backends are initialized a single time."""
        calls = 0
        original = chat.chain.initialize

        async def counting():
            nonlocal calls
            calls += 1
            return await original()

        monkeypatch.setattr(chat.chain, "initialize", counting)

        await chat.send("oi")
        await chat.send("oi")

        assert calls == 1


class GatedProvider(TextProvider):
    """Backend that answers only once released."""

    def __init__(self) -> None:
        super().__init__("gated", 0)
        self.started = anyio.Event()
        self.release = anyio.Event()
        self.calls = 0

    async def generate(self, request: ProviderRequest) -> str:
        self.calls += 1
        self.started.set()
        await self.release.wait()
        return "Resposta que chegou tarde."


class TestResetDuringTurn:
    """Tests for a reset landing while a turn is in flight."""

    @pytest.mark.asyncio
    async def test_reset_mid_reveal(self) -> None:
        """Test a reset while words are being revealed discards the turn."""
        chain = ProviderChain([ScriptedProvider([LONG_REPLY])], ResponseGenerator(), ConversationSession())
        chat = LunaChat(chain=chain, streaming=StreamingDelivery(min_delay_ms=20, max_delay_ms=20))
        first_chunk = anyio.Event()
        updates: list[Message] = []
        results: dict[str, Message | None] = {}

        def on_update(message: Message) -> None:
            updates.append(message)
            first_chunk.set()

        async def turn() -> None:
            results["turn"] = await chat.send("estou muito triste hoje", on_update=on_update)

        async with anyio.create_task_group() as tg:
            tg.start_soon(turn)
            await first_chunk.wait()
            chat.reset()

        assert results["turn"] is None
        assert chat.history() == ()
        assert chat.last_response is None
        assert len(chat.chain.session) == 0
        assert all(u.streaming for u in updates)
        assert len(updates) < 30

    @pytest.mark.asyncio
    async def test_reset_during_backend_call(self) -> None:
        """Test a reply arriving after a reset leaves no trace in the new conversation."""
        provider = GatedProvider()
        chain = ProviderChain([provider], ResponseGenerator(), ConversationSession())
        streaming = StreamingDelivery(min_delay_ms=0, max_delay_ms=0)
        chat = LunaChat(chain=chain, streaming=streaming)
        results: dict[str, Message | None] = {}

        async def turn() -> None:
            results["turn"] = await chat.send("oi")

        async with anyio.create_task_group() as tg:
            tg.start_soon(turn)
            await provider.started.wait()
            chat.reset()
            provider.release.set()

        assert results["turn"] is None
        assert chat.history() == ()
        assert chat.chain.session.window() == ()

        final = await chat.send("oi de novo")

        assert final is not None
        assert [m.text for m in chat.history()] == ["oi de novo", final.text]
        assert [e.role for e in chat.chain.session.window()] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_queued_ask_dropped_by_reset(self) -> None:
        """Test a turn still waiting for the lock never reaches a backend after a reset."""
        provider = GatedProvider()
        chain = ProviderChain([provider], ResponseGenerator(), ConversationSession())
        chat = LunaChat(chain=chain, streaming=StreamingDelivery(min_delay_ms=0, max_delay_ms=0))
        results: dict[str, object] = {}

        async def first() -> None:
            results["send"] = await chat.send("primeira")

        async def second() -> None:
            results["ask"] = await chat.ask("segunda")

        async with anyio.create_task_group() as tg:
            tg.start_soon(first)
            await provider.started.wait()
            tg.start_soon(second)
            await anyio.wait_all_tasks_blocked()
            chat.reset()
            provider.release.set()

        assert results == {"send": None, "ask": None}
        assert provider.calls == 1
        assert chat.history() == ()
        assert len(chat.chain.session) == 0


class CutRevealChat:
    """Chat double whose reveal stops after the first sentence."""

    full_text = "Respira fundo. Você não está sozinha nessa jornada."

    def __init__(self) -> None:
        self.closed = False

    async def send(self, text, context=None, on_update=None) -> Message:
        partial = Message(sender=Sender.ASSISTANT, text="Respira fundo.", streaming=True)
        on_update(partial)
        final = replace(partial, text=self.full_text, streaming=False)
        on_update(final)
        return final

    def reset(self) -> None:
        return None

    async def aclose(self) -> None:
        self.closed = True


class TestTerminalChat:
    """Tests for the Rich terminal loop."""

    @pytest.mark.asyncio
    async def test_cut_reveal_prints_rest(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        """Test the unrevealed part of a reply is printed once the turn ends."""
        inputs = iter(["estou triste", "sair"])
        monkeypatch.setattr(Console, "input", lambda self, *args, **kwargs: next(inputs))
        chat = CutRevealChat()

        await start_chat_cli(chat)

        out = capsys.readouterr().out
        assert CutRevealChat.full_text in out
        assert chat.closed
