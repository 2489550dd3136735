"""
Luna chat engine.

Ties the provider chain to the streaming reveal and keeps the visible
transcript. Turns are serialized; a new turn cancels the reveal of the
previous one so the user never sees two replies typing at once.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Any

import anyio
from loguru import logger

from lovecleanup.chat.models import AIResponse, ChatContext, Message, Sender
from lovecleanup.chat.streaming import CancelToken, StreamingDelivery
from lovecleanup.core.config import Settings, get_settings
from lovecleanup.providers.base import TextProvider
from lovecleanup.providers.chain import ProviderChain, build_default_chain

UpdateCallback = Callable[[Message], Any]

EXIT_COMMANDS = ("exit", "quit", "sair", "tchau")
RESET_COMMANDS = ("/reset", "/reiniciar")


class LunaChat:
    """
    Conversational front of the assistant.

    Attributes:
        chain: Provider chain producing replies.
        streaming: Word-by-word reveal.
        messages: Visible transcript, oldest first.
        last_response: The ``AIResponse`` of the latest turn.

    Example:
        >>> chat = LunaChat()
        >>> message = await chat.send("oi")
        >>> message.sender
        <Sender.ASSISTANT: 'assistant'>
    """

    def __init__(
        self,
        chain: ProviderChain | None = None,
        streaming: StreamingDelivery | None = None,
        settings: Settings | None = None,
        providers: Sequence[TextProvider] | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.chain = chain or build_default_chain(settings, providers=providers)
        self.streaming = streaming or StreamingDelivery(
            min_delay_ms=settings.lovecleanup_stream_min_delay_ms,
            max_delay_ms=settings.lovecleanup_stream_max_delay_ms,
        )
        self.messages: list[Message] = []
        self.last_response: AIResponse | None = None

        self._lock: anyio.Lock | None = None
        self._initialized = False
        self._active_token: CancelToken | None = None
        self._waiting = 0
        self._generation = 0

    @property
    def lock(self) -> anyio.Lock:
        """Turn lock, created inside the running event loop."""
        if self._lock is None:
            self._lock = anyio.Lock()
        return self._lock

    async def initialize(self) -> None:
        """Initialize the backends once."""
        if not self._initialized:
            await self.chain.initialize()
            self._initialized = True

    async def ask(self, text: str, context: ChatContext | None = None) -> AIResponse | None:
        """
        Run one turn without the streaming reveal.

        The user message and the final reply are still added to the transcript.

        Returns:
            The reply, or None when ``reset()`` discarded the turn before a
            backend was asked. A reply that arrives after a reset is returned
            but not added to the transcript.
        """
        generation = self._generation
        self._cancel_active()
        self.messages.append(Message(sender=Sender.USER, text=text))

        async with self.lock:
            if self._stale(generation):
                return None
            await self.initialize()
            response = await self.chain.respond(text, context)
            if self._stale(generation):
                return response

            self.last_response = response
            self.messages.append(self._assistant_message(response))
            return response

    async def send(
        self,
        text: str,
        context: ChatContext | None = None,
        on_update: UpdateCallback | None = None,
    ) -> Message | None:
        """
        Run one turn and reveal the reply progressively.

        Args:
            text: The user's message.
            context: Optional UI context.
            on_update: Called with each partial assistant ``Message`` and
                finally with the complete one. Sync or async.

        Returns:
            The final assistant message, or None when ``reset()`` discarded
            the turn. A discarded turn sends no further updates.
        """
        generation = self._generation
        self._cancel_active()
        self.messages.append(Message(sender=Sender.USER, text=text))

        self._waiting += 1
        async with self.lock:
            self._waiting -= 1
            if self._stale(generation):
                return None
            await self.initialize()

            response = await self.chain.respond(text, context)
            if self._stale(generation):
                return None
            self.last_response = response

            token = CancelToken()
            self._active_token = token
            if self._waiting:
                # A newer turn is already queued behind this one.
                token.cancel()

            placeholder = replace(self._assistant_message(response), text="", streaming=True)
            self.messages.append(placeholder)
            index = len(self.messages) - 1

            async def on_chunk(partial: str) -> None:
                if self._stale(generation):
                    return
                update = replace(placeholder, text=partial)
                self.messages[index] = update
                await _notify(on_update, update)

            delivered = await self.streaming.deliver(response.text, on_chunk, token)
            if self._stale(generation):
                return None
            if token.cancelled:
                logger.debug(f"Reveal interrupted after {len(delivered)} chars")

            final = replace(placeholder, text=response.text, streaming=False)
            self.messages[index] = final
            if self._active_token is token:
                self._active_token = None

            await _notify(on_update, final)
            return final

    def reset(self) -> None:
        """
        Start over: stop any reveal, clear the transcript and the session.

        Turns still in flight are discarded and leave no trace in the new
        conversation.
        """
        self._generation += 1
        self._cancel_active()
        self.messages.clear()
        self.last_response = None
        self.chain.reset()

    def history(self) -> tuple[Message, ...]:
        """Snapshot of the transcript."""
        return tuple(self.messages)

    async def aclose(self) -> None:
        self._cancel_active()
        await self.chain.aclose()

    def _stale(self, generation: int) -> bool:
        if generation == self._generation:
            return False
        logger.debug("Turn discarded by a conversation reset")
        return True

    def _cancel_active(self) -> None:
        if self._active_token is not None:
            self._active_token.cancel()
            self._active_token = None

    @staticmethod
    def _assistant_message(response: AIResponse) -> Message:
        return Message(
            sender=Sender.ASSISTANT,
            text=response.text,
            response_type=response.type,
            quick_replies=tuple(response.quick_replies),
        )


async def _notify(callback: UpdateCallback | None, message: Message) -> None:
    if callback is None:
        return
    result = callback(message)
    if inspect.isawaitable(result):
        await result


# =============================================================================
# TERMINAL CHAT
# =============================================================================


async def start_chat_cli(chat: LunaChat | None = None) -> None:
    """Start interactive chat in the terminal using Rich.

    Type ``/reset`` to start a new conversation and ``sair`` to leave.
    """
    from rich.console import Console
    from rich.panel import Panel

    console = Console()
    chat = chat or LunaChat()

    console.print()
    console.print(Panel.fit(
        "[bold magenta]LoveCleanup AI[/bold magenta]\n"
        "[dim]Converse com a Luna, sua assistente de recomeço 💜[/dim]",
        border_style="magenta"
    ))
    console.print("[dim]  • /reset para recomeçar a conversa[/dim]")
    console.print("[dim]  • sair para encerrar[/dim]")
    console.print()

    while True:
        try:
            user_input = console.input("[bold]Você>[/bold] ")

            if not user_input.strip():
                continue

            command = user_input.lower().strip()
            if command in EXIT_COMMANDS:
                console.print("\n[dim]Até logo! Cuide-se 💜[/dim]\n")
                break
            if command in RESET_COMMANDS:
                chat.reset()
                console.print("[dim]Conversa reiniciada.[/dim]\n")
                continue

            console.print()
            console.print("[bold magenta]Luna[/bold magenta]")
            printed = 0

            def show(message: Message) -> None:
                nonlocal printed
                if not message.streaming:
                    return
                console.print(message.text[printed:], end="", soft_wrap=True)
                printed = len(message.text)

            final = await chat.send(user_input, on_update=show)
            if final is None:
                console.print()
                continue
            # Partial updates are prefixes of the whitespace-normalized text.
            revealed = " ".join(final.text.split())
            console.print(revealed[printed:], end="", soft_wrap=True)
            console.print()
            if final.quick_replies:
                console.print(f"[dim]Sugestões: {' | '.join(final.quick_replies)}[/dim]")
            console.print()

        except (KeyboardInterrupt, EOFError):
            console.print("\n\n[dim]Sessão encerrada. Até logo![/dim]\n")
            break
        except Exception as e:
            logger.error(f"Chat error: {e}")
            console.print(f"\n[red]Erro: {e}[/red]\n")

    await chat.aclose()
