"""
Provider chain: remote backends first, rule-based generator last.

``ProviderChain.respond`` always returns a populated ``AIResponse``. Backend
failures are logged and absorbed; the caller only ever sees the ``error``
tag on the response.
"""

from __future__ import annotations

import random
import re
from collections.abc import Sequence
from typing import Any

import httpx
from loguru import logger

from lovecleanup.chat.classifier import classify
from lovecleanup.chat.generator import (
    GeneratedResponse,
    ResponseGenerator,
    conversation_stage,
    detect_response_type,
    quick_replies_for,
)
from lovecleanup.chat.models import AIResponse, ChatContext
from lovecleanup.chat.session import ConversationSession
from lovecleanup.core.config import Settings
from lovecleanup.core.errors import ErrorTag, ProviderError
from lovecleanup.providers.assistant import AssistantThreadProvider
from lovecleanup.providers.base import ProviderRequest, ProviderState, TextProvider
from lovecleanup.providers.claude import ClaudeProvider
from lovecleanup.providers.http import (
    OllamaProvider,
    PerplexityProvider,
    ReplicateProvider,
    TogetherProvider,
)
from lovecleanup.providers.prompts import build_system_prompt, build_user_prompt

ROLE_PREFIX = re.compile(r"^\s*(Luna:|Assistant:|AI:)", re.IGNORECASE)
INSTRUCTION_TOKENS = re.compile(r"\[/?INST\]")


def clean_response(text: str) -> str:
    """Strip a leading role label and instruction tokens from backend text."""
    text = ROLE_PREFIX.sub("", text, count=1)
    text = INSTRUCTION_TOKENS.sub("", text)
    return text.strip()


class ProviderChain:
    """
    Ordered list of backends with a local fallback.

    Example:
        >>> session = ConversationSession()
        >>> chain = ProviderChain([], ResponseGenerator(), session)
        >>> response = await chain.respond("oi")
        >>> response.source
        'fallback'
    """

    def __init__(
        self,
        providers: Sequence[TextProvider],
        generator: ResponseGenerator,
        session: ConversationSession,
        owns_providers: bool = True,
    ) -> None:
        self.providers = sorted(providers, key=lambda p: p.priority)
        self.generator = generator
        self.session = session
        self.owns_providers = owns_providers

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def initialize(self) -> dict[str, ProviderState]:
        """
        Initialize every backend in order and report their states.

        Backends already initialized by another conversation keep their state.
        """
        states: dict[str, ProviderState] = {}
        for provider in self.providers:
            if provider.state == ProviderState.UNINITIALIZED:
                states[provider.name] = await self._initialize_provider(provider)
            else:
                states[provider.name] = provider.state
        ready = [name for name, state in states.items() if state == ProviderState.READY]
        logger.info(f"Provider chain ready: {ready or 'local fallback only'}")
        return states

    def reset(self) -> None:
        """Start a fresh conversation: clear history, budget and remote threads."""
        self.session.reset()
        for provider in self.providers:
            provider.reset_thread()
        logger.info("Conversation reset")

    def reset_quota_flags(self) -> None:
        """Re-enable backends disabled for quota reasons."""
        for provider in self.providers:
            provider.reset_sticky(ErrorTag.QUOTA_EXCEEDED)

    async def aclose(self) -> None:
        """Close the backends, unless they are shared with other conversations."""
        if not self.owns_providers:
            return
        await close_providers(self.providers)

    def stats(self) -> dict[str, Any]:
        """Session counters plus per-backend status."""
        return {
            **self.session.stats(),
            "providers": [provider.stats() for provider in self.providers],
        }

    # =========================================================================
    # RESPOND
    # =========================================================================

    async def respond(self, message: str, context: ChatContext | None = None) -> AIResponse:
        """
        Produce the reply for one user turn.

        Args:
            message: The user's text.
            context: Optional UI context, read only.

        Returns:
            The reply. Never raises.
        """
        if self.session.limit_reached:
            logger.info(f"Session limit of {self.session.request_limit} reached")
            limit = self.generator.session_limit(message)
            return self._to_response(limit, error=ErrorTag.SESSION_LIMIT, source="session_limit")

        try:
            return await self._respond(message, context)
        except Exception as e:
            logger.exception(f"Unexpected failure while responding: {e}")
            return self._to_response(self.generator.apology(), error=ErrorTag.INTERNAL_ERROR)

    async def _respond(self, message: str, context: ChatContext | None) -> AIResponse:
        generation = self.session.generation
        self.session.record_request()
        stage = conversation_stage(len(self.session))
        history = self.session.window()
        self.session.append("user", message)

        request = ProviderRequest(
            message=message,
            prompt=build_user_prompt(message, context),
            system_prompt=build_system_prompt(context),
            session=self.session,
            context=context,
            history=history,
        )

        for provider in self.providers:
            text = await self._attempt(provider, request)
            if text:
                response_type = detect_response_type(message)
                self._record_reply(generation, text)
                return AIResponse(
                    text=text,
                    type=response_type,
                    quick_replies=quick_replies_for(response_type),
                    source=provider.name,
                )

        classification = classify(message)
        generated = self.generator.generate(
            message,
            classification.mood,
            classification.intent,
            stage=stage,
            history=history,
        )
        self._record_reply(generation, generated.text)
        return self._to_response(generated, error=self._fallback_error())

    def _record_reply(self, generation: int, text: str) -> None:
        if self.session.generation != generation:
            logger.debug("Session was reset during the turn; reply not recorded")
            return
        self.session.append("assistant", text)

    async def _attempt(self, provider: TextProvider, request: ProviderRequest) -> str | None:
        """Try one backend. Returns cleaned text, or None on any failure."""
        if not provider.available:
            return None

        if provider.state == ProviderState.UNINITIALIZED:
            if await self._initialize_provider(provider) != ProviderState.READY:
                return None

        try:
            raw = await provider.generate(request)
        except ProviderError as e:
            provider.mark_sticky(e)
            logger.warning(f"Provider {provider.name} failed ({e.tag.value}): {e}")
            return None
        except Exception as e:
            logger.exception(f"Provider {provider.name} crashed: {e}")
            return None

        text = clean_response(raw)
        if not text:
            logger.warning(f"Provider {provider.name} returned empty text after cleaning")
            return None

        logger.info(f"Reply from {provider.name}")
        return text

    @staticmethod
    async def _initialize_provider(provider: TextProvider) -> ProviderState:
        try:
            return await provider.initialize()
        except ProviderError as e:
            logger.warning(f"Provider {provider.name} failed to initialize: {e}")
            provider.mark_sticky(e)
            provider.state = ProviderState.FAILED
            return provider.state
        except Exception as e:
            logger.exception(f"Provider {provider.name} crashed during initialize: {e}")
            provider.state = ProviderState.FAILED
            return provider.state

    def _fallback_error(self) -> ErrorTag | None:
        tags = {provider.sticky_error for provider in self.providers}
        if ErrorTag.QUOTA_EXCEEDED in tags:
            return ErrorTag.QUOTA_EXCEEDED
        if ErrorTag.INVALID_KEY in tags:
            return ErrorTag.INVALID_KEY
        return None

    @staticmethod
    def _to_response(
        generated: GeneratedResponse,
        error: ErrorTag | None = None,
        source: str = "fallback",
    ) -> AIResponse:
        return AIResponse(
            text=generated.text,
            type=generated.response_type,
            quick_replies=list(generated.quick_replies),
            error=error,
            source=source,
        )


# =============================================================================
# FACTORY
# =============================================================================


def build_providers(
    settings: Settings,
    client: httpx.AsyncClient | None = None,
) -> list[TextProvider]:
    """
    Build the backends described by configuration.

    Order: OpenAI assistant (when a key is set), Claude (when a key is set),
    then the four public free endpoints (unless disabled).
    """
    timeout = settings.lovecleanup_request_timeout
    providers: list[TextProvider] = []

    if settings.openai_configured:
        providers.append(
            AssistantThreadProvider(
                api_key=settings.openai_api_key,
                assistant_id=settings.openai_assistant_id,
                base_url=settings.openai_base_url,
                priority=0,
                poll_max_attempts=settings.lovecleanup_poll_max_attempts,
                poll_interval=settings.lovecleanup_poll_interval,
                client=client,
                timeout=timeout,
            )
        )

    if settings.anthropic_configured:
        providers.append(
            ClaudeProvider(
                api_key=settings.anthropic_api_key,
                model=settings.anthropic_model,
                priority=5,
                timeout=timeout,
            )
        )

    if settings.lovecleanup_free_providers:
        providers.extend(
            [
                OllamaProvider(client=client, timeout=timeout),
                PerplexityProvider(client=client, timeout=timeout),
                TogetherProvider(client=client, timeout=timeout),
                ReplicateProvider(client=client, timeout=timeout),
            ]
        )

    logger.debug(f"Built providers: {[p.name for p in providers]}")
    return providers


async def close_providers(providers: Sequence[TextProvider]) -> None:
    for provider in providers:
        await provider.aclose()


def build_default_chain(
    settings: Settings,
    session: ConversationSession | None = None,
    client: httpx.AsyncClient | None = None,
    rng: random.Random | None = None,
    providers: Sequence[TextProvider] | None = None,
) -> ProviderChain:
    """
    Build a chain for one conversation.

    Args:
        settings: Application settings.
        session: Conversation state. A fresh one is created when omitted.
        client: HTTP client shared by the HTTP backends.
        rng: Randomness for the local generator.
        providers: Backends shared with other conversations. Their quota and
            credential flags then hold for every conversation, and closing
            this chain leaves them open. Built from settings when omitted.
    """
    if session is None:
        session = ConversationSession(
            window_size=settings.lovecleanup_history_window,
            request_limit=settings.lovecleanup_session_request_limit,
        )

    owns_providers = providers is None
    if providers is None:
        providers = build_providers(settings, client=client)

    return ProviderChain(
        providers,
        ResponseGenerator(rng=rng),
        session,
        owns_providers=owns_providers,
    )
