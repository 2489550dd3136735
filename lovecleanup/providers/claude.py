"""
Anthropic Claude backend.

Uses the official ``anthropic`` async client. SDK exceptions are mapped onto
the provider error taxonomy so the chain treats Claude like any other backend.
"""

from __future__ import annotations

from typing import Any

from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncAnthropic,
    AuthenticationError,
    RateLimitError,
)
from loguru import logger
from pydantic import SecretStr

from lovecleanup.core.errors import (
    InvalidCredential,
    ProviderError,
    QuotaExhausted,
    RemoteUnavailable,
)
from lovecleanup.providers.base import ProviderRequest, ProviderState, TextProvider
from lovecleanup.providers.http import mentions_quota
from lovecleanup.providers.payloads import extract_text

DEFAULT_MODEL = "claude-3-haiku-20240307"
MAX_TOKENS = 300


def map_anthropic_error(provider: str, error: APIError) -> ProviderError:
    """Translate an SDK exception into a provider error."""
    message = getattr(error, "message", None) or str(error)

    if isinstance(error, AuthenticationError):
        return InvalidCredential(provider, message)
    if isinstance(error, RateLimitError):
        if mentions_quota(message):
            return QuotaExhausted(provider, message)
        return RemoteUnavailable(provider, f"rate limited: {message}")
    if isinstance(error, APITimeoutError):
        return RemoteUnavailable(provider, "request timed out")
    if isinstance(error, APIConnectionError):
        return RemoteUnavailable(provider, f"connection error: {message}")
    if isinstance(error, APIStatusError):
        if mentions_quota(message):
            return QuotaExhausted(provider, message)
        return RemoteUnavailable(provider, f"HTTP {error.status_code}: {message}")
    return RemoteUnavailable(provider, message)


class ClaudeProvider(TextProvider):
    """Claude messages API backend."""

    payload_kind = "claude"

    def __init__(
        self,
        api_key: SecretStr | str | None,
        model: str = DEFAULT_MODEL,
        priority: int = 5,
        client: AsyncAnthropic | Any | None = None,
        timeout: float = 15.0,
    ) -> None:
        super().__init__("claude", priority)
        if isinstance(api_key, str):
            api_key = SecretStr(api_key)
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def initialize(self) -> ProviderState:
        """Create the SDK client, or mark failed if no key is configured."""
        if self._client is not None:
            self.state = ProviderState.READY
            return self.state

        if self.api_key is None or not self.api_key.get_secret_value():
            logger.warning("Anthropic API key not configured; Claude backend disabled")
            self.state = ProviderState.FAILED
            return self.state

        self._client = AsyncAnthropic(
            api_key=self.api_key.get_secret_value(),
            timeout=self.timeout,
        )
        self._owns_client = True
        self.state = ProviderState.READY
        return self.state

    def build_messages(self, request: ProviderRequest) -> list[dict[str, str]]:
        """Recent history plus the prompt, starting on a user turn."""
        messages = [entry.to_dict() for entry in request.history[-6:]]
        while messages and messages[0]["role"] != "user":
            messages.pop(0)
        messages.append({"role": "user", "content": request.prompt})
        return messages

    async def generate(self, request: ProviderRequest) -> str:
        if self._client is None:
            raise RemoteUnavailable(self.name, "client not initialized")

        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=MAX_TOKENS,
                system=request.system_prompt,
                messages=self.build_messages(request),
            )
        except APIError as e:
            raise map_anthropic_error(self.name, e) from e

        return extract_text(self.name, self.payload_kind, response.model_dump())

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.close()
            self._client = None
