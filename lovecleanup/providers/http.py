"""
HTTP backends for the public free text-generation endpoints.

All four take a single POST and answer with a backend-specific JSON shape.
Failures are mapped onto the provider error taxonomy: transport errors,
timeouts and unexpected statuses become ``RemoteUnavailable``; 401 and
quota-related 429s become sticky errors.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any

import httpx
from loguru import logger

from lovecleanup.core.errors import (
    InvalidCredential,
    MalformedResponse,
    ProviderError,
    QuotaExhausted,
    RemoteUnavailable,
)
from lovecleanup.providers.base import ProviderRequest, TextProvider
from lovecleanup.providers.payloads import extract_text
from lovecleanup.providers.prompts import PERSONA_NAME, SHORT_PERSONA

QUOTA_MARKERS = ("quota", "billing", "exceeded your current quota", "insufficient_quota")

DEFAULT_TIMEOUT = 15.0


# =============================================================================
# ERROR MAPPING
# =============================================================================


def _error_details(response: httpx.Response) -> tuple[str, str]:
    """Pull ``error.message`` and ``error.code`` out of an error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or "", ""
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or ""), str(error.get("code") or "")
    if isinstance(error, str):
        return error, ""
    return "", ""


def mentions_quota(text: str) -> bool:
    """Whether an error message or code talks about quota or billing."""
    lower_text = text.lower()
    return any(marker in lower_text for marker in QUOTA_MARKERS)


def classify_http_error(provider: str, response: httpx.Response) -> ProviderError:
    """
    Map a non-2xx response onto the error taxonomy.

    - 401: invalid credential (sticky)
    - 429 mentioning quota/billing: quota exhausted (sticky)
    - 429 otherwise: plain rate limit (transient)
    - any status mentioning quota/billing: quota exhausted (sticky)
    - anything else: remote unavailable
    """
    message, code = _error_details(response)
    status = response.status_code

    if status == 401:
        return InvalidCredential(provider, message or "invalid API key")
    if mentions_quota(message) or mentions_quota(code):
        return QuotaExhausted(provider, message or code)
    if status == 429:
        return RemoteUnavailable(provider, f"rate limited: {message}".rstrip(": "))
    return RemoteUnavailable(provider, f"HTTP {status}: {message}".rstrip(": "))


# =============================================================================
# BASE
# =============================================================================


class HttpTextProvider(TextProvider):
    """
    Backend spoken to with JSON over an ``httpx.AsyncClient``.

    Owns the client lifecycle and maps transport and status failures onto
    provider errors. Subclasses implement ``generate``.

    Attributes:
        endpoint: URL receiving the POST.
        payload_kind: Tag of the response variant in ``payloads``.
    """

    endpoint: str = ""
    payload_kind: str = ""

    def __init__(
        self,
        name: str,
        priority: int,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(name, priority)
        if endpoint is not None:
            self.endpoint = endpoint
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    async def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        """POST ``payload`` and return the decoded JSON body."""
        return await self.request_json("POST", url, payload=payload)

    async def request_json(
        self,
        method: str,
        url: str,
        payload: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            ProviderError: On transport failure, non-2xx status or invalid JSON.
        """
        try:
            response = await self.client.request(
                method, url, json=payload, params=params, headers=self.headers()
            )
        except httpx.TimeoutException as e:
            raise RemoteUnavailable(self.name, f"timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise RemoteUnavailable(self.name, f"transport error: {e}") from e

        if not response.is_success:
            raise classify_http_error(self.name, response)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponse(self.name, "response is not JSON") from e

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


class JsonEndpointProvider(HttpTextProvider):
    """Backend answering one JSON POST to ``endpoint`` with a ``payload_kind`` body."""

    @abstractmethod
    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        """Request body for ``endpoint``."""
        ...

    async def generate(self, request: ProviderRequest) -> str:
        data = await self.post_json(self.endpoint, self.build_payload(request))
        text = extract_text(self.name, self.payload_kind, data)
        logger.debug(f"{self.name} answered with {len(text)} chars")
        return text


# =============================================================================
# CONCRETE BACKENDS
# =============================================================================


class OllamaProvider(JsonEndpointProvider):
    """Public Ollama generate endpoint."""

    endpoint = "https://ollama.ai/api/generate"
    payload_kind = "ollama"

    def __init__(self, priority: int = 10, **kwargs: Any) -> None:
        super().__init__("ollama", priority, **kwargs)

    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        return {"model": "llama2", "prompt": request.prompt, "stream": False}


class PerplexityProvider(JsonEndpointProvider):
    """Perplexity Labs chat completions."""

    endpoint = "https://labs-api.perplexity.ai/chat/completions"
    payload_kind = "chat_completion"

    def __init__(self, priority: int = 20, **kwargs: Any) -> None:
        super().__init__("perplexity", priority, **kwargs)

    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        return {
            "model": "llama-3.1-sonar-small-128k-online",
            "messages": request.chat_messages(),
        }


class TogetherProvider(JsonEndpointProvider):
    """Together AI inference endpoint (instruction-wrapped prompt)."""

    endpoint = "https://api.together.xyz/inference"
    payload_kind = "together"

    def __init__(self, priority: int = 30, **kwargs: Any) -> None:
        super().__init__("together", priority, **kwargs)

    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        return {
            "model": "togethercomputer/llama-2-7b-chat",
            "prompt": (
                f"[INST] {SHORT_PERSONA} Responda de forma carinhosa e motivacional: "
                f"{request.prompt} [/INST]"
            ),
            "max_tokens": 150,
            "temperature": 0.7,
        }


class ReplicateProvider(JsonEndpointProvider):
    """Replicate predictions endpoint."""

    endpoint = "https://api.replicate.com/v1/predictions"
    payload_kind = "replicate"

    def __init__(self, priority: int = 40, **kwargs: Any) -> None:
        super().__init__("replicate", priority, **kwargs)

    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        return {
            "version": "meta/llama-2-7b-chat",
            "input": {
                "prompt": f"Você é {PERSONA_NAME}, assistente empática do LoveCleanup AI. "
                f"Responda com carinho: {request.prompt}",
                "max_length": 150,
            },
        }
