"""Remote text-generation backends and the chain that tries them in order."""

from lovecleanup.providers.assistant import AssistantThreadProvider
from lovecleanup.providers.base import ProviderRequest, ProviderState, TextProvider
from lovecleanup.providers.chain import (
    ProviderChain,
    build_default_chain,
    build_providers,
    clean_response,
    close_providers,
)
from lovecleanup.providers.claude import ClaudeProvider
from lovecleanup.providers.http import (
    HttpTextProvider,
    JsonEndpointProvider,
    OllamaProvider,
    PerplexityProvider,
    ReplicateProvider,
    TogetherProvider,
)

__all__ = [
    "TextProvider",
    "ProviderState",
    "ProviderRequest",
    "HttpTextProvider",
    "JsonEndpointProvider",
    "OllamaProvider",
    "PerplexityProvider",
    "TogetherProvider",
    "ReplicateProvider",
    "AssistantThreadProvider",
    "ClaudeProvider",
    "ProviderChain",
    "build_default_chain",
    "build_providers",
    "close_providers",
    "clean_response",
]
