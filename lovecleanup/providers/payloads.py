"""
Response shapes of the supported backends.

Each backend answers with its own JSON layout. Every layout is a variant of
the ``BackendPayload`` tagged union, and ``extract_text`` normalizes any of
them to plain text, treating a missing or empty field as malformed.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from lovecleanup.core.errors import MalformedResponse

# =============================================================================
# VARIANTS
# =============================================================================


class OllamaPayload(BaseModel):
    """``{"response": "..."}``"""

    kind: Literal["ollama"] = "ollama"
    response: str | None = None

    def extract(self) -> str | None:
        return self.response


class ChatMessageBody(BaseModel):
    content: str | None = None


class ChatChoice(BaseModel):
    message: ChatMessageBody


class ChatCompletionPayload(BaseModel):
    """``{"choices": [{"message": {"content": "..."}}]}``"""

    kind: Literal["chat_completion"] = "chat_completion"
    choices: list[ChatChoice] = Field(default_factory=list)

    def extract(self) -> str | None:
        return self.choices[0].message.content if self.choices else None


class TextChoice(BaseModel):
    text: str | None = None


class TogetherOutput(BaseModel):
    choices: list[TextChoice] = Field(default_factory=list)


class TogetherPayload(BaseModel):
    """``{"output": {"choices": [{"text": "..."}]}}``"""

    kind: Literal["together"] = "together"
    output: TogetherOutput | None = None

    def extract(self) -> str | None:
        if self.output is None or not self.output.choices:
            return None
        return self.output.choices[0].text


class ReplicatePayload(BaseModel):
    """``{"output": ["tok", "ens"]}``"""

    kind: Literal["replicate"] = "replicate"
    output: list[str] | None = None

    def extract(self) -> str | None:
        return "".join(self.output) if self.output else None


class ContentBlock(BaseModel):
    type: str = "text"
    text: str | None = None


class ClaudePayload(BaseModel):
    """``{"content": [{"type": "text", "text": "..."}]}``"""

    kind: Literal["claude"] = "claude"
    content: list[ContentBlock] = Field(default_factory=list)

    def extract(self) -> str | None:
        for block in self.content:
            if block.type == "text" and block.text:
                return block.text
        return None


class AssistantText(BaseModel):
    value: str | None = None


class AssistantContent(BaseModel):
    type: str
    text: AssistantText | None = None


class AssistantMessage(BaseModel):
    role: str
    content: list[AssistantContent] = Field(default_factory=list)


class AssistantMessagesPayload(BaseModel):
    """Thread message list; only the newest assistant text counts."""

    kind: Literal["assistant_messages"] = "assistant_messages"
    data: list[AssistantMessage] = Field(default_factory=list)

    def extract(self) -> str | None:
        if not self.data or self.data[0].role != "assistant":
            return None
        first = self.data[0].content[0] if self.data[0].content else None
        if first is None or first.type != "text" or first.text is None:
            return None
        return first.text.value


BackendPayload = Annotated[
    Union[
        OllamaPayload,
        ChatCompletionPayload,
        TogetherPayload,
        ReplicatePayload,
        ClaudePayload,
        AssistantMessagesPayload,
    ],
    Field(discriminator="kind"),
]

_payload_adapter: TypeAdapter[Any] = TypeAdapter(BackendPayload)


# =============================================================================
# ASSISTANT RUN OBJECTS
# =============================================================================


class RunError(BaseModel):
    code: str | None = None
    message: str | None = None


class RunPayload(BaseModel):
    """Assistant run object (only the fields the poller reads)."""

    id: str
    status: str
    last_error: RunError | None = None


class ThreadPayload(BaseModel):
    id: str


# =============================================================================
# ADAPTERS
# =============================================================================


def parse_payload(provider: str, kind: str, data: Any) -> BaseModel:
    """
    Validate raw JSON against the variant for ``kind``.

    Raises:
        MalformedResponse: If the data does not fit the variant.
    """
    if not isinstance(data, dict):
        raise MalformedResponse(provider, f"expected JSON object, got {type(data).__name__}")
    try:
        return _payload_adapter.validate_python({**data, "kind": kind})
    except ValidationError as e:
        raise MalformedResponse(provider, f"unexpected {kind} payload: {e.error_count()} errors") from e


def extract_text(provider: str, kind: str, data: Any) -> str:
    """
    Normalize a backend payload to reply text.

    Raises:
        MalformedResponse: If the payload is invalid or carries no text.
    """
    payload = parse_payload(provider, kind, data)
    text = payload.extract()  # type: ignore[attr-defined]
    if not text or not text.strip():
        raise MalformedResponse(provider, f"{kind} payload has no text")
    return text


def parse_model(provider: str, model: type[BaseModel], data: Any) -> Any:
    """Validate ``data`` into ``model``, mapping failures to MalformedResponse."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedResponse(provider, f"unexpected {model.__name__}") from e
