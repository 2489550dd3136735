"""
Chat API Routes.

Create conversations with Luna and exchange messages.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from lovecleanup.api.registry import SessionRegistry, get_registry
from lovecleanup.chat.models import ChatContext, ResponseType
from lovecleanup.core.errors import ErrorTag

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class ChatSessionCreated(BaseModel):
    """Identifier of a new conversation."""

    session_id: str


class SendMessageRequest(BaseModel):
    """One user turn."""

    text: str = Field(..., min_length=1, max_length=4000)
    context: ChatContext | None = None


class ChatReply(BaseModel):
    """Assistant reply for one turn."""

    text: str
    type: ResponseType
    quick_replies: list[str]
    timestamp: datetime
    error: ErrorTag | None = None
    source: str


class ChatSessionStatus(BaseModel):
    """Counters, backend status and transcript of a conversation."""

    session_id: str
    message_count: int
    request_count: int
    requests_remaining: int
    request_limit: int
    thread_handle: str | None
    providers: list[dict[str, Any]]
    messages: list[dict[str, Any]] = Field(default_factory=list)


# ============================================================================
# Routes
# ============================================================================


def _status(session_id: str, registry: SessionRegistry) -> ChatSessionStatus:
    chat = registry.get_chat(session_id)
    return ChatSessionStatus(
        session_id=session_id,
        messages=[message.to_dict() for message in chat.history()],
        **chat.chain.stats(),
    )


@router.post("/sessions", response_model=ChatSessionCreated, status_code=201)
async def create_session(
    registry: SessionRegistry = Depends(get_registry),
) -> ChatSessionCreated:
    """Start a new conversation."""
    session_id, _chat = registry.create_chat()
    return ChatSessionCreated(session_id=session_id)


@router.post("/sessions/{session_id}/messages", response_model=ChatReply)
async def send_message(
    session_id: str,
    request: SendMessageRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> ChatReply:
    """
    Send a message and get Luna's reply.

    Always answers 200 with a reply; backend failures show up in ``error``.
    A reset racing the message answers 409.
    """
    chat = registry.get_chat(session_id)
    response = await chat.ask(request.text, request.context)
    if response is None:
        raise HTTPException(status_code=409, detail="Conversation was reset before the reply")
    return ChatReply(
        text=response.text,
        type=response.type,
        quick_replies=response.quick_replies,
        timestamp=response.timestamp,
        error=response.error,
        source=response.source,
    )


@router.post("/sessions/{session_id}/reset", response_model=ChatSessionStatus)
async def reset_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> ChatSessionStatus:
    """Clear history and the request budget of a conversation."""
    registry.get_chat(session_id).reset()
    return _status(session_id, registry)


@router.get("/sessions/{session_id}", response_model=ChatSessionStatus)
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> ChatSessionStatus:
    """Get conversation status and transcript."""
    return _status(session_id, registry)


@router.delete("/sessions/{session_id}", status_code=204)
async def close_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> None:
    """End a conversation and release its backends."""
    await registry.close_chat(session_id)
