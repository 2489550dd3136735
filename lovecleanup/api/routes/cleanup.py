"""
Cleanup API Routes.

Drive the three-step confirmation that guards the bulk delete.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from lovecleanup.api.registry import SessionRegistry, get_registry
from lovecleanup.cleanup.confirmation import ConfirmationSession
from lovecleanup.cleanup.executor import CleanupCategory, scan_counts

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class CreateConfirmationRequest(BaseModel):
    """Items to delete per category; scanned when omitted."""

    target_counts: dict[CleanupCategory, int] | None = None


class UnderstoodRequest(BaseModel):
    checked: bool


class TypedRequest(BaseModel):
    text: str = Field(..., max_length=100)


class ConfirmationView(BaseModel):
    """Snapshot of a confirmation plus whether the last action took effect."""

    accepted: bool = True
    confirmation: dict[str, Any]


# ============================================================================
# Routes
# ============================================================================


def _view(confirmation: ConfirmationSession, accepted: bool = True) -> ConfirmationView:
    return ConfirmationView(accepted=accepted, confirmation=confirmation.snapshot())


@router.post("/confirmations", response_model=ConfirmationView, status_code=201)
async def create_confirmation(
    request: CreateConfirmationRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> ConfirmationView:
    """Open a confirmation at the risk disclosure step."""
    counts = request.target_counts if request.target_counts is not None else scan_counts()
    return _view(registry.create_confirmation(counts))


@router.get("/confirmations/{confirmation_id}", response_model=ConfirmationView)
async def get_confirmation(
    confirmation_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> ConfirmationView:
    return _view(registry.get_confirmation(confirmation_id))


@router.post("/confirmations/{confirmation_id}/understood", response_model=ConfirmationView)
async def set_understood(
    confirmation_id: str,
    request: UnderstoodRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> ConfirmationView:
    confirmation = registry.get_confirmation(confirmation_id)
    confirmation.set_understood(request.checked)
    return _view(confirmation)


@router.post("/confirmations/{confirmation_id}/typed", response_model=ConfirmationView)
async def set_typed(
    confirmation_id: str,
    request: TypedRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> ConfirmationView:
    confirmation = registry.get_confirmation(confirmation_id)
    confirmation.set_typed_confirmation(request.text)
    return _view(confirmation)


@router.post("/confirmations/{confirmation_id}/advance", response_model=ConfirmationView)
async def advance(
    confirmation_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> ConfirmationView:
    """Move forward; ``accepted`` is false when the gate is unmet."""
    confirmation = registry.get_confirmation(confirmation_id)
    return _view(confirmation, confirmation.advance())


@router.post("/confirmations/{confirmation_id}/back", response_model=ConfirmationView)
async def back(
    confirmation_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> ConfirmationView:
    confirmation = registry.get_confirmation(confirmation_id)
    return _view(confirmation, confirmation.back())


@router.post("/confirmations/{confirmation_id}/cancel", response_model=ConfirmationView)
async def cancel(
    confirmation_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> ConfirmationView:
    """Abandon the confirmation. The session is discarded."""
    confirmation = registry.get_confirmation(confirmation_id)
    accepted = confirmation.cancel()
    registry.discard_confirmation(confirmation_id)
    return _view(confirmation, accepted)


@router.post("/confirmations/{confirmation_id}/commit", response_model=ConfirmationView)
async def commit(
    confirmation_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> ConfirmationView:
    """
    Run the delete. Only accepted at the final step.

    On success the session is discarded and the snapshot carries the results.
    If the executor fails the session is still discarded.
    """
    confirmation = registry.get_confirmation(confirmation_id)
    try:
        results = await confirmation.commit(registry.executor)
    finally:
        # A commit attempt closes the session even when the executor fails.
        if not confirmation.is_open:
            registry.discard_confirmation(confirmation_id)

    return _view(confirmation, accepted=results is not None)
