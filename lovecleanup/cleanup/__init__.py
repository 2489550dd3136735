"""Guarded, irreversible cleanup of ex-related content."""

from lovecleanup.cleanup.confirmation import (
    CONFIRMATION_PHRASE,
    ConfirmationSession,
    ConfirmationStage,
    ConfirmationStatus,
)
from lovecleanup.cleanup.executor import (
    CleanupCategory,
    CleanupExecutor,
    CleanupResult,
    SimulatedCleanupExecutor,
    scan_counts,
)

__all__ = [
    "CONFIRMATION_PHRASE",
    "ConfirmationSession",
    "ConfirmationStage",
    "ConfirmationStatus",
    "CleanupCategory",
    "CleanupExecutor",
    "CleanupResult",
    "SimulatedCleanupExecutor",
    "scan_counts",
]
