"""
Three-step confirmation for the irreversible bulk delete.

Stages:
    0. Risk disclosure: shows what will be deleted. Always may advance.
    1. Typed confirmation: the user ticks "I understand" and types the
       confirmation phrase. Advances only when both hold.
    2. Final commit: the only stage whose forward action runs the executor.

Cancel is allowed from any stage; back moves exactly one stage and keeps
whatever was entered. Invalid actions are ignored, never raised.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from loguru import logger

from lovecleanup.cleanup.executor import CleanupCategory, CleanupExecutor, CleanupResult

CONFIRMATION_PHRASE = "DELETAR TUDO"

STEP_TITLES = (
    "Compreensão dos Riscos",
    "Confirmação Final",
    "Última Chance",
)

# =============================================================================
# ENUMS
# =============================================================================


class ConfirmationStage(int, Enum):
    """Step of the confirmation dialog."""

    RISK_DISCLOSURE = 0
    TYPED_CONFIRMATION = 1
    FINAL_COMMIT = 2


class ConfirmationStatus(str, Enum):
    """Lifecycle of a confirmation session."""

    OPEN = "open"
    CANCELLED = "cancelled"
    COMMITTED = "committed"


# =============================================================================
# SESSION
# =============================================================================


class ConfirmationSession:
    """
    State of one confirmation dialog.

    Attributes:
        id: Session identifier.
        stage: Current step.
        understood_checked: The "I understand the risks" checkbox.
        typed_confirmation: Phrase typed by the user, upper-cased.
        target_counts: Items to delete per category.
        status: Open until cancelled or committed.
        results: Executor results once committed.

    Example:
        >>> session = ConfirmationSession({"messages": 10})
        >>> session.advance()
        True
        >>> session.set_understood(True)
        >>> session.set_typed_confirmation("deletar tudo")
        >>> session.advance()
        True
        >>> session.stage
        <ConfirmationStage.FINAL_COMMIT: 2>
    """

    def __init__(self, target_counts: Mapping[CleanupCategory | str, int] | None = None) -> None:
        self.id = str(uuid4())
        self.created_at = datetime.now()
        self.stage = ConfirmationStage.RISK_DISCLOSURE
        self.understood_checked = False
        self.typed_confirmation = ""
        self.target_counts: dict[CleanupCategory, int] = {
            CleanupCategory(category): int(count)
            for category, count in (target_counts or {}).items()
        }
        self.status = ConfirmationStatus.OPEN
        self.results: list[CleanupResult] | None = None

    @property
    def is_open(self) -> bool:
        return self.status == ConfirmationStatus.OPEN

    @property
    def step_titles(self) -> tuple[str, ...]:
        return STEP_TITLES

    @property
    def step_title(self) -> str:
        return STEP_TITLES[self.stage]

    @property
    def total_items(self) -> int:
        """Total number of items that will be deleted."""
        return sum(self.target_counts.values())

    @property
    def progress(self) -> float:
        """Fraction of the dialog reached, counting the current step."""
        return (self.stage + 1) / len(STEP_TITLES)

    # =========================================================================
    # INPUTS
    # =========================================================================

    def set_understood(self, checked: bool) -> None:
        """Tick or untick the risk acknowledgement."""
        if not self.is_open:
            logger.debug(f"Ignoring checkbox change on {self.status.value} confirmation")
            return
        self.understood_checked = bool(checked)

    def set_typed_confirmation(self, text: str) -> None:
        """Store the typed phrase, normalized to upper case."""
        if not self.is_open:
            logger.debug(f"Ignoring typed text on {self.status.value} confirmation")
            return
        self.typed_confirmation = text.upper()

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def can_proceed(self) -> bool:
        """Whether the forward action of the current stage is allowed."""
        if not self.is_open:
            return False
        if self.stage == ConfirmationStage.TYPED_CONFIRMATION:
            return self.understood_checked and self.typed_confirmation == CONFIRMATION_PHRASE
        return True

    def advance(self) -> bool:
        """
        Move to the next stage.

        Returns:
            True if the stage changed. False when the gate is unmet, the
            session is closed, or the session is already at the final stage
            (use ``commit`` there).
        """
        if self.stage == ConfirmationStage.FINAL_COMMIT or not self.can_proceed():
            logger.debug(f"Advance refused at stage {self.stage.value} ({self.status.value})")
            return False

        self.stage = ConfirmationStage(self.stage + 1)
        logger.debug(f"Confirmation {self.id} advanced to {self.stage.name}")
        return True

    def back(self) -> bool:
        """Return to the previous stage, keeping entered data."""
        if not self.is_open or self.stage == ConfirmationStage.RISK_DISCLOSURE:
            logger.debug(f"Back refused at stage {self.stage.value} ({self.status.value})")
            return False

        self.stage = ConfirmationStage(self.stage - 1)
        return True

    def cancel(self) -> bool:
        """Abandon the dialog. Nothing is deleted."""
        if not self.is_open:
            return False
        self.status = ConfirmationStatus.CANCELLED
        logger.info(f"Confirmation {self.id} cancelled at {self.stage.name}")
        return True

    async def commit(
        self,
        executor: CleanupExecutor,
        categories: Iterable[CleanupCategory | str] | None = None,
    ) -> list[CleanupResult] | None:
        """
        Run the delete. Only possible from the final stage of an open session.

        Args:
            executor: Collaborator performing the deletion; invoked once.
            categories: Categories to clean. Defaults to those in
                ``target_counts``, or every category when none were given.

        Returns:
            Executor results, or None if commit was not allowed.
        """
        if not self.is_open or self.stage != ConfirmationStage.FINAL_COMMIT:
            logger.debug(f"Commit refused at stage {self.stage.value} ({self.status.value})")
            return None

        if categories is None:
            selected = list(self.target_counts) or list(CleanupCategory)
        else:
            selected = [CleanupCategory(category) for category in categories]

        # Closed before awaiting so a second commit cannot slip in.
        self.status = ConfirmationStatus.COMMITTED
        logger.warning(
            f"Confirmation {self.id} committed: deleting {self.total_items} items "
            f"in {[c.value for c in selected]}"
        )

        try:
            self.results = await executor.execute(selected)
        except Exception as e:
            logger.error(f"Confirmation {self.id} cleanup failed: {e}")
            raise
        return self.results

    def snapshot(self) -> dict[str, Any]:
        """Serializable view for UIs and the HTTP layer."""
        return {
            "id": self.id,
            "stage": self.stage.value,
            "step_title": self.step_title,
            "step_titles": list(STEP_TITLES),
            "status": self.status.value,
            "understood_checked": self.understood_checked,
            "typed_confirmation": self.typed_confirmation,
            "can_proceed": self.can_proceed(),
            "target_counts": {c.value: n for c, n in self.target_counts.items()},
            "total_items": self.total_items,
            "progress": self.progress,
            "results": [r.to_dict() for r in self.results] if self.results is not None else None,
        }
