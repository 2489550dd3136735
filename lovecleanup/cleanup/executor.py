"""
Bulk-delete executor.

The real deletion integrations (messaging apps, photo libraries, social
networks, banking) live outside this package. ``SimulatedCleanupExecutor``
stands in for them with fixed timings and counts so the confirmation flow
has something to commit against.
"""

from __future__ import annotations

import inspect
import random
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import anyio
from loguru import logger

# =============================================================================
# ENUMS
# =============================================================================


class CleanupCategory(str, Enum):
    """Kinds of content a cleanup removes."""

    MESSAGES = "messages"
    PHOTOS = "photos"
    SOCIAL = "social"
    FINANCIAL = "financial"


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class CleanupResult:
    """Outcome of cleaning one category."""

    category: CleanupCategory
    success: bool
    items_processed: int
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "category": self.category.value,
            "success": self.success,
            "items_processed": self.items_processed,
            "errors": list(self.errors),
        }


# Simulated seconds per category and items reported as removed.
SIMULATED_DELAYS: dict[CleanupCategory, float] = {
    CleanupCategory.MESSAGES: 3.0,
    CleanupCategory.PHOTOS: 5.0,
    CleanupCategory.SOCIAL: 2.5,
    CleanupCategory.FINANCIAL: 1.5,
}

SIMULATED_COUNTS: dict[CleanupCategory, int] = {
    CleanupCategory.MESSAGES: 127,
    CleanupCategory.PHOTOS: 89,
    CleanupCategory.SOCIAL: 43,
    CleanupCategory.FINANCIAL: 12,
}

# Inclusive ranges for mock scan results.
SCAN_RANGES: dict[CleanupCategory, tuple[int, int]] = {
    CleanupCategory.MESSAGES: (50, 549),
    CleanupCategory.PHOTOS: (20, 219),
    CleanupCategory.SOCIAL: (10, 109),
    CleanupCategory.FINANCIAL: (5, 54),
}

ProgressCallback = Callable[[CleanupCategory, int], Any]
SleepFunc = Callable[[float], Awaitable[Any]]


def scan_counts(rng: random.Random | None = None) -> dict[CleanupCategory, int]:
    """Mock per-category counts shown on the risk disclosure step."""
    rng = rng or random.Random()
    return {category: rng.randint(low, high) for category, (low, high) in SCAN_RANGES.items()}


# =============================================================================
# EXECUTORS
# =============================================================================


class CleanupExecutor(ABC):
    """Performs the irreversible delete once a confirmation is committed."""

    @abstractmethod
    async def execute(self, categories: Iterable[CleanupCategory]) -> list[CleanupResult]:
        """Delete content in each category, in order."""
        ...


class SimulatedCleanupExecutor(CleanupExecutor):
    """
    Executor that only waits and reports fixed counts.

    Args:
        sleep: Awaitable sleep, injectable for tests.
        on_progress: Called with (category, 0) before and (category, 100)
            after each category. Sync or async.
    """

    def __init__(
        self,
        sleep: SleepFunc | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._sleep = sleep or anyio.sleep
        self.on_progress = on_progress
        self.calls = 0

    async def execute(self, categories: Iterable[CleanupCategory]) -> list[CleanupResult]:
        self.calls += 1
        results: list[CleanupResult] = []

        for category in categories:
            category = CleanupCategory(category)
            await self._report(category, 0)
            await self._sleep(SIMULATED_DELAYS[category])
            results.append(
                CleanupResult(
                    category=category,
                    success=True,
                    items_processed=SIMULATED_COUNTS[category],
                )
            )
            await self._report(category, 100)
            logger.info(f"Cleaned {category.value}: {SIMULATED_COUNTS[category]} items")

        return results

    async def _report(self, category: CleanupCategory, progress: int) -> None:
        if self.on_progress is None:
            return
        result = self.on_progress(category, progress)
        if inspect.isawaitable(result):
            await result
