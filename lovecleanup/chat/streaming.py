"""
Incremental delivery of a finished reply.

Reveals the reply word by word with a small random delay, the way the chat
widget shows a "typing" assistant. Delivery is cooperative and can be
cancelled through a ``CancelToken``.
"""

from __future__ import annotations

import inspect
import random
from collections.abc import Awaitable, Callable
from typing import Any

import anyio
from loguru import logger

ChunkCallback = Callable[[str], Any]
SleepFunc = Callable[[float], Awaitable[Any]]


class CancelToken:
    """Cooperative cancellation flag for one delivery."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        """Request that the delivery stop before its next chunk."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class StreamingDelivery:
    """
    Word-by-word reply reveal.

    Example:
        >>> delivery = StreamingDelivery(min_delay_ms=0, max_delay_ms=0)
        >>> await delivery.deliver("olá tudo bem", print)
        olá
        olá tudo
        olá tudo bem
        'olá tudo bem'
    """

    def __init__(
        self,
        min_delay_ms: int = 30,
        max_delay_ms: int = 70,
        rng: random.Random | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        if min_delay_ms < 0 or max_delay_ms < min_delay_ms:
            raise ValueError("invalid delay range")
        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max_delay_ms
        self.rng = rng or random.Random()
        self._sleep = sleep or anyio.sleep

    def next_delay(self) -> float:
        """Random inter-word delay in seconds."""
        return self.rng.uniform(self.min_delay_ms, self.max_delay_ms) / 1000

    async def deliver(
        self,
        full_text: str,
        on_chunk: ChunkCallback | None = None,
        token: CancelToken | None = None,
    ) -> str:
        """
        Reveal ``full_text`` progressively.

        Args:
            full_text: The complete reply.
            on_chunk: Called with the growing partial text after each word.
                May be a plain function or a coroutine function.
            token: Optional cancellation token.

        Returns:
            The text delivered: the whole reply, or the partial text if the
            token was cancelled mid-way.
        """
        words = full_text.split()
        current = ""

        for index, word in enumerate(words):
            if token is not None and token.cancelled:
                logger.debug(f"Stream cancelled after {index}/{len(words)} words")
                return current

            current = word if index == 0 else f"{current} {word}"
            if on_chunk is not None:
                result = on_chunk(current)
                if inspect.isawaitable(result):
                    await result

            if index < len(words) - 1:
                await self._sleep(self.next_delay())

        return current
