"""
Stateful OpenAI assistant backend (threads and runs).

One turn is: make sure the conversation has a thread, add the user message,
start a run, poll the run until it settles, then read the newest assistant
message. The thread id lives on the ``ConversationSession`` so a session
reset forces a fresh thread on the next turn.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import anyio
import httpx
from loguru import logger
from pydantic import SecretStr

from lovecleanup.chat.session import ConversationSession
from lovecleanup.core.errors import ProviderError, QuotaExhausted, RemoteUnavailable
from lovecleanup.providers.base import ProviderRequest, ProviderState
from lovecleanup.providers.http import HttpTextProvider, mentions_quota
from lovecleanup.providers.payloads import RunPayload, ThreadPayload, extract_text, parse_model
from lovecleanup.providers.prompts import RUN_INSTRUCTIONS

# Run statuses that keep the poller waiting.
PENDING_STATUSES = frozenset({"queued", "in_progress", "requires_action", "cancelling"})
FAILED_STATUSES = frozenset({"failed", "cancelled", "expired"})


class AssistantThreadProvider(HttpTextProvider):
    """
    OpenAI Assistants API backend.

    Example:
        >>> provider = AssistantThreadProvider(api_key=SecretStr("sk-..."))
        >>> await provider.initialize()
        <ProviderState.READY: 'ready'>
    """

    payload_kind = "assistant_messages"

    def __init__(
        self,
        api_key: SecretStr | str | None,
        assistant_id: str = "asst_L9ifj9xsGR5RCMl2IMhGuLEN",
        base_url: str = "https://api.openai.com/v1",
        priority: int = 0,
        poll_max_attempts: int = 30,
        poll_interval: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ) -> None:
        super().__init__("openai_assistant", priority, client=client, timeout=timeout)
        if isinstance(api_key, str):
            api_key = SecretStr(api_key)
        self.api_key = api_key
        self.assistant_id = assistant_id
        self.base_url = base_url.rstrip("/")
        self.poll_max_attempts = poll_max_attempts
        self.poll_interval = poll_interval
        self._sleep = sleep or anyio.sleep

    def headers(self) -> dict[str, str]:
        key = self.api_key.get_secret_value() if self.api_key else ""
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {key}",
            "OpenAI-Beta": "assistants=v2",
        }

    async def initialize(self) -> ProviderState:
        """Ready when a real key is configured, failed otherwise."""
        key = self.api_key.get_secret_value() if self.api_key else ""
        if not key or key == "your_openai_api_key_here":
            logger.warning("OpenAI API key not configured; assistant backend disabled")
            self.state = ProviderState.FAILED
        else:
            self.state = ProviderState.READY
        return self.state

    async def generate(self, request: ProviderRequest) -> str:
        thread_id = await self.ensure_thread(request.session)

        await self.post_json(
            f"{self.base_url}/threads/{thread_id}/messages",
            {"role": "user", "content": request.prompt},
        )

        run_data = await self.post_json(
            f"{self.base_url}/threads/{thread_id}/runs",
            {"assistant_id": self.assistant_id, "instructions": RUN_INSTRUCTIONS},
        )
        run: RunPayload = parse_model(self.name, RunPayload, run_data)

        await self.wait_for_run(thread_id, run.id)
        return await self.latest_assistant_message(thread_id)

    async def ensure_thread(self, session: ConversationSession) -> str:
        """Return the session's thread, creating one if needed."""
        if session.thread_handle:
            return session.thread_handle

        data = await self.post_json(
            f"{self.base_url}/threads",
            {
                "metadata": {
                    "session_start": datetime.now(timezone.utc).isoformat(),
                    "app": "LoveCleanup AI",
                }
            },
        )
        thread: ThreadPayload = parse_model(self.name, ThreadPayload, data)
        session.thread_handle = thread.id
        logger.info(f"Created assistant thread {thread.id}")
        return thread.id

    async def wait_for_run(self, thread_id: str, run_id: str) -> None:
        """
        Poll a run until it completes.

        Transient HTTP errors use up one attempt and polling continues;
        sticky errors abort immediately.

        Raises:
            QuotaExhausted: Run failed for quota or billing reasons.
            RemoteUnavailable: Run failed, was cancelled, expired, or polling
                ran out of attempts.
        """
        url = f"{self.base_url}/threads/{thread_id}/runs/{run_id}"

        for attempt in range(1, self.poll_max_attempts + 1):
            try:
                data = await self.request_json("GET", url)
            except ProviderError as e:
                if e.sticky:
                    raise
                logger.warning(f"Run poll {attempt}/{self.poll_max_attempts} failed: {e}")
                await self._sleep(self.poll_interval)
                continue

            run: RunPayload = parse_model(self.name, RunPayload, data)

            if run.status == "completed":
                return

            if run.status == "failed":
                error_text = ""
                if run.last_error is not None:
                    error_text = f"{run.last_error.code or ''} {run.last_error.message or ''}"
                if mentions_quota(error_text):
                    raise QuotaExhausted(self.name, error_text.strip())
                raise RemoteUnavailable(self.name, f"run failed: {error_text.strip()}")

            if run.status in FAILED_STATUSES:
                raise RemoteUnavailable(self.name, f"run {run.status}")

            if run.status not in PENDING_STATUSES:
                logger.debug(f"Unknown run status {run.status!r}, still waiting")

            await self._sleep(self.poll_interval)

        raise RemoteUnavailable(
            self.name, f"run not finished after {self.poll_max_attempts} polls"
        )

    async def latest_assistant_message(self, thread_id: str) -> str:
        """Text of the newest thread message, which must be the assistant's."""
        data = await self.request_json(
            "GET",
            f"{self.base_url}/threads/{thread_id}/messages",
            params={"limit": 1},
        )
        return extract_text(self.name, self.payload_kind, data)
