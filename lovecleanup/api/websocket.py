"""
WebSocket Connection Manager.

Streams Luna's replies to chat clients word by word.
"""

from __future__ import annotations

import json
from typing import Any

from anyio.abc import TaskGroup
from fastapi import WebSocket
from loguru import logger
from pydantic import ValidationError

from lovecleanup.chat.engine import LunaChat
from lovecleanup.chat.models import ChatContext, Message


class ConnectionManager:
    """
    Manages chat WebSocket connections.

    Several sockets may watch the same conversation; every frame of a turn
    is sent to all of them.
    """

    def __init__(self) -> None:
        """Initialize the connection manager."""
        self.connections: dict[str, list[WebSocket]] = {}

    @property
    def connection_count(self) -> int:
        """Get number of active connections."""
        return sum(len(sockets) for sockets in self.connections.values())

    async def connect(self, session_id: str, websocket: WebSocket) -> None:
        """
        Accept new WebSocket connection for a conversation.

        Args:
            session_id: Conversation the socket belongs to.
            websocket: The WebSocket connection to accept.
        """
        await websocket.accept()
        self.connections.setdefault(session_id, []).append(websocket)
        logger.info(f"Client connected to chat {session_id}. Total: {self.connection_count}")

    def disconnect(self, session_id: str, websocket: WebSocket) -> None:
        """
        Handle WebSocket disconnection.

        Args:
            session_id: Conversation the socket belonged to.
            websocket: The WebSocket connection that disconnected.
        """
        sockets = self.connections.get(session_id, [])
        if websocket in sockets:
            sockets.remove(websocket)
        if not sockets:
            self.connections.pop(session_id, None)
        logger.info(f"Client disconnected from chat {session_id}. Total: {self.connection_count}")

    async def handle_message(
        self,
        session_id: str,
        websocket: WebSocket,
        chat: LunaChat,
        data: str,
        task_group: TaskGroup,
    ) -> None:
        """
        Handle incoming WebSocket message.

        Actions:
            ``{"action": "message", "text": "...", "context": {...}}`` starts
            a turn in the background so a newer message can interrupt the
            reveal of the previous reply.
            ``{"action": "reset"}`` clears the conversation. A turn still in
            flight is discarded and sends no ``done`` frame.
            ``{"action": "ping"}`` answers ``pong``.

        Args:
            session_id: Conversation id.
            websocket: The WebSocket that sent the message.
            chat: The conversation engine.
            data: The raw message data (JSON string).
            task_group: Group owning the background turns of this socket.
        """
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            logger.warning(f"Invalid WebSocket message: {data}")
            await websocket.send_text(json.dumps({"type": "error", "detail": "invalid JSON"}))
            return

        action = message.get("action") if isinstance(message, dict) else None

        if action == "message":
            text = str(message.get("text") or "").strip()
            if not text:
                await websocket.send_text(json.dumps({"type": "error", "detail": "empty text"}))
                return
            try:
                context = ChatContext.model_validate(message["context"]) if message.get("context") else None
            except ValidationError as e:
                await websocket.send_text(
                    json.dumps({"type": "error", "detail": f"invalid context: {e.error_count()} errors"})
                )
                return
            task_group.start_soon(self.run_turn, session_id, chat, text, context)

        elif action == "reset":
            chat.reset()
            await self.send_to_session(session_id, {"type": "reset"})

        elif action == "ping":
            await websocket.send_text(json.dumps({"type": "pong"}))

        else:
            logger.debug(f"Unknown WebSocket action: {action!r}")

    async def run_turn(
        self,
        session_id: str,
        chat: LunaChat,
        text: str,
        context: ChatContext | None,
    ) -> None:
        """Run one turn, sending ``chunk`` frames and a final ``done`` frame."""

        async def on_update(update: Message) -> None:
            if update.streaming:
                await self.send_to_session(
                    session_id,
                    {"type": "chunk", "message_id": update.id, "text": update.text},
                )
                return

            # Final update arrives while the turn still holds the chat lock.
            response = chat.last_response
            await self.send_to_session(
                session_id,
                {
                    "type": "done",
                    "message": update.to_dict(),
                    "error": response.error.value if response and response.error else None,
                    "source": response.source if response else None,
                },
            )

        await chat.send(text, context, on_update=on_update)

    async def send_to_session(self, session_id: str, message: dict[str, Any]) -> None:
        """
        Send message to every socket of a conversation.

        Args:
            session_id: Conversation id.
            message: The message to send.
        """
        data = json.dumps(message)
        disconnected: list[WebSocket] = []

        for websocket in list(self.connections.get(session_id, [])):
            try:
                await websocket.send_text(data)
            except Exception as e:
                logger.error(f"Send error: {e}")
                disconnected.append(websocket)

        # Clean up disconnected clients
        for conn in disconnected:
            self.disconnect(session_id, conn)


# Global connection manager instance
ws_manager = ConnectionManager()
