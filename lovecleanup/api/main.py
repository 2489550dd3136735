"""
LoveCleanup API.

FastAPI backend for the chat assistant and the cleanup confirmation flow.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from lovecleanup import __version__
from lovecleanup.api.registry import SessionRegistry, get_registry, registry
from lovecleanup.api.websocket import ws_manager
from lovecleanup.core.config import get_settings
from lovecleanup.core.errors import SessionNotFound


async def sweep_idle_sessions(interval: float) -> None:
    """Periodically evict idle sessions; chats with a live socket are kept."""
    while True:
        await anyio.sleep(interval)
        await registry.evict_idle(keep=set(ws_manager.connections))


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """
    Startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    logger.info("Starting LoveCleanup API...")
    interval = get_settings().lovecleanup_session_sweep_interval
    async with anyio.create_task_group() as task_group:
        task_group.start_soon(sweep_idle_sessions, interval)
        yield
        task_group.cancel_scope.cancel()
    await registry.aclose()
    logger.info("Shutting down LoveCleanup API...")


app = FastAPI(
    title="LoveCleanup API",
    description="Digital breakup cleanup assistant API",
    version=__version__,
    lifespan=lifespan,
)

# CORS for the web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SessionNotFound)
async def session_not_found_handler(_request: Request, exc: SessionNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


# Import and include routers
from lovecleanup.api.routes import chat, cleanup  # noqa: E402

app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
app.include_router(cleanup.router, prefix="/api/cleanup", tags=["cleanup"])


@app.websocket("/ws/chat/{session_id}")
async def chat_websocket(
    websocket: WebSocket,
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> None:
    """
    WebSocket endpoint streaming replies of one conversation.

    Clients send ``{"action": "message", "text": "..."}`` and receive
    ``chunk`` frames followed by a ``done`` frame.

    Args:
        websocket: The WebSocket connection.
        session_id: Conversation created through ``POST /api/chat/sessions``.
    """
    try:
        chat = registry.get_chat(session_id)
    except SessionNotFound:
        await websocket.close(code=4404)
        return

    await ws_manager.connect(session_id, websocket)
    async with anyio.create_task_group() as task_group:
        try:
            while True:
                data = await websocket.receive_text()
                registry.touch(session_id)
                await ws_manager.handle_message(session_id, websocket, chat, data, task_group)
        except WebSocketDisconnect:
            task_group.cancel_scope.cancel()
    ws_manager.disconnect(session_id, websocket)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Health status and version.
    """
    return {"status": "healthy", "version": __version__}


@app.get("/api/ws-status")
async def ws_status() -> dict[str, int]:
    """
    Get WebSocket connection status.

    Returns:
        Number of active connections.
    """
    return {"active_connections": ws_manager.connection_count}
