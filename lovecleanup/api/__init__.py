"""
LoveCleanup API.

FastAPI backend for chat and cleanup confirmation.
"""

from lovecleanup.api.main import app
from lovecleanup.api.registry import SessionRegistry, get_registry
from lovecleanup.api.websocket import ConnectionManager, ws_manager

__all__ = ["app", "SessionRegistry", "get_registry", "ConnectionManager", "ws_manager"]
