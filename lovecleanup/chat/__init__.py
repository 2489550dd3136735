"""
Luna chat engine.

Classifies user text, generates rule-based replies, tracks the conversation
window and streams replies word by word.
"""

from lovecleanup.chat.engine import LunaChat, start_chat_cli
from lovecleanup.chat.models import AIResponse, ChatContext, Message, ResponseType
from lovecleanup.chat.session import ConversationSession

__all__ = [
    "LunaChat",
    "start_chat_cli",
    "AIResponse",
    "ChatContext",
    "Message",
    "ResponseType",
    "ConversationSession",
]
