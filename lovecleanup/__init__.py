"""
LoveCleanup - digital breakup cleanup assistant.

Conversational support engine ("Luna") with a multi-backend provider chain
and a guarded confirmation flow for irreversible bulk deletes.
"""

__version__ = "0.1.0"
__author__ = "LoveCleanup Team"

from lovecleanup.chat.engine import LunaChat
from lovecleanup.cleanup.confirmation import ConfirmationSession

__all__ = ["LunaChat", "ConfirmationSession", "__version__"]
