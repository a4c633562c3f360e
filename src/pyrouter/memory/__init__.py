"""Session persistence for pyrouter.

Stores conversations and input history so they can be resumed.
"""

from .base import SessionStore
from .errors import SessionNotFoundError, SessionStoreError
from .factory import create_session_store
from .models import ChatSession, SessionSummary

__all__ = [
    "ChatSession",
    "SessionNotFoundError",
    "SessionStore",
    "SessionStoreError",
    "SessionSummary",
    "create_session_store",
]
