"""Abstract base class for session stores.

This module defines the interface for chat session persistence.
The abstraction hides:
- Storage format (JSON files, in-memory)
- Location and permissions of stored data
- How listings are built and ordered
"""

from abc import ABC, abstractmethod

from .errors import SessionNotFoundError
from .models import ChatSession, SessionSummary


class SessionStore(ABC):
    """Abstract session store.

    Provides a unified interface for loading, saving and listing chat
    sessions across storage backends.
    """

    @abstractmethod
    async def load(self, session_id: str) -> ChatSession:
        """Load a session by id.

        Raises:
            SessionNotFoundError: If no such session exists
            SessionStoreError: If the stored session cannot be read
        """

    @abstractmethod
    async def save(self, session: ChatSession) -> None:
        """Persist a session, refreshing its ``updated_at``.

        Raises:
            SessionStoreError: If the session cannot be written
        """

    @abstractmethod
    async def list_sessions(self) -> list[SessionSummary]:
        """Summaries of non-empty sessions, most recently updated first."""

    async def latest(self) -> ChatSession:
        """Load the most recently updated non-empty session.

        Raises:
            SessionNotFoundError: If there are no sessions
        """
        summaries = await self.list_sessions()
        if not summaries:
            raise SessionNotFoundError("latest")
        return await self.load(summaries[0].id)

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""
