"""In-memory session store.

Simple dict-based storage for session-only use.
Data is lost when the application exits.
"""

from .base import SessionStore
from .errors import SessionNotFoundError
from .models import ChatSession, SessionSummary


class InMemorySessionStore(SessionStore):
    """In-memory session store (process lifetime only).

    Stores copies, so later changes to a saved session are not visible until
    it is saved again.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, ChatSession] = {}

    async def load(self, session_id: str) -> ChatSession:
        try:
            return self._sessions[session_id].model_copy(deep=True)
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    async def save(self, session: ChatSession) -> None:
        session.touch()
        self._sessions[session.id] = session.model_copy(deep=True)

    async def list_sessions(self) -> list[SessionSummary]:
        summaries = [s.summary() for s in self._sessions.values() if s.messages]
        summaries.sort(key=lambda s: s.updated_at, reverse=True)
        return summaries

    @property
    def backend_type(self) -> str:
        return "memory"
