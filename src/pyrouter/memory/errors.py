from ..llm.errors import PyrouterError


class SessionStoreError(PyrouterError):
    """A session could not be read or written."""


class SessionNotFoundError(SessionStoreError):
    """No session exists with the requested id."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"session not found: {session_id}")
