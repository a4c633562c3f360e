"""Data models for stored chat sessions.

These models define the structure of a conversation and its list summary,
independent of the storage backend used.
"""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..llm.models import Message

PREVIEW_LENGTH = 50


def _now() -> datetime:
    return datetime.now(UTC)


class ChatSession(BaseModel):
    """One conversation: its input history and full message list.

    Mutated by the chat state machine after every turn and written back by a
    ``SessionStore``.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    model: str = Field(default="", description="Model used for this session")
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    history: list[str] = Field(default_factory=list, description="User inputs for recall")
    messages: list[Message] = Field(default_factory=list, description="Full conversation")

    def append_message(self, message: Message) -> None:
        self.messages.append(message)

    def clear_messages(self) -> None:
        self.messages.clear()

    def touch(self) -> None:
        self.updated_at = _now()

    def preview(self, limit: int = PREVIEW_LENGTH) -> str:
        """First user message, truncated to ``limit`` characters."""
        text = next((m.content for m in self.messages if m.role == "user"), "")
        if len(text) > limit:
            return text[: limit - 3] + "..."
        return text

    def summary(self) -> "SessionSummary":
        return SessionSummary(
            id=self.id,
            model=self.model,
            created_at=self.created_at,
            updated_at=self.updated_at,
            message_count=len(self.messages),
            preview=self.preview(),
        )


class SessionSummary(BaseModel):
    """Session as shown in a picker or listing."""

    model_config = ConfigDict(frozen=True)

    id: str
    model: str = ""
    created_at: datetime
    updated_at: datetime
    message_count: int = 0
    preview: str = ""
