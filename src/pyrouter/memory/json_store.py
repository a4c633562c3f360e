"""JSON-file session store.

One ``<id>.json`` file per session in a private directory. Blocking file
I/O runs in a worker thread so the event loop stays responsive.
"""

import asyncio
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from .base import SessionStore
from .errors import SessionNotFoundError, SessionStoreError
from .models import ChatSession, SessionSummary

logger = logging.getLogger(__name__)

DIR_MODE = 0o700
FILE_MODE = 0o600


class JSONSessionStore(SessionStore):
    """Session store backed by a directory of JSON files.

    Files are written with owner-only permissions. Unreadable or corrupt
    files are skipped when listing.
    """

    def __init__(self, directory: str | Path):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    async def load(self, session_id: str) -> ChatSession:
        return await asyncio.to_thread(self._load_sync, session_id)

    async def save(self, session: ChatSession) -> None:
        session.touch()
        data = session.model_dump_json(indent=2)
        await asyncio.to_thread(self._write_sync, session.id, data)

    async def list_sessions(self) -> list[SessionSummary]:
        return await asyncio.to_thread(self._list_sync)

    @property
    def backend_type(self) -> str:
        return "json"

    def _path_for(self, session_id: str) -> Path:
        if not session_id or session_id in (".", "..") or "/" in session_id or os.sep in session_id:
            raise SessionNotFoundError(session_id)
        return self._directory / f"{session_id}.json"

    def _load_sync(self, session_id: str) -> ChatSession:
        path = self._path_for(session_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SessionNotFoundError(session_id) from None
        except OSError as e:
            raise SessionStoreError(f"failed to read session file: {e}") from e

        try:
            return ChatSession.model_validate_json(raw)
        except ValidationError as e:
            raise SessionStoreError(f"failed to parse session file {path.name}") from e

    def _write_sync(self, session_id: str, data: str) -> None:
        path = self._path_for(session_id)
        try:
            self._directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
        except OSError as e:
            raise SessionStoreError(f"failed to write session file: {e}") from e

    def _list_sync(self) -> list[SessionSummary]:
        if not self._directory.is_dir():
            return []

        summaries = []
        for path in self._directory.glob("*.json"):
            if not path.is_file():
                continue
            try:
                session = self._load_sync(path.stem)
            except SessionStoreError as e:
                logger.debug("Skipping unreadable session %s: %s", path.name, e)
                continue
            if not session.messages:
                continue
            summaries.append(session.summary())

        summaries.sort(key=lambda s: s.updated_at, reverse=True)
        return summaries
