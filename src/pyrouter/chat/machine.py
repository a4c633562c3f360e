"""Interactive chat session logic, independent of any terminal toolkit.

Hides how input is routed between overlays, the ESC double-press gesture,
history recall and the streaming lifecycle. The UI only feeds events in
and carries effects out.
"""

import logging

from ..config.constants import DEFAULT_MODEL, ESC_TIMEOUT, STREAM_BUFFER_SIZE
from ..llm.base import ChatClient
from ..llm.models import ChatRequest, Message
from ..memory.base import SessionStore
from ..memory.errors import SessionStoreError
from ..memory.models import ChatSession
from .autocomplete import AutocompleteState
from .commands import (
    CMD_CLEAR,
    CMD_EXIT,
    CMD_MODELS,
    CMD_NEW,
    CMD_QUIT,
    CMD_RESUME,
    find_command,
    is_command_token,
    message_text,
)
from .events import (
    DraftChanged,
    Effect,
    EscTimedOut,
    Event,
    KeyPressed,
    ModelChosen,
    OpenModelPicker,
    OpenSessionPicker,
    OverlayClosed,
    PollStream,
    Quit,
    ScheduleTimer,
    SessionChosen,
    StreamChunkReceived,
    StreamFailed,
    StreamFinished,
)
from .history import HistoryNavigator
from .state import ChatState, EscAction, Overlay
from .stream import StreamSession

logger = logging.getLogger(__name__)


class ChatStateMachine:
    """State of one interactive chat.

    States are ``IDLE``, ``STREAMING`` and ``ESC_PENDING``; at most one
    overlay (a picker or the autocomplete list) is active on top of them.
    ``dispatch`` must not be called concurrently.

    Attributes:
        draft: Current text of the input box
        streaming_text: Partial assistant reply of the running generation
        error: Last error to show inline, cleared by the next submission
        warning: Last persistence warning, cleared by the next good save
    """

    def __init__(
        self,
        client: ChatClient,
        store: SessionStore,
        session: ChatSession | None = None,
        model: str | None = None,
        esc_timeout: float = ESC_TIMEOUT,
        buffer_size: int = STREAM_BUFFER_SIZE,
    ):
        self._client = client
        self._store = store
        self._esc_timeout = esc_timeout
        self._buffer_size = buffer_size

        self.session = session or ChatSession()
        self.model = model or self.session.model or DEFAULT_MODEL
        self.session.model = self.model

        self.state = ChatState.IDLE
        self.esc_action: EscAction | None = None
        self.draft = ""
        self.streaming_text = ""
        self.error: str | None = None
        self.warning: str | None = None

        self.history = HistoryNavigator(self.session.history)
        self.autocomplete = AutocompleteState()
        self.stream: StreamSession | None = None
        self._picker: Overlay | None = None
        self._stream_seq = 0
        self._esc_token = 0

    @property
    def messages(self) -> list[Message]:
        return self.session.messages

    @property
    def overlay(self) -> Overlay:
        if self._picker is not None:
            return self._picker
        if self.autocomplete.visible:
            return Overlay.AUTOCOMPLETE
        return Overlay.NONE

    @property
    def captures_arrow_keys(self) -> bool:
        """Whether up/down go to the machine rather than move the cursor."""
        if self.state == ChatState.STREAMING:
            return False
        if self.autocomplete.visible:
            return True
        return not self.draft.strip() or self.history.is_browsing

    @property
    def hint(self) -> str | None:
        """Pending-action prompt for the status line."""
        if self.state != ChatState.ESC_PENDING:
            return None
        if self.esc_action == EscAction.EXIT:
            return "Press Esc again to exit"
        return "Press Esc again to clear"

    async def dispatch(self, event: Event) -> list[Effect]:
        """Apply one event and return the effects the UI must carry out."""
        if isinstance(event, KeyPressed):
            return await self._on_key(event.key)
        if isinstance(event, DraftChanged):
            return self._on_draft_changed(event.text)
        if isinstance(event, StreamChunkReceived):
            return self._on_chunk(event)
        if isinstance(event, StreamFinished):
            return await self._on_finished(event)
        if isinstance(event, StreamFailed):
            return await self._on_failed(event)
        if isinstance(event, EscTimedOut):
            return self._on_esc_timeout(event)
        if isinstance(event, SessionChosen):
            return await self._on_session_chosen(event.session_id)
        if isinstance(event, ModelChosen):
            return await self._on_model_chosen(event.model_id)
        if isinstance(event, OverlayClosed):
            self._picker = None
            return []
        raise TypeError(f"unknown event: {event!r}")

    async def open_session_picker(self) -> list[Effect]:
        """Show the session picker with the current list of saved sessions."""
        try:
            summaries = await self._store.list_sessions()
        except SessionStoreError as e:
            logger.warning("Could not list sessions: %s", e)
            self.error = f"Could not list sessions: {e}"
            return []
        self._picker = Overlay.SESSION_PICKER
        self.autocomplete.hide()
        return [OpenSessionPicker(tuple(summaries))]

    def open_model_picker(self) -> list[Effect]:
        self._picker = Overlay.MODEL_PICKER
        self.autocomplete.hide()
        return [OpenModelPicker()]

    async def cancel_stream(self) -> None:
        """Abort the running generation and drop its partial reply."""
        stream, self.stream = self.stream, None
        if stream is not None:
            await stream.close()
        self.streaming_text = ""
        if self.state == ChatState.STREAMING:
            self.state = ChatState.IDLE

    # Input

    async def _on_key(self, key: str) -> list[Effect]:
        if self._picker is not None:
            return []

        if key == "ctrl+c":
            await self.cancel_stream()
            return [Quit()]

        if self.state == ChatState.STREAMING:
            if key == "escape":
                logger.debug("Generation cancelled by user")
                await self.cancel_stream()
            return []

        if self.autocomplete.visible:
            return self._on_autocomplete_key(key)

        if self.state == ChatState.ESC_PENDING:
            if key == "escape":
                return self._confirm_esc()
            self._leave_esc_pending()

        if key == "escape":
            return self._begin_esc()
        if key == "ctrl+u":
            self._set_draft("")
            self.history.reset()
            return []
        if key == "up":
            if self.captures_arrow_keys:
                entry = self.history.up(self.draft)
                if entry is not None:
                    self._set_draft(entry)
            return []
        if key == "down":
            if self.history.is_browsing:
                entry = self.history.down()
                if entry is not None:
                    self._set_draft(entry)
            return []
        if key == "enter":
            return await self._submit()
        return []

    def _on_autocomplete_key(self, key: str) -> list[Effect]:
        if key == "escape":
            self.autocomplete.hide()
        elif key == "up":
            self.autocomplete.up()
        elif key == "down":
            self.autocomplete.down()
        elif key in ("enter", "tab"):
            selected = self.autocomplete.selected()
            if selected is not None:
                self._set_draft(selected)
            self.autocomplete.hide()
        return []

    def _on_draft_changed(self, text: str) -> list[Effect]:
        if self.state == ChatState.STREAMING or text == self.draft:
            return []
        if self.state == ChatState.ESC_PENDING:
            self._leave_esc_pending()
        self._set_draft(text)
        return []

    def _set_draft(self, text: str) -> None:
        self.draft = text
        self.autocomplete.update(text)

    # ESC double press

    def _begin_esc(self) -> list[Effect]:
        self.esc_action = EscAction.EXIT if not self.draft.strip() else EscAction.CLEAR
        self.state = ChatState.ESC_PENDING
        self._esc_token += 1
        return [ScheduleTimer(self._esc_timeout, EscTimedOut(self._esc_token))]

    def _confirm_esc(self) -> list[Effect]:
        action = self.esc_action
        self._leave_esc_pending()
        if action == EscAction.EXIT:
            return [Quit()]
        self._set_draft("")
        self.history.reset()
        return []

    def _leave_esc_pending(self) -> None:
        self.state = ChatState.IDLE
        self.esc_action = None

    def _on_esc_timeout(self, event: EscTimedOut) -> list[Effect]:
        if self.state == ChatState.ESC_PENDING and event.token == self._esc_token:
            self._leave_esc_pending()
        return []

    # Submission

    async def _submit(self) -> list[Effect]:
        text = self.draft.strip()
        if not text:
            return []
        if is_command_token(text):
            return await self._run_command(text)

        self.history.add(text)
        self.history.reset()
        self.session.append_message(Message(role="user", content=message_text(text)))
        self._set_draft("")
        self.error = None
        self.streaming_text = ""
        await self._persist()

        self._stream_seq += 1
        request = ChatRequest(model=self.model, messages=tuple(self.session.messages))
        self.stream = StreamSession.start(
            self._client, request, self._stream_seq, self._buffer_size
        )
        self.state = ChatState.STREAMING
        return [PollStream(self.stream)]

    async def _run_command(self, text: str) -> list[Effect]:
        command = find_command(text)
        if command is None:
            self.error = f"Unknown command: {text} (type //{text[1:]} to send it as a message)"
            return []

        self.error = None
        if command.name in (CMD_QUIT, CMD_EXIT):
            return [Quit()]

        self._set_draft("")
        self.history.reset()
        if command.name == CMD_RESUME:
            return await self.open_session_picker()
        if command.name == CMD_MODELS:
            return self.open_model_picker()
        if command.name == CMD_NEW:
            self._replace_session(ChatSession(model=self.model))
        elif command.name == CMD_CLEAR:
            self.session.clear_messages()
            await self._persist()
        return []

    async def _persist(self) -> None:
        try:
            await self._store.save(self.session)
        except SessionStoreError as e:
            logger.warning("Session %s not saved: %s", self.session.id, e)
            self.warning = f"Session not saved: {e}"
        else:
            self.warning = None

    # Streaming

    def _is_current(self, stream_id: int) -> bool:
        return self.stream is not None and self.stream.id == stream_id

    def _on_chunk(self, event: StreamChunkReceived) -> list[Effect]:
        if not self._is_current(event.stream_id):
            return []
        self.streaming_text += event.text
        return [PollStream(self.stream)]

    async def _on_finished(self, event: StreamFinished) -> list[Effect]:
        if not self._is_current(event.stream_id):
            return []
        reply = self.streaming_text
        await self.cancel_stream()
        if reply:
            self.session.append_message(Message(role="assistant", content=reply))
            await self._persist()
        return []

    async def _on_failed(self, event: StreamFailed) -> list[Effect]:
        if not self._is_current(event.stream_id):
            return []
        logger.debug("Generation failed: %s", event.error)
        self.error = str(event.error)
        await self.cancel_stream()
        return []

    # Pickers

    async def _on_session_chosen(self, session_id: str) -> list[Effect]:
        self._picker = None
        try:
            session = await self._store.load(session_id)
        except SessionStoreError as e:
            self.error = str(e)
            return []
        self._replace_session(session)
        if session.model:
            self.model = session.model
        else:
            session.model = self.model
        return []

    async def _on_model_chosen(self, model_id: str) -> list[Effect]:
        self._picker = None
        self.model = model_id
        self.session.model = model_id
        if self.session.messages:
            await self._persist()
        return []

    def _replace_session(self, session: ChatSession) -> None:
        self.session = session
        self.history = HistoryNavigator(session.history)
        self._set_draft("")
        self.error = None
        self.warning = None
