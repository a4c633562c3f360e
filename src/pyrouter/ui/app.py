"""Main Textual TUI application.

Adapts the toolkit-independent ``ChatStateMachine`` to Textual: widget
events become machine events, machine effects become timers, workers and
screens, and the widgets are redrawn from machine state after every event.
"""

import asyncio
import logging
from functools import partial

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, TextArea

from ..chat.events import (
    DraftChanged,
    Effect,
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
)
from ..chat.machine import ChatStateMachine
from ..chat.state import ChatState, Overlay
from ..chat.stream import StreamSession
from ..llm.base import ChatClient
from .config import LogLevel
from .log_handler import PanelLogHandler
from .screens import ModelPickerScreen, SessionPickerScreen
from .styles import APP_CSS
from .themes import MOCHA
from .widgets import AutocompleteList, ChatHistoryWidget, DebugPanel, PromptArea, StatusLine

logger = logging.getLogger(__name__)


class ChatApp(App):
    """Textual TUI for an OpenRouter chat session."""

    CSS = APP_CSS
    TITLE = "pyrouter"

    BINDINGS = [
        Binding("ctrl+d", "toggle_debug", "Log"),
        Binding("ctrl+l", "clear_log", "Clear Log"),
        Binding("pageup", "page_up", "Scroll Up", show=False),
        Binding("pagedown", "page_down", "Scroll Down", show=False),
    ]

    def __init__(
        self,
        machine: ChatStateMachine,
        client: ChatClient,
        log_level: str | None = None,
        show_session_picker: bool = False,
    ) -> None:
        super().__init__()
        self.machine = machine
        self._client = client
        self._log_level = log_level
        self._show_session_picker = show_session_picker
        self._lock = asyncio.Lock()
        self._log_handler: PanelLogHandler | None = None
        self._rendered_session: str | None = None
        self._synced_draft = ""

    def compose(self) -> ComposeResult:
        yield Header()
        yield ChatHistoryWidget(id="chat-history")
        yield AutocompleteList(id="autocomplete")
        yield StatusLine("", id="status-line", markup=False)
        yield PromptArea(id="prompt")
        yield DebugPanel(id="debug-panel")
        yield Footer()

    async def on_mount(self) -> None:
        self.register_theme(MOCHA)
        self.theme = MOCHA.name

        log_panel = self.query_one("#debug-panel", DebugPanel)
        self._log_handler = PanelLogHandler(self, log_panel)
        logging.getLogger("pyrouter").addHandler(self._log_handler)
        if self._log_level is not None:
            log_panel.log_level = LogLevel.from_string(self._log_level)
            log_panel.show()
            log_panel.info("TUI", f"Log panel enabled with level: {self._log_level.upper()}")

        self._refresh_view()
        self.query_one("#prompt", PromptArea).focus()

        if self._show_session_picker:
            for effect in await self.machine.open_session_picker():
                await self._apply(effect)
            self._refresh_view()

    def on_unmount(self) -> None:
        if self._log_handler is not None:
            logging.getLogger("pyrouter").removeHandler(self._log_handler)
            self._log_handler = None

    # Events into the machine

    async def on_prompt_area_key_intercepted(self, event: PromptArea.KeyIntercepted) -> None:
        if event.key == "pageup":
            self.action_page_up()
        elif event.key == "pagedown":
            self.action_page_down()
        else:
            await self._dispatch(KeyPressed(event.key))

    async def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if event.text_area.id == "prompt":
            await self._dispatch(DraftChanged(event.text_area.text))

    async def _dispatch(self, event: Event, pumping: StreamSession | None = None) -> bool:
        """Feed one event to the machine and carry out its effects.

        Returns:
            True if ``pumping`` should be polled again
        """
        async with self._lock:
            effects = await self.machine.dispatch(event)
        self._refresh_view()

        poll_again = False
        for effect in effects:
            if isinstance(effect, PollStream) and effect.session is pumping:
                poll_again = True
            else:
                await self._apply(effect)
        return poll_again

    async def _apply(self, effect: Effect) -> None:
        if isinstance(effect, PollStream):
            self._pump(effect.session)
        elif isinstance(effect, ScheduleTimer):
            self.set_timer(effect.delay, partial(self._dispatch, effect.event))
        elif isinstance(effect, OpenSessionPicker):
            self.push_screen(SessionPickerScreen(list(effect.summaries)), self._on_session_picked)
        elif isinstance(effect, OpenModelPicker):
            self.push_screen(ModelPickerScreen(self._client, self.machine.model), self._on_model_picked)
        elif isinstance(effect, Quit):
            logger.debug("Quit requested")
            await self.machine.cancel_stream()
            self.exit()

    @work(exclusive=True, group="stream")
    async def _pump(self, session: StreamSession) -> None:
        """Poll one stream session until it finishes, fails or is replaced."""
        while await self._dispatch(await session.next_event(), pumping=session):
            pass

    async def _on_session_picked(self, session_id: str | None) -> None:
        if session_id is None:
            await self._dispatch(OverlayClosed())
        else:
            await self._dispatch(SessionChosen(session_id))
        self.query_one("#prompt", PromptArea).focus()

    async def _on_model_picked(self, model_id: str | None) -> None:
        if model_id is None:
            await self._dispatch(OverlayClosed())
        else:
            await self._dispatch(ModelChosen(model_id))
            self.notify(f"Model: {model_id}", timeout=2)
        self.query_one("#prompt", PromptArea).focus()

    # Machine state out to widgets

    def _refresh_view(self) -> None:
        machine = self.machine
        self.sub_title = machine.model

        history = self.query_one("#chat-history", ChatHistoryWidget)
        messages = machine.messages
        if self._rendered_session != machine.session.id or len(messages) < history.message_count:
            history.reset(messages)
            self._rendered_session = machine.session.id
        elif len(messages) > history.message_count:
            history.show_streaming(None)
            history.append(messages[history.message_count:])
        history.show_streaming(
            machine.streaming_text if machine.state == ChatState.STREAMING else None
        )

        prompt = self.query_one("#prompt", PromptArea)
        if machine.draft != self._synced_draft:
            self._synced_draft = machine.draft
            if prompt.text != machine.draft:
                prompt.set_draft(machine.draft)
        prompt.read_only = machine.state == ChatState.STREAMING
        prompt.set_class(prompt.read_only, "-read-only")
        prompt.captures_arrows = machine.captures_arrow_keys

        autocomplete = self.query_one("#autocomplete", AutocompleteList)
        if machine.overlay == Overlay.AUTOCOMPLETE:
            autocomplete.show_commands(machine.autocomplete.filtered, machine.autocomplete.index)
        else:
            autocomplete.hide()

        status = self.query_one("#status-line", StatusLine)
        if machine.hint:
            status.set_status(machine.hint, "pending")
        elif machine.state == ChatState.STREAMING:
            status.set_status("Generating... (Esc to cancel)", "streaming")
        elif machine.error:
            status.set_status(f"Error: {machine.error}", "error")
        elif machine.warning:
            status.set_status(machine.warning, "pending")
        else:
            status.set_status("Enter to send, Ctrl+J for newline, / for commands")

    # Actions

    def action_toggle_debug(self) -> None:
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)

    def action_clear_log(self) -> None:
        self.query_one("#debug-panel", DebugPanel).clear()

    def action_page_up(self) -> None:
        self.query_one("#chat-history", ChatHistoryWidget).scroll_page_up()

    def action_page_down(self) -> None:
        self.query_one("#chat-history", ChatHistoryWidget).scroll_page_down()


async def run_chat_tui(
    machine: ChatStateMachine,
    client: ChatClient,
    log_level: str | None = None,
    show_session_picker: bool = False,
) -> None:
    """Run the Textual TUI until the user quits.

    Args:
        machine: Chat state, already holding the session to show
        client: API client, used here for the model picker
        log_level: Log level for panel (debug/info/warning/error), None to hide
        show_session_picker: Open the session picker on start
    """
    app = ChatApp(
        machine=machine,
        client=client,
        log_level=log_level,
        show_session_picker=show_session_picker,
    )
    try:
        await app.run_async()
    finally:
        await machine.cancel_stream()
