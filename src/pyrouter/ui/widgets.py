"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Which keys the input box hands to the chat logic
- Transcript rendering and the live reply
- Log rendering and level filtering
"""

import logging
from datetime import datetime

from rich.text import Text
from textual import events
from textual.containers import Vertical, VerticalScroll
from textual.message import Message as TextualMessage
from textual.widgets import Markdown, OptionList, RichLog, Static, TextArea
from textual.widgets.option_list import Option

from ..chat.commands import Command
from ..llm.models import Message
from .config import LOG_MAX_MESSAGE_LENGTH, LOG_TIMESTAMP_FORMAT, LogLevel


class PromptArea(TextArea):
    """Multi-line input box that hands control keys to the app.

    Enter submits instead of inserting a newline; Ctrl+J inserts one.
    Up/Down are only handed over while ``captures_arrows`` is set, so they
    still move the cursor inside a multi-line draft.
    """

    INTERCEPTED_KEYS = frozenset(
        {"enter", "escape", "tab", "ctrl+u", "ctrl+c", "pageup", "pagedown"}
    )

    class KeyIntercepted(TextualMessage):
        """A control key the chat logic should handle."""

        def __init__(self, key: str) -> None:
            super().__init__()
            self.key = key

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, show_line_numbers=False, **kwargs)
        self.captures_arrows = True

    async def _on_key(self, event: events.Key) -> None:
        key = event.key
        if key in self.INTERCEPTED_KEYS or (key in ("up", "down") and self.captures_arrows):
            event.prevent_default()
            event.stop()
            self.post_message(self.KeyIntercepted(key))
            return
        if key == "ctrl+j":
            event.prevent_default()
            event.stop()
            if not self.read_only:
                self.insert("\n")
            return
        await super()._on_key(event)

    def set_draft(self, text: str) -> None:
        """Replace the text and put the cursor at the end."""
        self.load_text(text)
        self.move_cursor(self.document.end)


class ChatHistoryWidget(VerticalScroll):
    """Scrollable transcript with a live area for the reply being generated."""

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "New conversation"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._count = 0
        self._streaming: Static | None = None
        self._streaming_container: Vertical | None = None

    @property
    def message_count(self) -> int:
        return self._count

    def reset(self, messages: list[Message]) -> None:
        """Re-render the whole transcript."""
        self._streaming = None
        self._streaming_container = None
        self.remove_children()
        self._count = 0
        self.append(messages)

    def append(self, messages: list[Message]) -> None:
        for msg in messages:
            self.mount(self._render_message(msg))
            self._count += 1
        self.border_subtitle = f"{self._count} messages" if self._count else "New conversation"
        self.scroll_end(animate=False)

    def show_streaming(self, text: str | None) -> None:
        """Show, update or (with None) remove the in-progress reply."""
        if text is None:
            if self._streaming_container is not None:
                self._streaming_container.remove()
            self._streaming = None
            self._streaming_container = None
            return

        content = text or "..."
        if self._streaming is None:
            self._streaming = Static(content, markup=False, classes="message-content")
            container = Vertical(classes="chat-message streaming-message")
            container.compose_add_child(Static("< Assistant (generating)", classes="message-header"))
            container.compose_add_child(self._streaming)
            self.mount(container)
            self._streaming_container = container
        else:
            self._streaming.update(content)
        self.scroll_end(animate=False)

    def _render_message(self, msg: Message) -> Vertical:
        if msg.role == "user":
            header, css_class = "> You", "user-message"
            body = Static(msg.content, markup=False, classes="message-content")
        else:
            header, css_class = "< Assistant", "assistant-message"
            body = Markdown(msg.content, classes="message-content")

        container = Vertical(classes=f"chat-message {css_class}")
        container.compose_add_child(Static(header, classes="message-header"))
        container.compose_add_child(body)
        return container


class AutocompleteList(OptionList):
    """Suggestion list for slash commands. Never takes focus."""

    can_focus = False

    def show_commands(self, commands: list[Command], index: int) -> None:
        names = [cmd.name for cmd in commands]
        current = [str(self.get_option_at_index(i).id) for i in range(self.option_count)]
        if names != current:
            self.clear_options()
            self.add_options(
                Option(Text.assemble(cmd.name, "  ", (cmd.description, "dim")), id=cmd.name)
                for cmd in commands
            )
        if commands:
            self.highlighted = min(index, len(commands) - 1)
        self.add_class("-visible")

    def hide(self) -> None:
        self.remove_class("-visible")


class StatusLine(Static):
    """One-line status: streaming indicator, pending ESC action, errors."""

    _KINDS = ("-streaming", "-error", "-pending")

    def set_status(self, text: str, kind: str | None = None) -> None:
        for css_class in self._KINDS:
            self.remove_class(css_class)
        if kind:
            self.add_class(f"-{kind}")
        self.update(text)


class DebugPanel(RichLog):
    """Log panel for real-time tracing with level filtering.

    Shows timestamped records from every ``pyrouter`` logger.
    Hidden by default, shown with --log-level flag or toggled with Ctrl+D.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Trace log"

    LEVEL_COLORS = {
        LogLevel.DEBUG: "dim white",
        LogLevel.INFO: "cyan",
        LogLevel.WARNING: "yellow",
        LogLevel.ERROR: "red",
    }

    def __init__(self, *args, log_level: int = LogLevel.DEBUG, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=False,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        return self._log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        if self.display:
            self.border_subtitle = f"Level: {LogLevel.name(self._log_level)}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        self.display = False

    def log(self, component: str, message: str, level: int = LogLevel.DEBUG) -> None:
        """Add a log entry if it meets the current level threshold.

        Args:
            component: Short source name (logger name without the package)
            message: Log message, escaped for markup
            level: Any ``logging`` level
        """
        if level < self._log_level:
            return

        from rich.markup import escape

        level = LogLevel.normalize(level)
        if len(message) > LOG_MAX_MESSAGE_LENGTH:
            message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."
        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        color = self.LEVEL_COLORS.get(level, "white")

        self.write(
            f"[dim]{timestamp}[/] "
            f"[{color}]{LogLevel.name(level):<5}[/] "
            f"[magenta]\\[{escape(component)}][/] {escape(message)}"
        )

    def write_record(self, record: logging.LogRecord) -> None:
        component = record.name.removeprefix("pyrouter.")
        self.log(component, record.getMessage(), record.levelno)

    def show(self) -> None:
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        self.display = False
        self.border_subtitle = "Hidden"

    def toggle(self) -> bool:
        """Toggle visibility. Returns new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True
