"""Modal screens for the TUI.

This module hides the design decisions about:
- How the session and model pickers look and filter
- Where the model list comes from and how it is ranked
- Keyboard shortcuts inside a picker

Both pickers dismiss with the chosen id, or None when cancelled.
"""

from rich.markup import escape
from rich.text import Text
from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, OptionList, Static
from textual.widgets.option_list import Option

from ..llm.base import ChatClient
from ..llm.errors import PyrouterError
from ..llm.models import Model, filter_text_models, format_price_per_million
from ..memory.models import SessionSummary
from .config import MODEL_PICKER_TITLE, SESSION_PICKER_TITLE


class PickerScreen(ModalScreen[str | None]):
    """Filterable list dialog shared by both pickers."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("up", "cursor_up", "Up", show=False),
    ]

    PICKER_TITLE = ""

    def compose(self) -> ComposeResult:
        with Vertical(id="picker-dialog"):
            yield Static(self.PICKER_TITLE, id="picker-title")
            yield Input(placeholder="Type to filter...", id="picker-filter")
            yield OptionList(id="picker-list")
            yield Static("", id="picker-status")

    def on_mount(self) -> None:
        self.query_one("#picker-filter", Input).focus()
        self.refresh_options("")

    def on_input_changed(self, event: Input.Changed) -> None:
        self.refresh_options(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        option_list = self.query_one("#picker-list", OptionList)
        if option_list.highlighted is not None:
            option = option_list.get_option_at_index(option_list.highlighted)
            self.dismiss(option.id)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option.id)

    def action_cancel(self) -> None:
        self.dismiss(None)

    def action_cursor_down(self) -> None:
        self.query_one("#picker-list", OptionList).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#picker-list", OptionList).action_cursor_up()

    def set_status(self, text: str) -> None:
        self.query_one("#picker-status", Static).update(text)

    def show_options(self, options: list[Option]) -> None:
        option_list = self.query_one("#picker-list", OptionList)
        option_list.clear_options()
        option_list.add_options(options)
        if options:
            option_list.highlighted = 0

    def refresh_options(self, query: str) -> None:
        raise NotImplementedError


class SessionPickerScreen(PickerScreen):
    """Lists saved sessions, most recently updated first."""

    PICKER_TITLE = SESSION_PICKER_TITLE

    def __init__(self, summaries: list[SessionSummary]) -> None:
        super().__init__()
        self._summaries = summaries

    def refresh_options(self, query: str) -> None:
        needle = query.lower()
        matches = [
            s for s in self._summaries
            if not needle or needle in s.preview.lower() or needle in s.model.lower()
        ]
        self.show_options([Option(self._format(s), id=s.id) for s in matches])
        if not self._summaries:
            self.set_status("No saved sessions")
        else:
            self.set_status(f"{len(matches)} of {len(self._summaries)} sessions")

    @staticmethod
    def _format(summary: SessionSummary) -> Text:
        updated = summary.updated_at.astimezone().strftime("%Y-%m-%d %H:%M")
        return Text.assemble(
            (summary.preview or "(no preview)", "bold"),
            "\n",
            (f"{updated}  {summary.message_count} messages  {summary.model}", "dim"),
        )


class ModelPickerScreen(PickerScreen):
    """Lists text-in/text-out models from the API catalogue."""

    PICKER_TITLE = MODEL_PICKER_TITLE

    def __init__(self, client: ChatClient, current_model: str) -> None:
        super().__init__()
        self._client = client
        self._current = current_model
        self._models: list[Model] = []

    def on_mount(self) -> None:
        super().on_mount()
        self.set_status("Loading models...")
        self._load_models()

    @work(exclusive=True)
    async def _load_models(self) -> None:
        try:
            models = await self._client.list_models()
        except PyrouterError as e:
            self.set_status(f"[red]Failed to load models: {escape(str(e))}[/]")
            return
        self._models = sorted(filter_text_models(models), key=lambda m: (m.name or m.id).lower())
        self.refresh_options(self.query_one("#picker-filter", Input).value)

    def refresh_options(self, query: str) -> None:
        if not self._models:
            return
        needle = query.lower()
        matches = [
            m for m in self._models
            if not needle or needle in m.id.lower() or needle in m.name.lower()
        ]
        self.show_options([Option(self._format(m), id=m.id) for m in matches])
        self.set_status(f"{len(matches)} of {len(self._models)} models  (current: {self._current})")

    def _format(self, model: Model) -> Text:
        prompt = format_price_per_million(model.pricing.prompt or "0")
        completion = format_price_per_million(model.pricing.completion or "0")
        marker = "* " if model.id == self._current else "  "
        return Text.assemble(
            marker,
            (model.name or model.id, "bold"),
            f"  {model.id}",
            (f"  ${prompt}/${completion} per M", "dim"),
        )
