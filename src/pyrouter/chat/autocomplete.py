"""Slash-command autocomplete state."""

from .commands import COMMAND_PREFIX, Command, filter_commands


class AutocompleteState:
    """Tracks the suggestion list and selection for the current draft.

    Suggestions are shown while the draft is a single word starting with the
    command prefix and not already an exact command name.
    """

    def __init__(self) -> None:
        self._visible = False
        self._index = 0
        self._filtered: list[Command] = []

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def index(self) -> int:
        return self._index

    @property
    def filtered(self) -> list[Command]:
        return list(self._filtered)

    def update(self, text: str) -> None:
        if not text.startswith(COMMAND_PREFIX) or any(c.isspace() for c in text):
            self._visible = False
            self._filtered = []
            self._index = 0
            return

        self._filtered = filter_commands(text)
        exact = any(cmd.name.lower() == text.lower() for cmd in self._filtered)
        self._visible = bool(self._filtered) and not exact

        if self._index >= len(self._filtered):
            self._index = max(0, len(self._filtered) - 1)

    def hide(self) -> None:
        self._visible = False

    def up(self) -> None:
        if self._index > 0:
            self._index -= 1

    def down(self) -> None:
        if self._index < len(self._filtered) - 1:
            self._index += 1

    def selected(self) -> str | None:
        if self._index < len(self._filtered):
            return self._filtered[self._index].name
        return None
