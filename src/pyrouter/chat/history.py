"""Recall of previously submitted inputs with the arrow keys."""


class HistoryNavigator:
    """Cursor over the input history.

    The navigator works on the list it is given, so entries added here are
    visible to the session that owns the list. An index of -1 means the
    user is not browsing; the unsent draft is saved on the first ``up()``
    and restored when ``down()`` moves past the newest entry.
    """

    def __init__(self, entries: list[str] | None = None):
        self._entries = entries if entries is not None else []
        self._index = -1
        self._draft = ""

    @property
    def entries(self) -> list[str]:
        return self._entries

    @property
    def index(self) -> int:
        return self._index

    @property
    def is_browsing(self) -> bool:
        return self._index >= 0

    def up(self, current_input: str) -> str | None:
        """Move to an older entry.

        Returns:
            The entry to display, or None if there is no history
        """
        if not self._entries:
            return None
        if self._index == -1:
            self._draft = current_input
            self._index = len(self._entries) - 1
        elif self._index > 0:
            self._index -= 1
        return self._entries[self._index]

    def down(self) -> str | None:
        """Move to a newer entry, or back to the saved draft.

        Returns:
            The entry or draft to display, or None when not browsing
        """
        if self._index == -1:
            return None
        if self._index < len(self._entries) - 1:
            self._index += 1
            return self._entries[self._index]
        self._index = -1
        return self._draft

    def reset(self) -> None:
        self._index = -1
        self._draft = ""

    def add(self, entry: str) -> bool:
        """Append an entry unless it repeats the most recent one.

        Returns:
            True if the entry was added
        """
        if self._entries and self._entries[-1] == entry:
            return False
        self._entries.append(entry)
        return True
