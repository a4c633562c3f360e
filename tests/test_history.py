"""Unit tests for input-history navigation."""
from hypothesis import given
from hypothesis import strategies as st

from pyrouter.chat.history import HistoryNavigator


class TestHistoryNavigator:
    """Tests for arrow-key recall."""

    def test_up_on_empty_history(self):
        nav = HistoryNavigator()

        assert nav.up("draft") is None
        assert not nav.is_browsing

    def test_down_when_not_browsing(self):
        nav = HistoryNavigator(["a"])

        assert nav.down() is None

    def test_walk_up_and_back_down_restores_draft(self):
        nav = HistoryNavigator(["a", "b", "c"])

        assert nav.up("typing") == "c"
        assert nav.up("c") == "b"
        assert nav.up("b") == "a"
        assert nav.up("a") == "a"
        assert nav.down() == "b"
        assert nav.down() == "c"
        assert nav.down() == "typing"
        assert not nav.is_browsing
        assert nav.index == -1

    def test_reset_forgets_position_and_draft(self):
        nav = HistoryNavigator(["a", "b"])
        nav.up("draft")

        nav.reset()

        assert not nav.is_browsing
        assert nav.up("new") == "b"
        assert nav.down() == "new"

    def test_add_skips_consecutive_duplicates(self):
        nav = HistoryNavigator()

        assert nav.add("hi")
        assert not nav.add("hi")
        assert nav.add("there")
        assert nav.add("hi")
        assert nav.entries == ["hi", "there", "hi"]

    def test_shares_list_with_owner(self):
        entries: list[str] = []
        nav = HistoryNavigator(entries)

        nav.add("kept")

        assert entries == ["kept"]

    @given(st.lists(st.text(min_size=1), max_size=20))
    def test_no_adjacent_duplicates(self, inputs: list[str]):
        """Property test: the stored history never repeats an entry back to back."""
        nav = HistoryNavigator()
        for text in inputs:
            nav.add(text)

        assert all(a != b for a, b in zip(nav.entries, nav.entries[1:]))
