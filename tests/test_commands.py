"""Unit tests for slash commands and their autocomplete."""
import pytest

from pyrouter.chat.autocomplete import AutocompleteState
from pyrouter.chat.commands import (
    AVAILABLE_COMMANDS,
    filter_commands,
    find_command,
    is_command_token,
    message_text,
)


class TestCommands:
    """Tests for the command table."""

    def test_table_is_sorted_and_unique(self):
        names = [cmd.name for cmd in AVAILABLE_COMMANDS]

        assert names == sorted(names)
        assert len(names) == len(set(names))
        assert {"/resume", "/models", "/quit"} <= set(names)

    def test_filter_by_prefix(self):
        assert [c.name for c in filter_commands("/")] == [c.name for c in AVAILABLE_COMMANDS]
        assert [c.name for c in filter_commands("/m")] == ["/models"]
        assert [c.name for c in filter_commands("/RE")] == ["/resume"]
        assert filter_commands("models") == []
        assert filter_commands("/zzz") == []

    def test_find_command_is_exact(self):
        assert find_command("/quit").name == "/quit"
        assert find_command("/qui") is None

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("/models", True),
            ("/foo", True),
            ("/models gpt", False),
            ("hello /models", False),
            ("path/like", False),
            ("//usr/bin/env", False),
        ],
    )
    def test_is_command_token(self, text: str, expected: bool):
        assert is_command_token(text) is expected

    @pytest.mark.parametrize(
        "text,expected",
        [("//usr/bin/env", "/usr/bin/env"), ("/quit", "/quit"), ("plain", "plain")],
    )
    def test_message_text(self, text: str, expected: str):
        assert message_text(text) == expected


class TestAutocompleteState:
    """Tests for suggestion visibility and selection."""

    def test_visible_for_partial_command(self):
        state = AutocompleteState()

        state.update("/")

        assert state.visible
        assert len(state.filtered) == len(AVAILABLE_COMMANDS)
        assert state.selected() == AVAILABLE_COMMANDS[0].name

    def test_hidden_for_exact_match(self):
        state = AutocompleteState()

        state.update("/models")

        assert not state.visible

    def test_hidden_for_plain_text_and_whitespace(self):
        state = AutocompleteState()

        state.update("hello")
        assert not state.visible

        state.update("/models x")
        assert not state.visible

    def test_hidden_when_nothing_matches(self):
        state = AutocompleteState()

        state.update("/xyz")

        assert not state.visible
        assert state.selected() is None

    def test_selection_moves_within_bounds(self):
        state = AutocompleteState()
        state.update("/")

        state.up()
        assert state.index == 0

        for _ in range(len(AVAILABLE_COMMANDS) + 3):
            state.down()
        assert state.index == len(AVAILABLE_COMMANDS) - 1

    def test_index_clamped_when_list_shrinks(self):
        state = AutocompleteState()
        state.update("/")
        for _ in range(len(AVAILABLE_COMMANDS)):
            state.down()

        state.update("/r")

        assert state.index == 0
        assert state.selected() == "/resume"

    def test_hide(self):
        state = AutocompleteState()
        state.update("/m")

        state.hide()

        assert not state.visible
