"""Unit tests for the chat state machine."""
import asyncio

import pytest
from conftest import FakeChatClient, FakeReader

from pyrouter.chat import ChatStateMachine
from pyrouter.chat.events import (
    DraftChanged,
    EscTimedOut,
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
    StreamFinished,
)
from pyrouter.chat.state import ChatState, EscAction, Overlay
from pyrouter.llm import APIError, Message
from pyrouter.memory import ChatSession, SessionStoreError
from pyrouter.memory.in_memory import InMemorySessionStore


class BrokenStore(InMemorySessionStore):
    """Store whose writes always fail."""

    async def save(self, session: ChatSession) -> None:
        raise SessionStoreError("disk full")


async def pump(machine: ChatStateMachine, effects: list) -> list:
    """Follow PollStream effects until the machine stops asking for events."""
    while True:
        polls = [e for e in effects if isinstance(e, PollStream)]
        if not polls:
            return effects
        event = await asyncio.wait_for(polls[0].session.next_event(), timeout=1.0)
        effects = await machine.dispatch(event)


async def submit(machine: ChatStateMachine, text: str) -> list:
    await machine.dispatch(DraftChanged(text))
    return await machine.dispatch(KeyPressed("enter"))


@pytest.fixture
def machine(fake_client, memory_store):
    return ChatStateMachine(fake_client, memory_store, model="test/model", esc_timeout=2.0)


class TestSubmission:
    """Tests for sending a message and receiving the reply."""

    @pytest.mark.asyncio
    async def test_full_turn(self, machine, fake_client, memory_store):
        fake_client.scripts.append(FakeReader(["He", "llo"]))

        effects = await submit(machine, "hi")

        assert machine.state == ChatState.STREAMING
        assert machine.draft == ""
        assert isinstance(effects[0], PollStream)

        await pump(machine, effects)

        assert machine.state == ChatState.IDLE
        assert machine.stream is None
        assert [(m.role, m.content) for m in machine.messages] == [
            ("user", "hi"),
            ("assistant", "Hello"),
        ]
        assert machine.session.history == ["hi"]

        stored = await memory_store.load(machine.session.id)
        assert [m.content for m in stored.messages] == ["hi", "Hello"]
        assert stored.history == ["hi"]
        assert stored.model == "test/model"

    @pytest.mark.asyncio
    async def test_request_carries_whole_conversation(self, machine, fake_client):
        fake_client.scripts.extend([FakeReader(["one"]), FakeReader(["two"])])

        await pump(machine, await submit(machine, "first"))
        await pump(machine, await submit(machine, "second"))

        last = fake_client.requests[-1]
        assert last.model == "test/model"
        assert [m.content for m in last.messages] == ["first", "one", "second"]

    @pytest.mark.asyncio
    async def test_blank_draft_is_not_sent(self, machine, fake_client):
        effects = await submit(machine, "   ")

        assert effects == []
        assert fake_client.requests == []
        assert machine.messages == []

    @pytest.mark.asyncio
    async def test_streaming_text_accumulates(self, machine, fake_client):
        fake_client.scripts.append(FakeReader(["a", "b"], hang=True))
        effects = await submit(machine, "go")
        session = effects[0].session

        await machine.dispatch(await session.next_event())
        await machine.dispatch(await session.next_event())

        assert machine.streaming_text == "ab"
        await machine.cancel_stream()

    @pytest.mark.asyncio
    async def test_empty_reply_adds_no_message(self, machine, fake_client):
        fake_client.scripts.append(FakeReader([]))

        await pump(machine, await submit(machine, "hi"))

        assert [m.role for m in machine.messages] == ["user"]
        assert machine.state == ChatState.IDLE

    @pytest.mark.asyncio
    async def test_stream_failure_sets_error(self, machine, fake_client):
        error = APIError(status_code=500, message="upstream")
        fake_client.scripts.append(FakeReader(["partial"], error=error))

        await pump(machine, await submit(machine, "hi"))

        assert machine.state == ChatState.IDLE
        assert machine.error == str(error)
        assert [m.role for m in machine.messages] == ["user"]
        assert machine.streaming_text == ""

    @pytest.mark.asyncio
    async def test_next_submission_clears_error(self, machine, fake_client):
        fake_client.scripts.extend([
            FakeReader([], error=APIError(status_code=500)),
            FakeReader(["fine"]),
        ])
        await pump(machine, await submit(machine, "one"))
        assert machine.error

        await pump(machine, await submit(machine, "two"))

        assert machine.error is None

    @pytest.mark.asyncio
    async def test_persistence_failure_is_a_warning(self, fake_client):
        machine = ChatStateMachine(fake_client, BrokenStore(), model="m")
        fake_client.scripts.append(FakeReader(["ok"]))

        await pump(machine, await submit(machine, "hi"))

        assert machine.warning is not None
        assert "disk full" in machine.warning
        assert machine.error is None
        assert [m.content for m in machine.messages] == ["hi", "ok"]

    @pytest.mark.asyncio
    async def test_input_ignored_while_streaming(self, machine, fake_client):
        fake_client.scripts.append(FakeReader([], hang=True))
        await submit(machine, "hi")

        assert await machine.dispatch(DraftChanged("typed")) == []
        assert await machine.dispatch(KeyPressed("enter")) == []
        assert machine.draft == ""
        assert len(fake_client.requests) == 1
        assert not machine.captures_arrow_keys

        await machine.cancel_stream()


class TestCancellation:
    """Tests for cancelling a running generation."""

    @pytest.mark.asyncio
    async def test_escape_cancels_stream(self, machine, fake_client):
        reader = FakeReader(["partial"], hang=True)
        fake_client.scripts.append(reader)
        effects = await submit(machine, "hi")
        session = effects[0].session
        await machine.dispatch(await session.next_event())

        effects = await asyncio.wait_for(machine.dispatch(KeyPressed("escape")), timeout=1.0)

        assert effects == []
        assert machine.state == ChatState.IDLE
        assert machine.stream is None
        assert machine.streaming_text == ""
        assert session.task.done()
        assert reader.closed
        assert [m.role for m in machine.messages] == ["user"]

    @pytest.mark.asyncio
    async def test_late_events_are_ignored(self, machine, fake_client):
        fake_client.scripts.append(FakeReader([], hang=True))
        effects = await submit(machine, "hi")
        old_id = effects[0].session.id
        await machine.dispatch(KeyPressed("escape"))

        assert await machine.dispatch(StreamChunkReceived(old_id, "late")) == []
        assert await machine.dispatch(StreamFinished(old_id)) == []

        assert machine.streaming_text == ""
        assert [m.role for m in machine.messages] == ["user"]

    @pytest.mark.asyncio
    async def test_ctrl_c_quits_and_cancels(self, machine, fake_client):
        fake_client.scripts.append(FakeReader([], hang=True))
        effects = await submit(machine, "hi")
        session = effects[0].session

        assert await machine.dispatch(KeyPressed("ctrl+c")) == [Quit()]
        assert session.task.done()
        assert machine.stream is None


class TestEscape:
    """Tests for the double-press ESC gesture."""

    @pytest.mark.asyncio
    async def test_double_escape_on_empty_draft_exits(self, machine):
        effects = await machine.dispatch(KeyPressed("escape"))

        assert machine.state == ChatState.ESC_PENDING
        assert machine.esc_action == EscAction.EXIT
        assert machine.hint == "Press Esc again to exit"
        assert len(effects) == 1
        timer = effects[0]
        assert isinstance(timer, ScheduleTimer)
        assert timer.delay == 2.0
        assert isinstance(timer.event, EscTimedOut)

        assert await machine.dispatch(KeyPressed("escape")) == [Quit()]

    @pytest.mark.asyncio
    async def test_double_escape_with_text_clears(self, machine):
        await machine.dispatch(DraftChanged("some text"))

        await machine.dispatch(KeyPressed("escape"))
        assert machine.esc_action == EscAction.CLEAR
        assert machine.hint == "Press Esc again to clear"

        assert await machine.dispatch(KeyPressed("escape")) == []
        assert machine.draft == ""
        assert machine.state == ChatState.IDLE

    @pytest.mark.asyncio
    async def test_timeout_reverts_to_idle(self, machine):
        await machine.dispatch(DraftChanged("text"))
        timer = (await machine.dispatch(KeyPressed("escape")))[0]

        await machine.dispatch(timer.event)

        assert machine.state == ChatState.IDLE
        assert machine.esc_action is None
        assert machine.draft == "text"
        assert machine.hint is None

    @pytest.mark.asyncio
    async def test_stale_timeout_is_ignored(self, machine):
        first = (await machine.dispatch(KeyPressed("escape")))[0]
        await machine.dispatch(DraftChanged("x"))
        second = (await machine.dispatch(KeyPressed("escape")))[0]

        await machine.dispatch(first.event)

        assert machine.state == ChatState.ESC_PENDING
        await machine.dispatch(second.event)
        assert machine.state == ChatState.IDLE

    @pytest.mark.asyncio
    async def test_other_key_reverts_and_is_processed(self, machine, fake_client):
        await machine.dispatch(DraftChanged("hello"))
        await machine.dispatch(KeyPressed("escape"))
        fake_client.scripts.append(FakeReader(["hey"]))

        effects = await machine.dispatch(KeyPressed("enter"))

        assert isinstance(effects[0], PollStream)
        await pump(machine, effects)
        assert [m.content for m in machine.messages] == ["hello", "hey"]

    @pytest.mark.asyncio
    async def test_typing_reverts_pending(self, machine):
        await machine.dispatch(KeyPressed("escape"))

        await machine.dispatch(DraftChanged("a"))

        assert machine.state == ChatState.IDLE
        assert machine.draft == "a"


class TestHistoryRecall:
    """Tests for arrow keys in the input."""

    @pytest.mark.asyncio
    async def test_up_and_down(self, machine, fake_client):
        for text in ("a", "b", "c"):
            fake_client.scripts.append(FakeReader(["ok"]))
            await pump(machine, await submit(machine, text))

        assert machine.captures_arrow_keys
        await machine.dispatch(KeyPressed("up"))
        assert machine.draft == "c"
        await machine.dispatch(KeyPressed("up"))
        assert machine.draft == "b"
        await machine.dispatch(KeyPressed("down"))
        assert machine.draft == "c"
        await machine.dispatch(KeyPressed("down"))
        assert machine.draft == ""
        assert not machine.history.is_browsing

    @pytest.mark.asyncio
    async def test_arrows_stay_in_multiline_draft(self, machine):
        machine.history.add("old")
        await machine.dispatch(DraftChanged("line one\nline two"))

        assert not machine.captures_arrow_keys
        await machine.dispatch(KeyPressed("up"))
        assert machine.draft == "line one\nline two"

    @pytest.mark.asyncio
    async def test_ctrl_u_clears_draft(self, machine):
        await machine.dispatch(DraftChanged("junk"))

        await machine.dispatch(KeyPressed("ctrl+u"))

        assert machine.draft == ""


class TestAutocomplete:
    """Tests for the command suggestion overlay."""

    @pytest.mark.asyncio
    async def test_tab_fills_selection(self, machine):
        await machine.dispatch(DraftChanged("/mo"))
        assert machine.overlay == Overlay.AUTOCOMPLETE

        await machine.dispatch(KeyPressed("tab"))

        assert machine.draft == "/models"
        assert machine.overlay == Overlay.NONE

    @pytest.mark.asyncio
    async def test_arrows_move_selection(self, machine):
        await machine.dispatch(DraftChanged("/"))

        await machine.dispatch(KeyPressed("down"))
        await machine.dispatch(KeyPressed("enter"))

        assert machine.draft == "/exit"
        assert machine.overlay == Overlay.NONE

    @pytest.mark.asyncio
    async def test_escape_hides_without_esc_pending(self, machine):
        await machine.dispatch(DraftChanged("/"))

        effects = await machine.dispatch(KeyPressed("escape"))

        assert effects == []
        assert machine.overlay == Overlay.NONE
        assert machine.state == ChatState.IDLE
        assert machine.draft == "/"


class TestCommands:
    """Tests for slash commands submitted from the input."""

    @pytest.mark.asyncio
    async def test_unknown_command_is_rejected(self, machine, fake_client):
        effects = await submit(machine, "/bogus")

        assert effects == []
        assert machine.error == "Unknown command: /bogus (type //bogus to send it as a message)"
        assert machine.draft == "/bogus"
        assert fake_client.requests == []
        assert machine.session.history == []

    @pytest.mark.asyncio
    async def test_doubled_prefix_sends_slash_text(self, machine, fake_client):
        effects = await submit(machine, "//usr/bin/env")

        assert isinstance(effects[0], PollStream)
        assert fake_client.requests[0].messages[-1].content == "/usr/bin/env"
        assert machine.session.history == ["//usr/bin/env"]

        await machine.cancel_stream()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["/quit", "/exit"])
    async def test_quit_commands(self, machine, command):
        assert await submit(machine, command) == [Quit()]

    @pytest.mark.asyncio
    async def test_resume_opens_picker_and_loads_session(self, machine, memory_store):
        saved = ChatSession(model="other/model", history=["old question"])
        saved.append_message(Message(role="user", content="old question"))
        saved.append_message(Message(role="assistant", content="old answer"))
        await memory_store.save(saved)

        effects = await submit(machine, "/resume")

        assert len(effects) == 1
        assert isinstance(effects[0], OpenSessionPicker)
        assert [s.id for s in effects[0].summaries] == [saved.id]
        assert machine.overlay == Overlay.SESSION_PICKER
        assert await machine.dispatch(KeyPressed("enter")) == []

        await machine.dispatch(SessionChosen(saved.id))

        assert machine.overlay == Overlay.NONE
        assert machine.session.id == saved.id
        assert machine.model == "other/model"
        assert [m.content for m in machine.messages] == ["old question", "old answer"]
        await machine.dispatch(KeyPressed("up"))
        assert machine.draft == "old question"

    @pytest.mark.asyncio
    async def test_picker_cancel_keeps_session(self, machine):
        session_id = machine.session.id
        await submit(machine, "/resume")

        await machine.dispatch(OverlayClosed())

        assert machine.overlay == Overlay.NONE
        assert machine.session.id == session_id

    @pytest.mark.asyncio
    async def test_choosing_missing_session_sets_error(self, machine):
        await submit(machine, "/resume")

        await machine.dispatch(SessionChosen("does-not-exist"))

        assert machine.overlay == Overlay.NONE
        assert "does-not-exist" in machine.error

    @pytest.mark.asyncio
    async def test_models_switches_model(self, machine, fake_client, memory_store):
        effects = await submit(machine, "/models")
        assert effects == [OpenModelPicker()]
        assert machine.overlay == Overlay.MODEL_PICKER

        await machine.dispatch(ModelChosen("new/model"))

        assert machine.model == "new/model"
        assert machine.overlay == Overlay.NONE
        assert await memory_store.list_sessions() == []

        fake_client.scripts.append(FakeReader(["ok"]))
        await pump(machine, await submit(machine, "hi"))
        assert fake_client.requests[-1].model == "new/model"

    @pytest.mark.asyncio
    async def test_model_change_persists_non_empty_session(self, machine, fake_client, memory_store):
        fake_client.scripts.append(FakeReader(["ok"]))
        await pump(machine, await submit(machine, "hi"))

        await machine.dispatch(ModelChosen("new/model"))

        stored = await memory_store.load(machine.session.id)
        assert stored.model == "new/model"

    @pytest.mark.asyncio
    async def test_new_starts_fresh_session(self, machine, fake_client):
        fake_client.scripts.append(FakeReader(["ok"]))
        await pump(machine, await submit(machine, "hi"))
        old_id = machine.session.id

        await submit(machine, "/new")

        assert machine.session.id != old_id
        assert machine.messages == []
        assert machine.session.model == "test/model"
        assert machine.history.entries == []

    @pytest.mark.asyncio
    async def test_clear_drops_messages(self, machine, fake_client, memory_store):
        fake_client.scripts.append(FakeReader(["ok"]))
        await pump(machine, await submit(machine, "hi"))

        await submit(machine, "/clear")

        assert machine.messages == []
        assert machine.draft == ""
        stored = await memory_store.load(machine.session.id)
        assert stored.messages == []
