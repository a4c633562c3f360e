"""Chat session core: state machine, stream controller and input helpers.

Nothing in this package depends on a terminal toolkit, so the whole
interactive flow can be driven from tests.
"""

from .autocomplete import AutocompleteState
from .commands import AVAILABLE_COMMANDS, Command, filter_commands
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
from .machine import ChatStateMachine
from .state import ChatState, EscAction, Overlay
from .stream import StreamSession

__all__ = [
    "AVAILABLE_COMMANDS",
    "AutocompleteState",
    "ChatState",
    "ChatStateMachine",
    "Command",
    "DraftChanged",
    "Effect",
    "EscAction",
    "EscTimedOut",
    "Event",
    "HistoryNavigator",
    "KeyPressed",
    "ModelChosen",
    "OpenModelPicker",
    "OpenSessionPicker",
    "Overlay",
    "OverlayClosed",
    "PollStream",
    "Quit",
    "ScheduleTimer",
    "SessionChosen",
    "StreamChunkReceived",
    "StreamFailed",
    "StreamFinished",
    "StreamSession",
    "filter_commands",
]
