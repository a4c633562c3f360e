"""Events fed into the chat state machine and the effects it asks for.

The machine never touches the UI or timers directly. A UI adapter turns
key presses, timer expiries and stream output into events, calls
``ChatStateMachine.dispatch`` one event at a time, and carries out the
returned effects.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from ..memory.models import SessionSummary
    from .stream import StreamSession


@dataclass(frozen=True)
class KeyPressed:
    """A control key the input widget does not handle itself.

    Key names follow Textual: ``enter``, ``escape``, ``up``, ``down``,
    ``tab``, ``ctrl+u``, ``ctrl+c``.
    """

    key: str


@dataclass(frozen=True)
class DraftChanged:
    """The text in the input widget changed."""

    text: str


@dataclass(frozen=True)
class StreamChunkReceived:
    stream_id: int
    text: str


@dataclass(frozen=True)
class StreamFinished:
    stream_id: int


@dataclass(frozen=True)
class StreamFailed:
    stream_id: int
    error: BaseException


@dataclass(frozen=True)
class EscTimedOut:
    """The double-press window opened with ``token`` has expired."""

    token: int


@dataclass(frozen=True)
class SessionChosen:
    session_id: str


@dataclass(frozen=True)
class ModelChosen:
    model_id: str


@dataclass(frozen=True)
class OverlayClosed:
    """A picker was dismissed without a choice."""


StreamEvent = Union[StreamChunkReceived, StreamFinished, StreamFailed]

Event = Union[
    KeyPressed,
    DraftChanged,
    StreamChunkReceived,
    StreamFinished,
    StreamFailed,
    EscTimedOut,
    SessionChosen,
    ModelChosen,
    OverlayClosed,
]


@dataclass(frozen=True)
class PollStream:
    """Wait for the next event of ``session`` and dispatch it."""

    session: "StreamSession"


@dataclass(frozen=True)
class ScheduleTimer:
    """Dispatch ``event`` after ``delay`` seconds."""

    delay: float
    event: Event


@dataclass(frozen=True)
class OpenSessionPicker:
    summaries: tuple["SessionSummary", ...]


@dataclass(frozen=True)
class OpenModelPicker:
    pass


@dataclass(frozen=True)
class Quit:
    pass


Effect = Union[PollStream, ScheduleTimer, OpenSessionPicker, OpenModelPicker, Quit]
