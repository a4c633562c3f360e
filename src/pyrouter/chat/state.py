"""Chat UI states.

The primary state and the overlay are separate values: overlays sit on top
of whatever the primary state is and intercept input first.
"""

from enum import Enum


class ChatState(str, Enum):
    """Primary state of the chat session."""

    IDLE = "idle"
    STREAMING = "streaming"
    ESC_PENDING = "esc_pending"


class EscAction(str, Enum):
    """What a second ESC press will do while ``ESC_PENDING``."""

    CLEAR = "clear"
    EXIT = "exit"


class Overlay(str, Enum):
    """Modal sub-UI currently intercepting input."""

    NONE = "none"
    SESSION_PICKER = "session_picker"
    MODEL_PICKER = "model_picker"
    AUTOCOMPLETE = "autocomplete"
