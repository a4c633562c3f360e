"""Slash commands recognised in the chat input."""

from typing import NamedTuple

COMMAND_PREFIX = "/"
# A doubled prefix sends the rest as a plain message: "//etc" -> "/etc"
LITERAL_PREFIX = COMMAND_PREFIX * 2

CMD_RESUME = "/resume"
CMD_MODELS = "/models"
CMD_QUIT = "/quit"
CMD_EXIT = "/exit"
CMD_NEW = "/new"
CMD_CLEAR = "/clear"


class Command(NamedTuple):
    name: str
    description: str


AVAILABLE_COMMANDS: tuple[Command, ...] = (
    Command(CMD_CLEAR, "Clear the current conversation"),
    Command(CMD_EXIT, "Exit the application"),
    Command(CMD_MODELS, "Change the AI model"),
    Command(CMD_NEW, "Start a new session"),
    Command(CMD_QUIT, "Exit the application"),
    Command(CMD_RESUME, "Resume a previous session"),
)


def filter_commands(prefix: str) -> list[Command]:
    """Commands whose name starts with ``prefix`` (case-insensitive).

    Returns an empty list unless ``prefix`` starts with the command prefix.
    """
    if not prefix.startswith(COMMAND_PREFIX):
        return []
    lowered = prefix.lower()
    return [cmd for cmd in AVAILABLE_COMMANDS if cmd.name.lower().startswith(lowered)]


def find_command(text: str) -> Command | None:
    for cmd in AVAILABLE_COMMANDS:
        if cmd.name == text:
            return cmd
    return None


def is_command_token(text: str) -> bool:
    """True for a single word starting with the command prefix, e.g. ``/models``."""
    return (
        text.startswith(COMMAND_PREFIX)
        and not text.startswith(LITERAL_PREFIX)
        and len(text.split()) == 1
    )


def message_text(text: str) -> str:
    """Text to send for a submitted draft, dropping one prefix from ``//...``."""
    return text[1:] if text.startswith(LITERAL_PREFIX) else text
