"""UI configuration constants.

Centralizes magic numbers and configuration values for the UI module.
"""

import logging


class LogLevel:
    """Log panel thresholds, numerically aligned with the ``logging`` module.

    Lower numeric value = more verbose (shows more messages).
    """

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    _names = {
        DEBUG: "DEBUG",
        INFO: "INFO",
        WARNING: "WARN",
        ERROR: "ERROR",
    }

    _from_string = {
        "debug": DEBUG,
        "info": INFO,
        "warning": WARNING,
        "error": ERROR,
    }

    @classmethod
    def name(cls, level: int) -> str:
        return cls._names.get(cls.normalize(level), "UNKNOWN")

    @classmethod
    def from_string(cls, level_str: str) -> int:
        """Convert string to log level. Returns DEBUG if invalid."""
        return cls._from_string.get(level_str.lower(), cls.DEBUG)

    @classmethod
    def normalize(cls, level: int) -> int:
        """Fold any ``logging`` level onto the four panel levels."""
        if level >= cls.ERROR:
            return cls.ERROR
        if level >= cls.WARNING:
            return cls.WARNING
        if level >= cls.INFO:
            return cls.INFO
        return cls.DEBUG


# Log panel configuration
LOG_TIMESTAMP_FORMAT = "%H:%M:%S"
LOG_MAX_MESSAGE_LENGTH = 500  # Characters before truncating log messages

# Pickers
SESSION_PICKER_TITLE = "Resume a session"
MODEL_PICKER_TITLE = "Choose a model"
