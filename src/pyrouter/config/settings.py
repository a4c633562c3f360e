"""Persisted user settings and API-key resolution.

Hides where settings live on disk, how they are protected, and the order in
which an API key is looked up.
"""

import logging
import os
from collections.abc import Callable
from pathlib import Path

import typer
from pydantic import BaseModel, Field, ValidationError

from ..llm.errors import PyrouterError
from .constants import (
    API_KEY_ENV,
    API_KEYS_URL,
    APP_NAME,
    CONFIG_DIR_ENV,
    CONFIG_FILE_NAME,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_MODEL,
    SESSIONS_DIR_NAME,
)

logger = logging.getLogger(__name__)


class ConfigError(PyrouterError):
    """Settings could not be read or written, or no API key is available."""


class AppSettings(BaseModel):
    """Settings stored in ``config.json``.

    Empty model fields fall back to the built-in defaults on load.
    """

    api_key: str = Field(default="", description="OpenRouter API key")
    default_model: str = Field(default=DEFAULT_MODEL)
    default_image_model: str = Field(default=DEFAULT_IMAGE_MODEL)

    def with_defaults(self) -> "AppSettings":
        return self.model_copy(update={
            "default_model": self.default_model or DEFAULT_MODEL,
            "default_image_model": self.default_image_model or DEFAULT_IMAGE_MODEL,
        })


def config_dir() -> Path:
    """Directory holding settings and sessions.

    ``PYROUTER_CONFIG_DIR`` overrides the platform default.
    """
    override = os.getenv(CONFIG_DIR_ENV)
    if override:
        return Path(override)
    return Path(typer.get_app_dir(APP_NAME))


def config_path() -> Path:
    return config_dir() / CONFIG_FILE_NAME


def sessions_dir() -> Path:
    return config_dir() / SESSIONS_DIR_NAME


def load_settings() -> AppSettings:
    """Read settings, returning defaults when no file exists yet.

    Raises:
        ConfigError: If the file exists but cannot be read or parsed
    """
    path = config_path()
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return AppSettings()
    except OSError as e:
        raise ConfigError(f"failed to read config file: {e}") from e

    try:
        return AppSettings.model_validate_json(raw).with_defaults()
    except ValidationError as e:
        raise ConfigError(f"failed to parse config file {path}") from e


def save_settings(settings: AppSettings) -> None:
    """Write settings with owner-only permissions.

    Raises:
        ConfigError: If the file cannot be written
    """
    path = config_path()
    try:
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(settings.model_dump_json(indent=2))
    except OSError as e:
        raise ConfigError(f"failed to write config file: {e}") from e


def prompt_for_api_key() -> str:
    """Ask for an API key on the terminal.

    Raises:
        ConfigError: If the key entered is empty
    """
    typer.echo("No OpenRouter API key found.")
    typer.echo(f"You can get an API key from: {API_KEYS_URL}")
    key = typer.prompt("\nEnter your OpenRouter API key", hide_input=True, default="", show_default=False)
    key = key.strip()
    if not key:
        raise ConfigError("API key cannot be empty")
    return key


def resolve_api_key(
    settings: AppSettings | None = None,
    prompt: Callable[[], str] | None = prompt_for_api_key,
) -> str:
    """Find the API key: environment, then settings file, then a prompt.

    A key obtained from the prompt is saved for next time; failing to save it
    only logs a warning.

    Args:
        settings: Already loaded settings (loaded from disk if None)
        prompt: Interactive fallback, or None to disable prompting

    Raises:
        ConfigError: If no key could be found
    """
    key = os.getenv(API_KEY_ENV, "").strip()
    if key:
        return key

    settings = settings if settings is not None else load_settings()
    if settings.api_key:
        return settings.api_key

    if prompt is None:
        raise ConfigError(f"no API key: set {API_KEY_ENV} or run interactively")

    key = prompt()
    try:
        save_settings(settings.model_copy(update={"api_key": key}))
    except ConfigError as e:
        logger.warning("Could not save API key: %s", e)
    return key
