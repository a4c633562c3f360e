"""Settings, API-key resolution and constants for pyrouter."""

from .constants import DEFAULT_IMAGE_MODEL, DEFAULT_MODEL, ESC_TIMEOUT, STREAM_BUFFER_SIZE
from .settings import (
    AppSettings,
    ConfigError,
    config_dir,
    config_path,
    load_settings,
    prompt_for_api_key,
    resolve_api_key,
    save_settings,
    sessions_dir,
)

__all__ = [
    "AppSettings",
    "ConfigError",
    "DEFAULT_IMAGE_MODEL",
    "DEFAULT_MODEL",
    "ESC_TIMEOUT",
    "STREAM_BUFFER_SIZE",
    "config_dir",
    "config_path",
    "load_settings",
    "prompt_for_api_key",
    "resolve_api_key",
    "save_settings",
    "sessions_dir",
]
