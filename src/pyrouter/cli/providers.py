"""Provider factory functions for CLI.

Centralizes creation of settings, API clients and the session store.
Hides configuration details from command implementations.
"""

import typer
from rich.console import Console

from ..config import AppSettings, ConfigError, load_settings, resolve_api_key, sessions_dir
from ..llm import ChatClient, default_client, image_client
from ..memory import SessionStore, create_session_store

# Default console for output
_console = Console()


def get_settings(console: Console | None = None) -> AppSettings:
    """Load the settings file.

    Raises:
        typer.Exit: If the file exists but cannot be read
    """
    con = console or _console
    try:
        return load_settings()
    except ConfigError as e:
        con.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)


def get_api_key(console: Console | None = None, settings: AppSettings | None = None) -> str:
    """Resolve the OpenRouter API key, prompting on first run.

    Environment variables:
        OPENROUTER_API_KEY: API key (takes precedence over the settings file)

    Raises:
        typer.Exit: If no key is available
    """
    con = console or _console
    try:
        return resolve_api_key(settings if settings is not None else get_settings(con))
    except ConfigError as e:
        con.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)


def get_client(api_key: str) -> ChatClient:
    """Create the client used for chat, streaming and model listing."""
    return default_client(api_key)


def get_image_client(api_key: str) -> ChatClient:
    """Create the long-timeout client used for image generation."""
    return image_client(api_key)


def get_store() -> SessionStore:
    """Create the JSON session store under the config directory."""
    return create_session_store("json", directory=sessions_dir())
