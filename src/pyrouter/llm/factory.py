from typing import Any

from .base import ChatClient
from .client import DEFAULT_STREAM_TIMEOUT, OpenRouterClient
from .retry import RetryPolicy

REFERER = "https://github.com/vstratful/openrouter-cli"
TITLE = "OpenRouter CLI"


def default_client(api_key: str, **config: Any) -> ChatClient:
    """Create a client with identification headers and the default retry policy.

    This factory function hides how a production client is assembled.

    Args:
        api_key: OpenRouter API key
        **config: Overrides passed to ``OpenRouterClient`` (e.g. ``base_url``,
            ``transport``, ``retry``)

    Raises:
        TypeError: If the API key is empty
    """
    if not api_key:
        raise TypeError("default_client requires a non-empty api_key")
    config.setdefault("referer", REFERER)
    config.setdefault("title", TITLE)
    config.setdefault("retry", RetryPolicy())
    return OpenRouterClient(api_key=api_key, **config)


def image_client(api_key: str, **config: Any) -> ChatClient:
    """Create a client for image generation.

    Image responses arrive in one piece and can take minutes, so ordinary
    calls get the long streaming timeout.
    """
    config.setdefault("timeout", DEFAULT_STREAM_TIMEOUT)
    return default_client(api_key, **config)
