"""OpenRouter API client.

Hides the transport: request construction, retry with backoff, and the
server-sent-event stream format.
"""

from .base import ChatClient
from .client import OpenRouterClient
from .content import ContentPart, ImageURL, PartsContent, TextContent
from .errors import APIError, PyrouterError, StreamError, TransportError
from .factory import default_client, image_client
from .models import (
    ChatRequest,
    ChatResponse,
    ImageConfig,
    ListModelsOptions,
    Message,
    Model,
    StreamChunk,
    filter_text_models,
    format_price_per_million,
)
from .retry import RetryPolicy
from .stream import StreamReader

__all__ = [
    "APIError",
    "ChatClient",
    "ChatRequest",
    "ChatResponse",
    "ContentPart",
    "ImageConfig",
    "ImageURL",
    "ListModelsOptions",
    "Message",
    "Model",
    "OpenRouterClient",
    "PartsContent",
    "PyrouterError",
    "RetryPolicy",
    "StreamChunk",
    "StreamError",
    "StreamReader",
    "TextContent",
    "TransportError",
    "default_client",
    "filter_text_models",
    "format_price_per_million",
    "image_client",
]
