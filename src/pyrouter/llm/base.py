from abc import ABC, abstractmethod
from typing import Any

from .models import ChatRequest, ChatResponse, ListModelsOptions, Model
from .stream import StreamReader


class ChatClient(ABC):
    """Abstract base class for chat API clients.

    This module hides the design decision of how requests reach the API.
    Implementations must handle:
    - Authentication and identification headers
    - Connection and timeout management
    - Retrying transient failures
    - Decoding responses and embedded errors

    Supports async context manager protocol for proper resource cleanup:
        async with client:
            response = await client.chat(request)
        # Automatically cleaned up
    """

    @abstractmethod
    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Send a non-streaming chat request.

        The request is always sent with ``stream=False``.

        Returns:
            The decoded response

        Raises:
            TransportError: Network failure after all retries
            APIError: Non-2xx status or an error embedded in the body
        """
        pass

    @abstractmethod
    async def chat_stream(self, request: ChatRequest) -> StreamReader:
        """Send a streaming chat request.

        The request is always sent with ``stream=True``. On success the
        returned reader owns the open response body and must be closed.

        Raises:
            TransportError: Network failure after all retries
            APIError: Non-2xx status
        """
        pass

    @abstractmethod
    async def list_models(self, options: ListModelsOptions | None = None) -> list[Model]:
        """Fetch the model catalogue, optionally filtered."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup, a known
        race in httpx/anyio shutdown.
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
