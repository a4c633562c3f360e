"""Incremental parser for server-sent-event chat streams.

Hides the SSE framing: comment and blank lines, the ``data:`` prefix, the
``[DONE]`` sentinel, tolerance for garbled payloads, and errors embedded in
a payload.
"""

import logging
from collections.abc import AsyncIterator

import httpx
from pydantic import ValidationError

from .errors import APIError, StreamError, error_status
from .models import ChatResponse, StreamChunk

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
COMMENT_PREFIX = ":"
DONE_SENTINEL = "[DONE]"


class StreamReader:
    """Reads ``StreamChunk`` values from a streamed HTTP response.

    The reader owns the response body. The sequence it produces is lazy,
    finite and cannot be replayed; after the end-of-stream chunk, an error,
    or ``aclose()``, every further ``next()`` returns None.

    Usage:
        reader = await client.chat_stream(request)
        async with reader:
            async for chunk in reader:
                print(chunk.content, end="")
    """

    def __init__(self, response: httpx.Response):
        self._response = response
        self._lines: AsyncIterator[str] | None = None
        self._done = False
        self._closed = False

    @property
    def done(self) -> bool:
        return self._done

    async def next(self) -> StreamChunk | None:
        """Read the next chunk.

        Returns:
            A content chunk, a chunk with ``done=True`` at the end of the
            stream (whether or not the sentinel was sent), or None once the
            stream is finished or closed.

        Raises:
            APIError: The stream carried an embedded error object
            StreamError: Reading the body failed
        """
        if self._done:
            return None
        if self._lines is None:
            self._lines = self._response.aiter_lines()

        try:
            async for line in self._lines:
                chunk = self._parse_line(line)
                if chunk is not None:
                    return chunk
        except (httpx.HTTPError, httpx.StreamError) as exc:
            self._done = True
            if self._closed:
                return None
            raise StreamError("reading stream", exc) from exc

        # Body ended without the sentinel: treat as a normal end.
        self._done = True
        return StreamChunk(done=True)

    def _parse_line(self, line: str) -> StreamChunk | None:
        line = line.rstrip("\r")
        if not line or line.startswith(COMMENT_PREFIX):
            return None
        if not line.startswith(DATA_PREFIX):
            return None

        data = line[len(DATA_PREFIX):]
        if data.startswith(" "):
            data = data[1:]

        if data == DONE_SENTINEL:
            self._done = True
            return StreamChunk(done=True)

        try:
            response = ChatResponse.model_validate_json(data)
        except ValidationError:
            logger.debug("Skipping malformed stream payload: %.80s", data)
            return None

        if response.error is not None:
            self._done = True
            raise APIError(
                status_code=error_status(response.error.code),
                message=response.error.message,
            )

        if not response.choices:
            return None
        choice = response.choices[0]
        return StreamChunk(
            content=choice.delta.content or "",
            finish_reason=choice.finish_reason,
        )

    async def aclose(self) -> None:
        """Release the connection. Safe to call repeatedly and at any time."""
        self._done = True
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()

    async def read_all(self) -> str:
        """Concatenate every remaining chunk into one string."""
        parts: list[str] = []
        async for chunk in self:
            parts.append(chunk.content)
        return "".join(parts)

    def __aiter__(self) -> "StreamReader":
        return self

    async def __anext__(self) -> StreamChunk:
        chunk = await self.next()
        if chunk is None or chunk.done:
            raise StopAsyncIteration
        return chunk

    async def __aenter__(self) -> "StreamReader":
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.aclose()
