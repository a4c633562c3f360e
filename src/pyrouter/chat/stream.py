"""Controller for one in-flight generation.

Hides the producer/consumer hand-off: a background task drives the
``StreamReader`` and pushes text into a bounded queue, terminal errors go to
a single-slot queue, and the UI pulls one event at a time with
``next_event()``.
"""

import asyncio
import logging

from ..config.constants import STREAM_BUFFER_SIZE
from ..llm.base import ChatClient
from ..llm.models import ChatRequest
from ..llm.stream import StreamReader
from .events import StreamChunkReceived, StreamEvent, StreamFailed, StreamFinished

logger = logging.getLogger(__name__)


class StreamSession:
    """One generation, from request to last chunk.

    Exactly one producer task exists per session and it owns the reader.
    ``close()`` may be called by the producer on completion and by the UI on
    cancellation; only the first call has any effect.

    Usage:
        session = StreamSession.start(client, request, stream_id=1)
        while True:
            event = await session.next_event()
            if not isinstance(event, StreamChunkReceived):
                break
    """

    def __init__(self, stream_id: int, buffer_size: int = STREAM_BUFFER_SIZE):
        self.id = stream_id
        self._chunks: asyncio.Queue[str] = asyncio.Queue(maxsize=buffer_size)
        self._errors: asyncio.Queue[BaseException] = asyncio.Queue(maxsize=1)
        self._closed = asyncio.Event()
        self._reader: StreamReader | None = None
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def start(
        cls,
        client: ChatClient,
        request: ChatRequest,
        stream_id: int,
        buffer_size: int = STREAM_BUFFER_SIZE,
    ) -> "StreamSession":
        """Spawn the producer task. Must be called from a running event loop."""
        session = cls(stream_id, buffer_size)
        session._task = asyncio.create_task(
            session._produce(client, request), name=f"stream-{stream_id}"
        )
        return session

    @property
    def done(self) -> bool:
        return self._closed.is_set()

    @property
    def task(self) -> asyncio.Task[None] | None:
        return self._task

    async def _produce(self, client: ChatClient, request: ChatRequest) -> None:
        logger.debug("Stream %d started (model=%s)", self.id, request.model)
        try:
            self._reader = await client.chat_stream(request)
            async for chunk in self._reader:
                if chunk.content:
                    await self._chunks.put(chunk.content)
        except asyncio.CancelledError:
            logger.debug("Stream %d cancelled", self.id)
            raise
        except Exception as e:
            logger.debug("Stream %d failed: %s", self.id, e)
            self._send_error(e)
        finally:
            await self.close()
            await self._release_reader()
        logger.debug("Stream %d finished", self.id)

    def _send_error(self, error: BaseException) -> None:
        try:
            self._errors.put_nowait(error)
        except asyncio.QueueFull:
            pass

    async def close(self) -> None:
        """Stop the producer and release the connection. Idempotent.

        Called from outside the producer, this cancels the task (aborting a
        pending request, backoff sleep or read) and waits for it to exit.
        """
        if self._closed.is_set():
            return
        self._closed.set()

        task = self._task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            await asyncio.wait([task])

        await self._release_reader()

    async def _release_reader(self) -> None:
        reader, self._reader = self._reader, None
        if reader is not None:
            await reader.aclose()

    async def next_event(self) -> StreamEvent:
        """Wait for the next observable event.

        Buffered chunks are delivered before the end of the session is
        reported. Blocks only until one chunk arrives or the session closes.
        """
        while True:
            try:
                text = self._chunks.get_nowait()
            except asyncio.QueueEmpty:
                pass
            else:
                return StreamChunkReceived(self.id, text)

            if self._closed.is_set():
                try:
                    error = self._errors.get_nowait()
                except asyncio.QueueEmpty:
                    return StreamFinished(self.id)
                return StreamFailed(self.id, error)

            getter = asyncio.ensure_future(self._chunks.get())
            closed = asyncio.ensure_future(self._closed.wait())
            try:
                done, _ = await asyncio.wait({getter, closed}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for fut in (getter, closed):
                    if not fut.done():
                        fut.cancel()

            if getter in done:
                return StreamChunkReceived(self.id, getter.result())

    async def wait(self) -> None:
        """Wait until the producer task has exited."""
        if self._task is not None:
            await asyncio.wait([self._task])
