"""Unit tests for the stream session controller."""
import asyncio

import httpx
import pytest
from conftest import FakeChatClient, FakeReader, delta, make_client, sse_body

from pyrouter.chat.events import StreamChunkReceived, StreamFailed, StreamFinished
from pyrouter.chat.stream import StreamSession
from pyrouter.llm import APIError, ChatRequest, Message
from pyrouter.llm.retry import RetryPolicy


def _request() -> ChatRequest:
    return ChatRequest(model="m", messages=(Message(role="user", content="hi"),))


async def _events(session: StreamSession) -> list:
    events = []
    while True:
        event = await asyncio.wait_for(session.next_event(), timeout=1.0)
        events.append(event)
        if not isinstance(event, StreamChunkReceived):
            return events


class HangingBody(httpx.AsyncByteStream):
    """Response body that sends one chunk and then never finishes."""

    def __init__(self, first: bytes):
        self._first = first
        self.closed = False

    async def __aiter__(self):
        yield self._first
        await asyncio.Event().wait()

    async def aclose(self) -> None:
        self.closed = True


class TestStreamSession:
    """Tests for producer/consumer hand-off and cancellation."""

    @pytest.mark.asyncio
    async def test_delivers_chunks_in_order_then_finishes(self):
        reader = FakeReader(["He", "llo"])
        client = FakeChatClient([reader])

        session = StreamSession.start(client, _request(), stream_id=7)
        events = await _events(session)

        assert events == [
            StreamChunkReceived(7, "He"),
            StreamChunkReceived(7, "llo"),
            StreamFinished(7),
        ]
        assert session.done
        assert reader.closed

    @pytest.mark.asyncio
    async def test_buffered_chunks_come_before_end(self):
        client = FakeChatClient([FakeReader(["a", "b", "c"])])

        session = StreamSession.start(client, _request(), stream_id=1, buffer_size=10)
        await session.wait()
        events = await _events(session)

        assert [type(e) for e in events] == [
            StreamChunkReceived, StreamChunkReceived, StreamChunkReceived, StreamFinished,
        ]

    @pytest.mark.asyncio
    async def test_small_buffer_applies_backpressure(self):
        client = FakeChatClient([FakeReader([str(i) for i in range(5)])])

        session = StreamSession.start(client, _request(), stream_id=1, buffer_size=1)
        events = await _events(session)

        assert "".join(e.text for e in events[:-1]) == "01234"
        assert isinstance(events[-1], StreamFinished)

    @pytest.mark.asyncio
    async def test_error_is_reported_after_chunks(self):
        error = APIError(status_code=500, message="boom")
        client = FakeChatClient([FakeReader(["partial"], error=error)])

        session = StreamSession.start(client, _request(), stream_id=3)
        events = await _events(session)

        assert events[0] == StreamChunkReceived(3, "partial")
        assert isinstance(events[-1], StreamFailed)
        assert events[-1].error is error

    @pytest.mark.asyncio
    async def test_request_failure_is_reported(self):
        class FailingClient(FakeChatClient):
            async def chat_stream(self, request):
                raise APIError(status_code=401, message="no auth")

        session = StreamSession.start(FailingClient(), _request(), stream_id=2)
        events = await _events(session)

        assert len(events) == 1
        assert isinstance(events[0], StreamFailed)
        assert events[0].error.status_code == 401

    @pytest.mark.asyncio
    async def test_close_cancels_hung_producer(self):
        reader = FakeReader(["first"], hang=True)
        client = FakeChatClient([reader])

        session = StreamSession.start(client, _request(), stream_id=5)
        assert await session.next_event() == StreamChunkReceived(5, "first")

        await asyncio.wait_for(session.close(), timeout=1.0)

        assert session.task.done()
        assert reader.closed
        assert await session.next_event() == StreamFinished(5)

    @pytest.mark.asyncio
    async def test_close_wakes_waiting_consumer(self):
        client = FakeChatClient([FakeReader([], hang=True)])
        session = StreamSession.start(client, _request(), stream_id=9)

        waiter = asyncio.create_task(session.next_event())
        await asyncio.sleep(0)
        await session.close()

        assert await asyncio.wait_for(waiter, timeout=1.0) == StreamFinished(9)

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        client = FakeChatClient([FakeReader(["x"])])
        session = StreamSession.start(client, _request(), stream_id=1)
        await session.wait()

        await session.close()
        await session.close()

        assert session.done

    @pytest.mark.asyncio
    async def test_close_interrupts_retry_backoff(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(503, json={"error": {"message": "busy"}})

        client = make_client(handler, retry=RetryPolicy(max_retries=3, initial_backoff=30, max_backoff=30))
        try:
            session = StreamSession.start(client, _request(), stream_id=4)
            await asyncio.sleep(0.05)

            await asyncio.wait_for(session.close(), timeout=1.0)

            assert session.task.done()
            assert calls == 1
            assert await session.next_event() == StreamFinished(4)
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_close_releases_open_response_body(self):
        body = HangingBody(sse_body(delta("first"), done=False))
        client = make_client(lambda request: httpx.Response(200, stream=body))
        try:
            session = StreamSession.start(client, _request(), stream_id=6)
            first = await asyncio.wait_for(session.next_event(), timeout=1.0)

            await asyncio.wait_for(session.close(), timeout=1.0)

            assert first == StreamChunkReceived(6, "first")
            assert session.task.done()
            assert body.closed
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_producer_releases_reader_when_closer_is_cancelled(self):
        reader = FakeReader(["first"], hang=True)
        session = StreamSession.start(FakeChatClient([reader]), _request(), stream_id=8)
        assert await session.next_event() == StreamChunkReceived(8, "first")

        closer = asyncio.create_task(session.close())
        await asyncio.sleep(0)
        closer.cancel()
        await asyncio.wait_for(session.wait(), timeout=1.0)
        with pytest.raises(asyncio.CancelledError):
            await closer

        assert reader.closed
