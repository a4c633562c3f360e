"""Pytest configuration and shared fixtures."""
import asyncio
import json
from collections.abc import Callable

import httpx
import pytest

from pyrouter.llm import ChatClient, ChatRequest, ChatResponse, Model, OpenRouterClient, StreamChunk
from pyrouter.llm.retry import RetryPolicy
from pyrouter.memory import create_session_store

TEST_BASE_URL = "https://openrouter.test/api/v1"


def sse_body(*payloads: object, done: bool = True) -> bytes:
    """Build an SSE body with one ``data:`` line per payload.

    Dicts are JSON-encoded; strings are sent as-is.
    """
    lines = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        lines.append(f"data: {data}\n\n")
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode()


def delta(text: str, finish_reason: str | None = None) -> dict:
    """A streamed chat completion payload carrying ``text``."""
    return {"choices": [{"delta": {"content": text}, "finish_reason": finish_reason}]}


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    retry: RetryPolicy | None = None,
    **kwargs,
) -> OpenRouterClient:
    """Client wired to an in-process mock transport."""
    return OpenRouterClient(
        api_key="test-key",
        base_url=TEST_BASE_URL,
        retry=retry,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class FakeReader:
    """Stands in for ``StreamReader``: yields fixed chunks, optionally hangs."""

    def __init__(self, chunks: list[str], hang: bool = False, error: Exception | None = None):
        self._chunks = list(chunks)
        self._hang = hang
        self._error = error
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True

    def __aiter__(self) -> "FakeReader":
        return self

    async def __anext__(self) -> StreamChunk:
        if self._chunks:
            return StreamChunk(content=self._chunks.pop(0))
        if self._error is not None:
            raise self._error
        if self._hang:
            await asyncio.Event().wait()
        raise StopAsyncIteration


class FakeChatClient(ChatClient):
    """Scripted client: each ``chat_stream`` call takes the next script."""

    def __init__(self, scripts: list[FakeReader] | None = None, models: list[Model] | None = None):
        self.scripts = list(scripts or [])
        self.requests: list[ChatRequest] = []
        self.readers: list[FakeReader] = []
        self.models = models or []
        self.closed = False

    async def chat(self, request: ChatRequest) -> ChatResponse:
        self.requests.append(request)
        return ChatResponse(choices=[{"message": {"content": "ok"}}])

    async def chat_stream(self, request: ChatRequest) -> FakeReader:
        self.requests.append(request)
        reader = self.scripts.pop(0) if self.scripts else FakeReader([])
        self.readers.append(reader)
        return reader

    async def list_models(self, options=None) -> list[Model]:
        return list(self.models)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client():
    """Empty scripted client; tests push ``FakeReader`` scripts onto it."""
    return FakeChatClient()


@pytest.fixture
def memory_store():
    return create_session_store("memory")


@pytest.fixture
def json_store(tmp_path):
    return create_session_store("json", directory=tmp_path / "sessions")


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Point the config directory at a temp dir and clear the API key env."""
    directory = tmp_path / "config"
    monkeypatch.setenv("PYROUTER_CONFIG_DIR", str(directory))
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    return directory
