import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .base import ChatClient
from .errors import APIError, error_status
from .models import ChatRequest, ChatResponse, ListModelsOptions, Model, ModelsResponse
from .retry import NO_RETRY, RetryPolicy, send_with_retry
from .stream import StreamReader

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_STREAM_TIMEOUT = 300.0


class OpenRouterClient(ChatClient):
    """OpenRouter API client over httpx.

    Hidden design decisions:
    - Two connection pools: a short-timeout one for ordinary calls and a
      long-timeout one for streams, since generations can run for minutes
    - Bearer authentication and identification headers
    - Retry of transient failures through ``RetryPolicy``
    - Hand-over of streamed response bodies to ``StreamReader``
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        stream_timeout: float = DEFAULT_STREAM_TIMEOUT,
        referer: str | None = None,
        title: str | None = None,
        retry: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: OpenRouter API key, sent as a bearer token
            base_url: API root; endpoint paths are appended to it
            timeout: Seconds allowed for non-streaming calls
            stream_timeout: Seconds allowed for streaming calls
            referer: ``HTTP-Referer`` identification header
            title: ``X-Title`` identification header
            retry: Retry policy (None disables retries)
            transport: Custom httpx transport, mainly for tests
        """
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        if referer:
            headers["HTTP-Referer"] = referer
        if title:
            headers["X-Title"] = title

        self._retry = retry or NO_RETRY
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._stream_http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=stream_timeout,
            transport=transport,
        )

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    async def chat(self, request: ChatRequest) -> ChatResponse:
        payload = request.model_copy(update={"stream": False}).to_payload()
        logger.debug("POST /chat/completions model=%s", request.model)

        response = await send_with_retry(
            lambda: self._http.post("/chat/completions", json=payload),
            self._retry,
        )

        try:
            decoded = ChatResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise APIError(
                status_code=response.status_code,
                message=f"decoding response: {e.error_count()} validation error(s)",
                body=response.text,
            ) from e

        if decoded.error is not None:
            raise APIError(
                status_code=error_status(decoded.error.code, response.status_code),
                message=decoded.error.message,
            )
        return decoded

    async def chat_stream(self, request: ChatRequest) -> StreamReader:
        payload = request.model_copy(update={"stream": True}).to_payload()
        logger.debug("POST /chat/completions (stream) model=%s", request.model)

        def send() -> Any:
            http_request = self._stream_http.build_request(
                "POST",
                "/chat/completions",
                json=payload,
                headers={"Accept": "text/event-stream"},
            )
            return self._stream_http.send(http_request, stream=True)

        response = await send_with_retry(send, self._retry)
        return StreamReader(response)

    async def list_models(self, options: ListModelsOptions | None = None) -> list[Model]:
        params = options.to_params() if options else {}
        logger.debug("GET /models params=%s", params)

        response = await send_with_retry(
            lambda: self._http.get("/models", params=params),
            self._retry,
        )

        try:
            decoded = ModelsResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise APIError(
                status_code=response.status_code,
                message=f"decoding models: {e.error_count()} validation error(s)",
                body=response.text,
            ) from e
        return decoded.data

    async def close(self) -> None:
        await self._http.aclose()
        await self._stream_http.aclose()
