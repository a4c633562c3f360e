"""Retry policy for API requests.

Hides the decision of when a failed request is worth repeating and how long
to wait between attempts.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .errors import APIError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF = 0.5
DEFAULT_MAX_BACKOFF = 5.0


class RetryPolicy(BaseModel):
    """Immutable retry configuration shared by a client.

    ``max_retries`` counts retries, not attempts: a request is tried at most
    ``max_retries + 1`` times.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    initial_backoff: float = Field(default=DEFAULT_INITIAL_BACKOFF, ge=0.0, description="Seconds")
    max_backoff: float = Field(default=DEFAULT_MAX_BACKOFF, ge=0.0, description="Seconds")

    def backoff(self, attempt: int) -> float:
        """Delay before retrying after the given (zero-based) attempt."""
        return min(self.initial_backoff * (2 ** attempt), self.max_backoff)

    def should_retry(self, attempt: int, status_code: int | None = None) -> bool:
        """Decide whether attempt ``attempt`` may be followed by another.

        Args:
            attempt: Zero-based index of the attempt that just failed
            status_code: HTTP status of the failure, None for transport errors
        """
        if attempt >= self.max_retries:
            return False
        if status_code is None:
            return True
        return is_retryable_status(status_code)


NO_RETRY = RetryPolicy(max_retries=0)


def is_retryable_status(code: int) -> bool:
    """429, 503, 504 and every other 5xx are retryable."""
    return code == 429 or code >= 500


async def send_with_retry(
    send: Callable[[], Awaitable[httpx.Response]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> httpx.Response:
    """Run ``send`` until it yields a 2xx response or the policy gives up.

    ``send`` must build a fresh request on every call. Cancelling the caller
    aborts both an in-flight request and a pending backoff sleep.

    Returns:
        The successful response. For streamed sends its body is still open and
        now belongs to the caller.

    Raises:
        TransportError: Network failure on the last permitted attempt
        APIError: Non-retryable status, or retryable status on the last attempt
    """
    attempt = 0
    while True:
        try:
            response = await send()
        except httpx.TransportError as exc:
            error: TransportError | APIError = TransportError(f"sending request: {exc}")
            error.__cause__ = exc
            status = None
        else:
            if response.is_success:
                return response
            error = await _error_from_response(response)
            status = response.status_code

        if not policy.should_retry(attempt, status):
            raise error

        delay = policy.backoff(attempt)
        logger.warning(
            "Request failed (%s), retrying in %.2fs (attempt %d of %d)",
            error, delay, attempt + 2, policy.max_retries + 1,
        )
        await sleep(delay)
        attempt += 1


async def _error_from_response(response: httpx.Response) -> APIError:
    try:
        body = await response.aread()
    except httpx.HTTPError as exc:
        return APIError(
            status_code=response.status_code,
            message=f"failed to read error body: {exc}",
        )
    finally:
        await response.aclose()
    text = body.decode("utf-8", errors="replace")
    return APIError(status_code=response.status_code, message=_embedded_message(text), body=text)


def _embedded_message(text: str) -> str:
    """Pull ``error.message`` out of a JSON error body, if there is one."""
    try:
        payload = json.loads(text)
    except ValueError:
        return ""
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        return str(payload["error"].get("message") or "")
    return ""
