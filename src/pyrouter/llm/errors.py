"""Error taxonomy for the API client.

- ``TransportError``: the request never produced a response (retryable).
- ``APIError``: non-2xx status or an error object embedded in a 200 body.
- ``StreamError``: the SSE body failed mid-read.
"""


class PyrouterError(Exception):
    """Base class for all errors raised by pyrouter."""


class TransportError(PyrouterError):
    """Connection, DNS or timeout failure before a response arrived."""


class APIError(PyrouterError):
    """Error reported by the API.

    Attributes:
        status_code: HTTP status (the embedded error code when the failure
            came inside a 2xx body)
        message: Error message from the API, if one was decoded
        body: Raw response body, if the message could not be extracted
    """

    def __init__(self, status_code: int = 0, message: str = "", body: str = "") -> None:
        self.status_code = status_code
        self.message = message
        self.body = body
        super().__init__(str(self))

    def __str__(self) -> str:
        detail = self.message or self.body
        return f"API error (status {self.status_code}): {detail}"


class StreamError(PyrouterError):
    """Failure while reading a streamed response."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.cause is not None:
            return f"stream error: {self.message}: {self.cause}"
        return f"stream error: {self.message}"


def error_status(code: int | str | None, fallback: int = 0) -> int:
    """Status for an embedded error object, whose ``code`` may be a digit string."""
    if isinstance(code, int):
        return code
    if isinstance(code, str) and code.isdigit():
        return int(code)
    return fallback
