"""Exception hierarchy for the Giphy client.

Single-item calls raise these to their caller. Page streams never raise
them: a failed page fetch is delivered as the terminal ``Page.error``.
"""


class GiphyError(Exception):
    """Base exception for Giphy client errors."""

    pass


class GiphyTransportError(GiphyError):
    """Raised when the HTTP request could not be completed."""

    pass


class GiphyHTTPError(GiphyError):
    """Raised when the API answers with a non-2xx status.

    The message is the HTTP status line, e.g. ``"404 Not Found"``.
    """

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class GiphyAuthError(GiphyHTTPError):
    """Raised when the API key is missing or rejected (401/403)."""

    pass


class GiphyNotFoundError(GiphyHTTPError):
    """Raised when a resource does not exist (404)."""

    pass


class GiphyRateLimitError(GiphyHTTPError):
    """Raised when Giphy rate limit is exceeded (429)."""

    def __init__(self, message: str, status_code: int = 429, retry_after: int | None = None):
        super().__init__(message, status_code)
        self.retry_after = retry_after


class GiphyDecodeError(GiphyError):
    """Raised when a response body is not the JSON we expect."""

    pass


class GiphyEmptyResponseError(GiphyError):
    """Raised when a single-item response carries no item."""

    def __init__(self, message: str = "could not parse the response from the server"):
        super().__init__(message)


class GiphyAlreadyClosedError(GiphyError):
    """Raised by a redundant ``ResponsePager.cancel()`` call."""

    def __init__(self, message: str = "already closed"):
        super().__init__(message)
