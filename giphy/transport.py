"""Pluggable HTTP transport.

The client never talks to httpx directly: every request goes through a
``Transport``. Production uses ``HTTPXTransport``; tests hand it an
``httpx.MockTransport`` or provide their own ``Transport`` implementation.
"""

from typing import Protocol, runtime_checkable

import httpx
import structlog

from giphy.exceptions import GiphyTransportError

logger = structlog.get_logger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "giphy-async/1.0",
}


@runtime_checkable
class Transport(Protocol):
    """Executes one HTTP request and returns the complete response."""

    async def execute(self, request: httpx.Request) -> httpx.Response:
        """Send the request.

        Raises:
            GiphyTransportError: If no response could be obtained
        """
        ...

    async def aclose(self) -> None:
        """Release any network resources."""
        ...


class HTTPXTransport:
    """Transport backed by an ``httpx.AsyncClient``.

    The client is created lazily on first use, so a transport can be
    constructed outside of a running event loop.

    Usage:
        transport = HTTPXTransport(timeout=10.0)
        transport = HTTPXTransport(transport=httpx.MockTransport(handler))
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize transport.

        Args:
            client: Ready-made client to send requests with. The caller
                keeps ownership of it and must close it.
            timeout: Request timeout in seconds for the owned client
            transport: Low-level httpx transport for the owned client
        """
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._transport = transport

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=DEFAULT_HEADERS,
                transport=self._transport,
            )
            self._owns_client = True
        return self._client

    async def execute(self, request: httpx.Request) -> httpx.Response:
        """Send the request and read the full body."""
        try:
            return await self.client.send(request)
        except httpx.TimeoutException as e:
            logger.warning("giphy_transport_timeout", path=request.url.path)
            raise GiphyTransportError(f"Request timeout: {e}") from e
        except httpx.HTTPError as e:
            logger.warning(
                "giphy_transport_error",
                path=request.url.path,
                error=str(e),
            )
            raise GiphyTransportError(f"HTTP error: {e}") from e

    async def aclose(self) -> None:
        """Close the owned client."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HTTPXTransport":
        """Enter async context."""
        return self

    async def __aexit__(self, *args) -> None:
        """Exit async context."""
        await self.aclose()
