"""Giphy API client.

Exposes the paged endpoints (trending and search, for GIFs and stickers)
as ``ResponsePager`` streams and the single-item endpoints (random item,
lookup by id) as plain coroutines.

API Documentation: https://developers.giphy.com/docs/api/endpoint
"""

import asyncio
import threading
from dataclasses import dataclass, replace
from typing import Any
from urllib.parse import quote

import structlog

from giphy.config import Settings, get_settings
from giphy.fetcher import GIPHY_BASE_URL, PageFetcher
from giphy.models import Giph, Request, WireParams
from giphy.pager import ResponsePager
from giphy.transport import HTTPXTransport, Transport

logger = structlog.get_logger(__name__)


# =============================================================================
# Routes
# =============================================================================

ROUTE_GIFS_TRENDING = "/gifs/trending"
ROUTE_GIFS_SEARCH = "/gifs/search"
ROUTE_GIFS_RANDOM = "/gifs/random"
ROUTE_STICKERS_TRENDING = "/stickers/trending"
ROUTE_STICKERS_SEARCH = "/stickers/search"
ROUTE_STICKERS_RANDOM = "/stickers/random"


# =============================================================================
# Configuration Snapshot
# =============================================================================


@dataclass(frozen=True)
class ClientConfig:
    """Configuration read by one HTTP call.

    Setters on the client swap in a new instance; calls already in flight
    keep the one they started with.
    """

    api_key: str
    transport: Transport

    def __repr__(self) -> str:
        return f"ClientConfig(api_key='***', transport={self.transport!r})"


# =============================================================================
# Giphy Client
# =============================================================================


class GiphyClient:
    """Async client for the Giphy API.

    Example:
        async with GiphyClient.from_env_or_default() as client:
            pager = client.search(Request(query="Milly Rock", max_page_number=4))
            async for page in pager:
                ...
            giph = await client.gif_by_id("3ohze2UfcItWPUFqbm")
    """

    def __init__(
        self,
        api_key: str,
        transport: Transport | None = None,
        default_throttle_ms: int | None = None,
        base_url: str = GIPHY_BASE_URL,
        settings: Settings | None = None,
    ):
        """Initialize Giphy client.

        Args:
            api_key: Giphy API key
            transport: HTTP transport. A default httpx transport is created if None.
            default_throttle_ms: Delay between pages for requests that set none.
                Uses the configured default if None.
            base_url: API root
            settings: Settings to take defaults from. Loaded from the environment if None.

        Raises:
            ValueError: If the API key is blank
        """
        api_key = (api_key or "").strip()
        if not api_key:
            raise ValueError("expecting a non-blank API key")

        settings = settings or get_settings()
        if transport is None:
            transport = HTTPXTransport(timeout=settings.giphy_request_timeout)

        self._config = ClientConfig(api_key=api_key, transport=transport)
        self._config_lock = threading.Lock()
        self._default_throttle_ms = (
            default_throttle_ms
            if default_throttle_ms is not None
            else settings.giphy_default_throttle_ms
        )
        self._fetcher = PageFetcher(self.snapshot, base_url=base_url)
        self._pagers: set[ResponsePager] = set()

    @classmethod
    def from_env_or_default(
        cls,
        transport: Transport | None = None,
        **kwargs: Any,
    ) -> "GiphyClient":
        """Create a client keyed from ``GIPHY_API_KEY``.

        Falls back to the public demo key when the variable is unset or blank.
        """
        settings = get_settings()
        if not settings.has_api_key:
            logger.info("giphy_using_public_api_key")
        return cls(
            settings.api_key_or_default(),
            transport=transport,
            settings=settings,
            **kwargs,
        )

    async def __aenter__(self) -> "GiphyClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, _exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.aclose()

    async def aclose(self) -> None:
        """Stop every live page stream and close the transport."""
        pagers = list(self._pagers)
        if pagers:
            await asyncio.gather(*(pager.aclose() for pager in pagers))
        self._pagers.clear()
        await self.snapshot().transport.aclose()

    # =========================================================================
    # Configuration
    # =========================================================================

    def snapshot(self) -> ClientConfig:
        """Get the configuration for the next HTTP call."""
        return self._config

    @property
    def api_key(self) -> str:
        return self._config.api_key

    @property
    def default_throttle_ms(self) -> int:
        return self._default_throttle_ms

    def set_api_key(self, api_key: str) -> None:
        """Use another API key for requests issued from now on.

        Raises:
            ValueError: If the API key is blank
        """
        api_key = (api_key or "").strip()
        if not api_key:
            raise ValueError("expecting a non-blank API key")
        with self._config_lock:
            self._config = replace(self._config, api_key=api_key)

    def set_transport(self, transport: Transport) -> None:
        """Use another transport for requests issued from now on.

        The previous transport is not closed.
        """
        with self._config_lock:
            self._config = replace(self._config, transport=transport)

    # =========================================================================
    # Paged Endpoints
    # =========================================================================

    def trending(self, request: Request | None = None) -> ResponsePager:
        """Stream trending GIFs.

        Args:
            request: Filters and paging limits; None means defaults

        Returns:
            Started page stream
        """
        return self._paginate(ROUTE_GIFS_TRENDING, request)

    def trending_stickers(self, request: Request | None = None) -> ResponsePager:
        """Stream trending stickers."""
        return self._paginate(ROUTE_STICKERS_TRENDING, request)

    def search(self, request: Request | None = None) -> ResponsePager:
        """Stream GIFs matching ``request.query``.

        Args:
            request: Query, filters and paging limits

        Returns:
            Started page stream
        """
        return self._paginate(ROUTE_GIFS_SEARCH, request)

    def search_stickers(self, request: Request | None = None) -> ResponsePager:
        """Stream stickers matching ``request.query``."""
        return self._paginate(ROUTE_STICKERS_SEARCH, request)

    def _paginate(self, route: str, request: Request | None) -> ResponsePager:
        pager = ResponsePager(
            self._fetcher,
            route,
            request,
            default_throttle_ms=self._default_throttle_ms,
        )
        pager.start()
        self._pagers.add(pager)
        pager.add_done_callback(self._pagers.discard)
        return pager

    # =========================================================================
    # Single-Item Endpoints
    # =========================================================================

    async def random_gif(self, request: Request | None = None) -> Giph:
        """Get a random GIF, optionally limited by tag and rating.

        Raises:
            GiphyEmptyResponseError: Nothing matched the filters
            GiphyError: Transport, HTTP or decoding failure
        """
        return await self._random(ROUTE_GIFS_RANDOM, request)

    async def random_sticker(self, request: Request | None = None) -> Giph:
        """Get a random sticker, optionally limited by tag and rating."""
        return await self._random(ROUTE_STICKERS_RANDOM, request)

    async def _random(self, route: str, request: Request | None) -> Giph:
        request = request or Request()
        giph = await self._fetcher.fetch_single(route, request.single_params())
        logger.info("giphy_random", route=route, tag=request.tag or None, giph_id=giph.id)
        return giph

    async def gif_by_id(self, giph_id: str) -> Giph:
        """Get a GIF by its id.

        Args:
            giph_id: Giphy id, e.g. "3ohze2UfcItWPUFqbm"

        Raises:
            GiphyNotFoundError: Unknown id
            GiphyEmptyResponseError: The response carried no item
            GiphyError: Transport, HTTP or decoding failure
        """
        route = f"/gifs/{quote(giph_id, safe='')}"
        giph = await self._fetcher.fetch_single(route, WireParams())
        logger.info("giphy_gif_by_id", giph_id=giph_id)
        return giph
