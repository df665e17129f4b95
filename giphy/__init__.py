"""Async client for the Giphy API.

Provides:
- GiphyClient with trending/search page streams for GIFs and stickers
- Random GIF/sticker and lookup-by-id calls
- ResponsePager: throttled, cancellable page stream
"""

from giphy.client import ClientConfig, GiphyClient
from giphy.config import PUBLIC_API_KEY, Settings, get_settings
from giphy.exceptions import (
    GiphyAlreadyClosedError,
    GiphyAuthError,
    GiphyDecodeError,
    GiphyEmptyResponseError,
    GiphyError,
    GiphyHTTPError,
    GiphyNotFoundError,
    GiphyRateLimitError,
    GiphyTransportError,
)
from giphy.logger import configure_logging, get_logger
from giphy.models import (
    DEFAULT_THROTTLE_MS,
    NO_THROTTLE,
    Format,
    Giph,
    Language,
    Page,
    PageResponse,
    Pagination,
    Rating,
    Rendition,
    Request,
    SortOrder,
    WireParams,
)
from giphy.pager import PagerState, ResponsePager
from giphy.transport import HTTPXTransport, Transport

__all__ = [
    # Client
    "GiphyClient",
    "ClientConfig",
    "ResponsePager",
    "PagerState",
    # Transport
    "Transport",
    "HTTPXTransport",
    # Configuration
    "Settings",
    "get_settings",
    "PUBLIC_API_KEY",
    # Logging
    "configure_logging",
    "get_logger",
    # Models
    "Request",
    "WireParams",
    "Giph",
    "Rendition",
    "Pagination",
    "PageResponse",
    "Page",
    "Rating",
    "Format",
    "Language",
    "SortOrder",
    "NO_THROTTLE",
    "DEFAULT_THROTTLE_MS",
    # Errors
    "GiphyError",
    "GiphyTransportError",
    "GiphyHTTPError",
    "GiphyAuthError",
    "GiphyNotFoundError",
    "GiphyRateLimitError",
    "GiphyDecodeError",
    "GiphyEmptyResponseError",
    "GiphyAlreadyClosedError",
]
