"""Page fetcher: one HTTP round trip, decoded and classified.

Every call takes a fresh snapshot of the client configuration, so a new
API key or transport set on the client applies to the next request even
while page streams are running.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import ValidationError

from giphy.exceptions import (
    GiphyAuthError,
    GiphyDecodeError,
    GiphyEmptyResponseError,
    GiphyError,
    GiphyHTTPError,
    GiphyNotFoundError,
    GiphyRateLimitError,
    GiphyTransportError,
)
from giphy.models import Giph, PageResponse, WireParams

if TYPE_CHECKING:
    from giphy.client import ClientConfig

logger = structlog.get_logger(__name__)

GIPHY_BASE_URL = "https://api.giphy.com/v1"


def status_error(response: httpx.Response) -> GiphyHTTPError:
    """Map a non-2xx response to an exception carrying its status line."""
    code = response.status_code
    status_line = f"{code} {response.reason_phrase}".strip()

    if code in (401, 403):
        return GiphyAuthError(status_line, code)
    if code == 404:
        return GiphyNotFoundError(status_line, code)
    if code == 429:
        retry_after = response.headers.get("Retry-After")
        return GiphyRateLimitError(
            status_line,
            code,
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
        )
    return GiphyHTTPError(status_line, code)


class PageFetcher:
    """Fetches and decodes single API responses.

    Errors are raised, never retried: the pagination engine turns them
    into the terminal page of a stream, single-item calls pass them on.
    """

    def __init__(
        self,
        snapshot: Callable[[], "ClientConfig"],
        base_url: str = GIPHY_BASE_URL,
    ):
        """Initialize fetcher.

        Args:
            snapshot: Returns the client configuration current at call time
            base_url: API root the routes are appended to
        """
        self._snapshot = snapshot
        self._base_url = base_url.rstrip("/")

    def build_request(self, route: str, params: WireParams, api_key: str) -> httpx.Request:
        """Build the GET request for ``route`` with encoded query string."""
        return httpx.Request(
            "GET",
            f"{self._base_url}{route}",
            params=params.with_api_key(api_key).to_query(),
        )

    async def fetch_page(self, route: str, params: WireParams) -> PageResponse:
        """Fetch one page of a paged endpoint.

        Raises:
            GiphyTransportError: Network or transport adapter failure
            GiphyHTTPError: Non-2xx status
            GiphyDecodeError: Body is not a valid page
        """
        payload = await self._get_json(route, params)
        try:
            return PageResponse.model_validate(payload)
        except ValidationError as e:
            logger.warning("giphy_decode_error", route=route, error=str(e))
            raise GiphyDecodeError(str(e)) from e

    async def fetch_single(self, route: str, params: WireParams) -> Giph:
        """Fetch the item of a single-item endpoint.

        Raises:
            GiphyEmptyResponseError: The response carries no item
            GiphyTransportError: Network or transport adapter failure
            GiphyHTTPError: Non-2xx status
            GiphyDecodeError: Body is not valid JSON or not an item
        """
        payload = await self._get_json(route, params)

        # Giphy answers "nothing found" with an empty object or list
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict) or not data:
            logger.info("giphy_empty_response", route=route)
            raise GiphyEmptyResponseError()

        try:
            giph = Giph.model_validate(data)
        except ValidationError as e:
            logger.warning("giphy_decode_error", route=route, error=str(e))
            raise GiphyDecodeError(str(e)) from e

        if giph.is_blank():
            logger.info("giphy_empty_response", route=route)
            raise GiphyEmptyResponseError()
        return giph

    async def _get_json(self, route: str, params: WireParams) -> Any:
        config = self._snapshot()
        request = self.build_request(route, params, config.api_key)

        logger.debug("giphy_request", route=route, params=params.to_query())
        try:
            response = await config.transport.execute(request)
        except GiphyError:
            raise
        except Exception as e:
            # Adapters other than HTTPXTransport may raise their own errors
            logger.warning("giphy_transport_error", route=route, error=str(e))
            raise GiphyTransportError(str(e)) from e

        if not response.is_success:
            error = status_error(response)
            logger.warning("giphy_http_error", route=route, status=response.status_code)
            raise error

        try:
            return response.json()
        except ValueError as e:
            logger.warning("giphy_decode_error", route=route, error=str(e))
            raise GiphyDecodeError(str(e)) from e
