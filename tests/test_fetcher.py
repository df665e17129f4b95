"""Tests for the page fetcher and the HTTP transport."""

import httpx
import pytest

from giphy.client import ClientConfig
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
from giphy.fetcher import GIPHY_BASE_URL, PageFetcher, status_error
from giphy.models import Request, WireParams
from giphy.transport import HTTPXTransport, Transport
from tests.stubs import TEST_API_KEY, TEST_API_KEY_2, StubTransport, make_giph, paged_body

# =============================================================================
# Status Classification Tests
# =============================================================================


class TestStatusError:
    """Tests for HTTP status classification."""

    def test_generic_error_uses_status_line(self):
        """Test the message is the status line."""
        error = status_error(httpx.Response(500))
        assert type(error) is GiphyHTTPError
        assert str(error) == "500 Internal Server Error"
        assert error.status_code == 500

    def test_bad_request(self):
        """Test 400 is a plain HTTP error."""
        error = status_error(httpx.Response(400))
        assert type(error) is GiphyHTTPError
        assert str(error) == "400 Bad Request"

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_error(self, status):
        """Test rejected keys."""
        error = status_error(httpx.Response(status))
        assert isinstance(error, GiphyAuthError)
        assert isinstance(error, GiphyHTTPError)

    def test_not_found(self):
        """Test 404 error."""
        error = status_error(httpx.Response(404))
        assert isinstance(error, GiphyNotFoundError)
        assert str(error) == "404 Not Found"

    def test_rate_limit_with_retry_after(self):
        """Test 429 carries Retry-After."""
        error = status_error(httpx.Response(429, headers={"Retry-After": "5"}))
        assert isinstance(error, GiphyRateLimitError)
        assert error.retry_after == 5
        assert str(error) == "429 Too Many Requests"

    def test_rate_limit_without_retry_after(self):
        """Test 429 without a usable Retry-After."""
        error = status_error(httpx.Response(429, headers={"Retry-After": "soon"}))
        assert isinstance(error, GiphyRateLimitError)
        assert error.retry_after is None


# =============================================================================
# PageFetcher Tests
# =============================================================================


class TestBuildRequest:
    """Tests for URL building."""

    def test_url_and_query(self):
        """Test base, route and encoded query."""
        fetcher = PageFetcher(lambda: None)
        params = Request(query="Milly Rock", limit_per_page=20).wire_params(offset=40)
        request = fetcher.build_request("/gifs/search", params, TEST_API_KEY)

        assert request.method == "GET"
        assert str(request.url).startswith(f"{GIPHY_BASE_URL}/gifs/search?")
        assert request.url.params["q"] == "Milly Rock"
        assert request.url.params["api_key"] == TEST_API_KEY
        assert request.url.params["offset"] == "40"
        assert request.url.params["limit"] == "20"
        assert "q=Milly+Rock" in str(request.url) or "q=Milly%20Rock" in str(request.url)

    def test_custom_base_url(self):
        """Test a custom API root without trailing slash duplication."""
        fetcher = PageFetcher(lambda: None, base_url="http://localhost:8080/v1/")
        request = fetcher.build_request("/gifs/random", WireParams(), "k")
        assert request.url.path == "/v1/gifs/random"
        assert request.url.host == "localhost"


class TestFetchPage:
    """Tests for PageFetcher.fetch_page."""

    @pytest.mark.asyncio
    async def test_fetch_page(self, make_fetcher):
        """Test a successful page."""
        fetcher, transport = make_fetcher(
            lambda request: httpx.Response(200, json=paged_body(0, 20, 80))
        )

        response = await fetcher.fetch_page("/gifs/trending", Request().wire_params(0))

        assert len(response.data) == 20
        assert response.pagination.count == 20
        assert len(transport.requests) == 1
        assert transport.requests[0].url.path == "/v1/gifs/trending"
        assert transport.requests[0].url.params["api_key"] == TEST_API_KEY

    @pytest.mark.asyncio
    async def test_http_error(self, make_fetcher):
        """Test non-2xx status is raised with its status line."""
        fetcher, _ = make_fetcher(lambda request: httpx.Response(503))

        with pytest.raises(GiphyHTTPError, match="503 Service Unavailable"):
            await fetcher.fetch_page("/gifs/trending", Request().wire_params(0))

    @pytest.mark.asyncio
    async def test_invalid_json(self, make_fetcher):
        """Test a body that is not JSON."""
        fetcher, _ = make_fetcher(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(GiphyDecodeError):
            await fetcher.fetch_page("/gifs/trending", Request().wire_params(0))

    @pytest.mark.asyncio
    async def test_unexpected_shape(self, make_fetcher):
        """Test JSON that is not a page."""
        fetcher, _ = make_fetcher(lambda request: httpx.Response(200, json={"data": "nope"}))

        with pytest.raises(GiphyDecodeError):
            await fetcher.fetch_page("/gifs/trending", Request().wire_params(0))

    @pytest.mark.asyncio
    async def test_no_retry(self, make_fetcher):
        """Test a failure is not retried."""
        fetcher, transport = make_fetcher(lambda request: httpx.Response(500))

        with pytest.raises(GiphyHTTPError):
            await fetcher.fetch_page("/gifs/trending", Request().wire_params(0))
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_adapter_exception_wrapped(self, make_fetcher):
        """Test exceptions of any transport become GiphyTransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise OSError("Network is unreachable")

        fetcher, _ = make_fetcher(handler)

        with pytest.raises(GiphyTransportError, match="Network is unreachable") as exc_info:
            await fetcher.fetch_page("/gifs/trending", Request().wire_params(0))
        assert isinstance(exc_info.value.__cause__, OSError)

        with pytest.raises(GiphyTransportError):
            await fetcher.fetch_single("/gifs/random", WireParams())

    @pytest.mark.asyncio
    async def test_adapter_giphy_error_kept(self, make_fetcher):
        """Test a GiphyError raised by a transport is not wrapped again."""
        original = GiphyTransportError("Request timeout: read")

        def handler(request: httpx.Request) -> httpx.Response:
            raise original

        fetcher, _ = make_fetcher(handler)

        with pytest.raises(GiphyTransportError) as exc_info:
            await fetcher.fetch_page("/gifs/trending", Request().wire_params(0))
        assert exc_info.value is original

    @pytest.mark.asyncio
    async def test_snapshot_per_call(self):
        """Test the configuration is read for every call."""
        transport = StubTransport(lambda request: httpx.Response(200, json=paged_body(0, 1, 1)))
        configs = [
            ClientConfig(api_key=TEST_API_KEY, transport=transport),
            ClientConfig(api_key=TEST_API_KEY_2, transport=transport),
        ]
        fetcher = PageFetcher(lambda: configs[0])

        await fetcher.fetch_page("/gifs/trending", Request().wire_params(0))
        configs.reverse()
        await fetcher.fetch_page("/gifs/trending", Request().wire_params(0))

        keys = [r.url.params["api_key"] for r in transport.requests]
        assert keys == [TEST_API_KEY, TEST_API_KEY_2]


class TestFetchSingle:
    """Tests for PageFetcher.fetch_single."""

    @pytest.mark.asyncio
    async def test_fetch_single(self, make_fetcher):
        """Test a successful single item."""
        fetcher, _ = make_fetcher(lambda request: httpx.Response(200, json={"data": make_giph(9)}))

        giph = await fetcher.fetch_single("/gifs/giph9", WireParams())

        assert giph.id == "giph9"
        assert giph.images["original"].height == 270

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"data": {}},
            {"data": []},
            {"data": None},
            {"meta": {"status": 200}},
            {"data": {"caption": "", "images": {}}},
            [],
        ],
    )
    async def test_empty_response(self, make_fetcher, body):
        """Test payloads without an item."""
        fetcher, _ = make_fetcher(lambda request: httpx.Response(200, json=body))

        with pytest.raises(GiphyEmptyResponseError, match="could not parse the response"):
            await fetcher.fetch_single("/gifs/random", WireParams())

    @pytest.mark.asyncio
    async def test_invalid_item(self, make_fetcher):
        """Test an item with malformed fields."""
        fetcher, _ = make_fetcher(
            lambda request: httpx.Response(
                200, json={"data": {"id": "x", "trending_datetime": "yesterday"}}
            )
        )

        with pytest.raises(GiphyDecodeError):
            await fetcher.fetch_single("/gifs/x", WireParams())

    @pytest.mark.asyncio
    async def test_not_found(self, make_fetcher):
        """Test unknown id."""
        fetcher, _ = make_fetcher(lambda request: httpx.Response(404))

        with pytest.raises(GiphyNotFoundError, match="404 Not Found"):
            await fetcher.fetch_single("/gifs/missing", WireParams())


# =============================================================================
# HTTPXTransport Tests
# =============================================================================


class TestHTTPXTransport:
    """Tests for the default httpx transport."""

    def test_satisfies_protocol(self):
        """Test HTTPXTransport and the test double are Transports."""
        assert isinstance(HTTPXTransport(), Transport)
        assert isinstance(StubTransport(lambda request: httpx.Response(200)), Transport)

    @pytest.mark.asyncio
    async def test_execute(self):
        """Test a request goes through the httpx client."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": []})

        transport = HTTPXTransport(transport=httpx.MockTransport(handler))
        response = await transport.execute(
            httpx.Request("GET", f"{GIPHY_BASE_URL}/gifs/trending", params={"api_key": "k"})
        )

        assert response.status_code == 200
        assert response.json() == {"data": []}
        assert len(seen) == 1
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_connect_error(self):
        """Test network failures become GiphyTransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        transport = HTTPXTransport(transport=httpx.MockTransport(handler))

        with pytest.raises(GiphyTransportError, match="HTTP error") as exc_info:
            await transport.execute(httpx.Request("GET", f"{GIPHY_BASE_URL}/gifs/trending"))

        assert isinstance(exc_info.value, GiphyError)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test timeouts become GiphyTransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        transport = HTTPXTransport(transport=httpx.MockTransport(handler))

        with pytest.raises(GiphyTransportError, match="Request timeout"):
            await transport.execute(httpx.Request("GET", f"{GIPHY_BASE_URL}/gifs/trending"))
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_lazy_owned_client(self):
        """Test the owned client is created on demand and closed."""
        transport = HTTPXTransport(timeout=3.0)
        assert transport._client is None

        client = transport.client
        assert client.timeout.read == 3.0
        assert client.headers["Accept"] == "application/json"

        await transport.aclose()
        assert client.is_closed
        assert transport._client is None

    @pytest.mark.asyncio
    async def test_external_client_not_closed(self):
        """Test a caller-provided client stays open."""
        external = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        transport = HTTPXTransport(client=external)

        async with transport:
            response = await transport.execute(httpx.Request("GET", "https://example.com/"))
            assert response.status_code == 200

        assert not external.is_closed
        await external.aclose()
