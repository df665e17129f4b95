"""Shared fixtures for the Giphy client tests."""

from collections.abc import Callable

import httpx
import pytest

from giphy.client import ClientConfig, GiphyClient
from giphy.config import Settings
from giphy.fetcher import PageFetcher
from tests.stubs import TEST_API_KEY, StubTransport, paged_handler


@pytest.fixture
def test_settings() -> Settings:
    """Settings independent of the developer's environment."""
    return Settings(_env_file=None, giphy_api_key=None)


@pytest.fixture
def make_client(test_settings: Settings):
    """Factory building a client around a StubTransport."""

    def _make(handler: Callable[[httpx.Request], httpx.Response] | None = None, **kwargs):
        transport = StubTransport(handler or paged_handler())
        client = GiphyClient(TEST_API_KEY, transport=transport, settings=test_settings, **kwargs)
        return client, transport

    return _make


@pytest.fixture
def make_fetcher():
    """Factory building a PageFetcher with a fixed configuration."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]):
        transport = StubTransport(handler)
        config = ClientConfig(api_key=TEST_API_KEY, transport=transport)
        return PageFetcher(lambda: config), transport

    return _make
