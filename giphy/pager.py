"""Pagination engine for the search and trending endpoints.

A ``ResponsePager`` turns one ``Request`` into an asynchronous stream of
``Page`` objects. A background task produces the pages: it fetches one
page, hands it over through a single-slot queue, waits for the throttle
delay (or a cancel) and moves the offset forward. Because the queue holds
at most one page, a slow consumer holds the producer back.

Usage:
    pager = client.search(Request(query="Milly Rock", max_page_number=4))
    async for page in pager:
        if page.error:
            print(page.page_number, page.error)
            continue
        for giph in page.giphs:
            print(giph.url)

Cancellation is cooperative: ``cancel()`` never interrupts an HTTP call in
flight. The page it returns is still delivered, and the producer stops at
its next throttle checkpoint.
"""

import asyncio
import contextlib
from collections.abc import Callable
from enum import Enum
from typing import Any, NoReturn

import structlog

from giphy.exceptions import GiphyAlreadyClosedError, GiphyError
from giphy.fetcher import PageFetcher
from giphy.models import DEFAULT_THROTTLE_MS, Page, Request

logger = structlog.get_logger(__name__)


class PagerState(str, Enum):
    """Lifecycle of one page stream."""

    IDLE = "idle"
    RUNNING = "running"
    CANCELLED = "cancelled"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class ResponsePager:
    """Live page stream of one paged request.

    Iterate it with ``async for`` until it ends; the stream ends once the
    producer finished and every queued page was consumed, whichever way
    the producer finished.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        route: str,
        request: Request | None = None,
        default_throttle_ms: int = DEFAULT_THROTTLE_MS,
    ):
        """Initialize pager. Call ``start()`` to begin producing pages.

        Args:
            fetcher: Page fetcher bound to the client configuration
            route: API route, e.g. ``/gifs/search``
            request: Query; None means all defaults
            default_throttle_ms: Delay used when the request sets none
        """
        self._fetcher = fetcher
        self._route = route
        self._request = request or Request()
        self._throttle = self._request.resolve_throttle(default_throttle_ms)

        self._queue: asyncio.Queue[Page] = asyncio.Queue(maxsize=1)
        self._cancelled = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._state = PagerState.IDLE

    @property
    def request(self) -> Request:
        """The request this stream pages through."""
        return self._request

    @property
    def route(self) -> str:
        """API route this stream pages through."""
        return self._route

    @property
    def state(self) -> PagerState:
        """Current lifecycle state of the producer."""
        return self._state

    @property
    def throttle(self) -> float:
        """Delay between two page fetches, in seconds."""
        return self._throttle

    @property
    def closed(self) -> bool:
        """Check if the producer has finished (pages may still be queued)."""
        return self._task is not None and self._task.done()

    def start(self) -> "ResponsePager":
        """Spawn the producer task and return immediately.

        Must be called from a running event loop.

        Raises:
            RuntimeError: If the pager was already started
        """
        if self._task is not None:
            raise RuntimeError("ResponsePager already started")
        loop = asyncio.get_running_loop()
        self._state = PagerState.RUNNING
        self._task = loop.create_task(self._produce(), name=f"giphy-pager:{self._route}")
        logger.debug(
            "giphy_stream_started",
            route=self._route,
            max_pages=self._request.max_page_number,
            throttle=self._throttle,
        )
        return self

    def cancel(self) -> None:
        """Ask the producer to stop before its next page fetch.

        Raises:
            GiphyAlreadyClosedError: If the stream was already cancelled
        """
        if self._cancelled.is_set():
            raise GiphyAlreadyClosedError()
        self._cancelled.set()
        logger.debug("giphy_stream_cancel_requested", route=self._route)

    async def aclose(self) -> None:
        """Stop the producer right away, dropping a fetch in flight.

        Meant for cleanup (e.g. client shutdown); safe to call repeatedly.
        """
        self._cancelled.set()
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        if self._state == PagerState.RUNNING:
            self._state = PagerState.CANCELLED

    def add_done_callback(self, callback: Callable[["ResponsePager"], Any]) -> None:
        """Call ``callback(pager)`` once the producer has finished."""
        if self._task is None:
            raise RuntimeError("ResponsePager was not started")
        self._task.add_done_callback(lambda _task: callback(self))

    async def wait_closed(self) -> None:
        """Wait until the producer has finished."""
        if self._task is not None:
            await asyncio.wait({self._task})

    async def collect(self) -> list[Page]:
        """Consume the whole stream into a list."""
        return [page async for page in self]

    def __aiter__(self) -> "ResponsePager":
        return self

    async def __anext__(self) -> Page:
        if not self._queue.empty():
            return self._queue.get_nowait()
        if self._task is None:
            raise RuntimeError("ResponsePager was not started")
        if self._task.done():
            self._finish()

        getter = asyncio.ensure_future(self._queue.get())
        try:
            done, _ = await asyncio.wait(
                {getter, self._task}, return_when=asyncio.FIRST_COMPLETED
            )
        except BaseException:
            getter.cancel()
            raise

        if getter in done:
            return getter.result()

        # The producer finished first; a page it queued last is still ours
        getter.cancel()
        if not self._queue.empty():
            return self._queue.get_nowait()
        self._finish()

    def _finish(self) -> NoReturn:
        """End iteration, re-raising a crash of the producer task."""
        assert self._task is not None
        if not self._task.cancelled():
            self._task.result()
        raise StopAsyncIteration

    async def _emit(self, page: Page) -> None:
        await self._queue.put(page)
        logger.debug(
            "giphy_page_emitted",
            route=self._route,
            page_number=page.page_number,
            items=len(page.giphs),
            error=str(page.error) if page.error else None,
        )

    async def _throttle_or_cancel(self) -> bool:
        """Wait out the throttle delay; return True if cancelled meanwhile."""
        if self._cancelled.is_set():
            return True
        if self._throttle <= 0:
            return False
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=self._throttle)
        except asyncio.TimeoutError:
            return False
        return True

    async def _produce(self) -> None:
        page_number = 0
        offset = 0

        while True:
            params = self._request.wire_params(offset)

            try:
                response = await self._fetcher.fetch_page(self._route, params)
            except GiphyError as e:
                self._state = PagerState.FAILED
                logger.warning(
                    "giphy_page_failed",
                    route=self._route,
                    page_number=page_number,
                    error=str(e),
                )
                await self._emit(Page(page_number=page_number, error=e))
                return

            if not response.data:
                self._state = PagerState.EXHAUSTED
                logger.info("giphy_stream_finished", route=self._route, pages=page_number)
                return

            await self._emit(
                Page(
                    page_number=page_number,
                    giphs=response.data,
                    pagination=response.pagination,
                )
            )

            page_number += 1
            if self._request.page_limit_reached(page_number):
                self._state = PagerState.EXHAUSTED
                logger.info("giphy_stream_finished", route=self._route, pages=page_number)
                return

            if await self._throttle_or_cancel():
                self._state = PagerState.CANCELLED
                logger.info("giphy_stream_cancelled", route=self._route, pages=page_number)
                return

            if response.pagination is not None:
                offset += response.pagination.count
