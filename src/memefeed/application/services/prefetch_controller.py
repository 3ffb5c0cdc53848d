"""Buffered pagination and prefetch scheduling for the image feed.

The controller owns an append-only buffer of image URLs that grows one A1
window at a time, and decides when to download the next batch of images.
It knows nothing about how pages are listed, how images are downloaded or
how they are shown; those are the :mod:`~memefeed.application.interfaces`
collaborators.

All methods must be called from the event loop that ran :meth:`initialize`.
Two guards in :class:`~memefeed.domain.models.ControllerState` keep at most
one image batch and at most one URL page fetch in flight.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Coroutine, Optional, Sequence

from ...config import BUFFER_SIZE, DEFAULT_RANGE, INITIAL_LOAD_COUNT, INITIAL_URL_FETCH_THRESHOLD
from ...domain.models import (
    ControllerSnapshot,
    ControllerState,
    FetchCursor,
    LoadOutcome,
    LoadRequest,
    ScrollAxis,
    UrlBuffer,
    claim_requests,
)
from ...errors import (
    FetchErrorKind,
    PageFetchError,
    ResourceFetchError,
    SourceUnavailableError,
)
from ...errors.handler import ErrorHandler, ErrorSeverity
from ...events.bus import EventBus
from ...events.feed_events import BatchCompletedEvent, FeedReadyEvent, UrlPageAppendedEvent
from ..interfaces import PresentationSink, ResourceFetcher, UrlSource
from .scheduling import batch_size, dynamic_threshold, threshold_crossed, url_fetch_threshold

LOGGER = logging.getLogger(__name__)


class PrefetchController:
    """Decide when and how many URLs and images the feed fetches."""

    def __init__(
        self,
        source: UrlSource,
        fetcher: ResourceFetcher,
        sink: PresentationSink,
        *,
        initial_range: str = DEFAULT_RANGE,
        initial_load_count: int = INITIAL_LOAD_COUNT,
        buffer_size: int = BUFFER_SIZE,
        error_handler: Optional[ErrorHandler] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")
        if initial_load_count < 0:
            raise ValueError("initial_load_count must not be negative")
        self._source = source
        self._fetcher = fetcher
        self._sink = sink
        self._cursor = FetchCursor.parse(initial_range)
        self._initial_load_count = initial_load_count
        self._buffer_size = buffer_size

        if event_bus is None:
            event_bus = error_handler.event_bus if error_handler is not None else EventBus(LOGGER)
        self._events = event_bus
        self._errors = error_handler or ErrorHandler(LOGGER, event_bus)

        self._buffer = UrlBuffer()
        self._state = ControllerState(next_url_fetch_threshold=INITIAL_URL_FETCH_THRESHOLD)
        # Consumption level at which the last URL page brought nothing new.
        self._url_growth_stalled_at: Optional[int] = None
        # Consumption level at which the last URL page fetch failed; cleared by
        # the next threshold crossing.
        self._url_fetch_failed_at: Optional[int] = None
        self._tasks: set[asyncio.Task] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._initialized = False
        self._ready = False

    # -- properties --------------------------------------------------------

    @property
    def state(self) -> ControllerSnapshot:
        return self._state.snapshot()

    @property
    def urls(self) -> tuple[str, ...]:
        return self._buffer.urls

    @property
    def range_spec(self) -> str:
        """A1 window the next URL page will be requested with."""
        return self._cursor.range_spec

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def has_pending_work(self) -> bool:
        return bool(self._tasks)

    # -- public API --------------------------------------------------------

    async def initialize(self, initial_load_count: Optional[int] = None) -> bool:
        """Fetch the first URL page and load the initial images.

        Returns ``True`` once the sink was told the feed is ready.  When the
        source fails or yields no valid URL a :class:`SourceUnavailableError`
        is reported, the controller stays empty and nothing is retried.
        """

        if self._initialized:
            raise RuntimeError("PrefetchController.initialize() may only run once")
        self._initialized = True
        self._loop = asyncio.get_running_loop()
        count = self._initial_load_count if initial_load_count is None else initial_load_count

        range_spec = self._cursor.range_spec
        LOGGER.info("Fetching URLs from %s...", range_spec)
        try:
            rows = await self._source.fetch_page(range_spec)
        except Exception as exc:
            error = SourceUnavailableError(f"URL source failed at startup: {exc}")
            error.__cause__ = exc
            self._report(error, ErrorSeverity.CRITICAL, range_spec=range_spec)
            return False

        self._append_page(range_spec, rows)
        if not len(self._buffer):
            self._report(
                SourceUnavailableError(f"The range '{range_spec}' holds no valid URL"),
                ErrorSeverity.CRITICAL,
                range_spec=range_spec,
            )
            return False

        LOGGER.info("Loading initial batch of images...")
        requests = self._begin_batch(count)
        if requests:
            await self._run_batch(requests)

        self._state.next_url_fetch_threshold = url_fetch_threshold(len(self._buffer))
        self._ready = True
        LOGGER.info("Initial images loaded; monitoring scroll for additional image loading.")
        self._notify("on_ready")
        self._events.publish(
            FeedReadyEvent(url_count=len(self._buffer), loaded_count=self._state.consumed_count)
        )

        requests = self._begin_batch(self._buffer_size)
        if requests:
            self._spawn(self._run_batch(requests))
        return True

    def on_scroll_position_changed(self, position: float, axis: ScrollAxis) -> bool:
        """React to the current normalised scroll *position*.

        Called on every render tick.  Starts the next image batch when the
        dynamic threshold was crossed and checks whether another URL page is
        due.  Returns whether a batch was started.
        """

        if not self._ready:
            return False

        started = False
        state = self._state
        threshold = dynamic_threshold(state.consumed_count)
        crossed = threshold_crossed(position, axis, threshold)
        if crossed and self._url_fetch_failed_at is not None:
            self._url_fetch_failed_at = None
        if crossed and not state.is_loading_images and state.consumed_count < len(self._buffer):
            LOGGER.info(
                "Scroll threshold reached (%.1f%%). Loading next buffer of images...",
                threshold * 100,
            )
            requests = self._begin_batch(self._buffer_size)
            if requests:
                self._spawn(self._run_batch(requests))
                started = True

        attempt = self._begin_url_fetch()
        if attempt is not None:
            self._spawn(self._run_url_fetch(*attempt))
        return started

    async def load_next_batch(self) -> int:
        """Download the next ``buffer_size`` images; return how many were requested."""

        requests = self._begin_batch(self._buffer_size)
        if not requests:
            return 0
        await self._run_batch(requests)
        return len(requests)

    async def maybe_fetch_more_urls(self) -> int:
        """Fetch the next URL page when enough of the buffer was consumed.

        Returns the number of URLs appended; ``0`` also covers the case where no
        fetch was due.
        """

        attempt = self._begin_url_fetch()
        if attempt is None:
            return 0
        return await self._run_url_fetch(*attempt)

    async def wait_idle(self) -> None:
        """Wait until every scheduled batch and URL fetch has finished."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -- image batches -----------------------------------------------------

    def _begin_batch(self, limit: int) -> list[LoadRequest]:
        count = batch_size(limit, len(self._buffer), self._state.consumed_count)
        if count <= 0 or not self._state.try_begin_image_batch():
            return []
        start = self._state.consumed_count
        requests = claim_requests(self._buffer, start, count)
        self._state.consumed_count = start + count
        for request in requests:
            LOGGER.debug(
                "Queuing download for image %d/%d from URL: %s",
                request.index + 1,
                len(self._buffer),
                request.url,
            )
        return requests

    async def _run_batch(self, requests: Sequence[LoadRequest]) -> list[LoadOutcome]:
        started = time.perf_counter()
        outcomes: list[LoadOutcome] = []
        succeeded = 0
        try:
            loop = asyncio.get_running_loop()
            # Every download starts now; completions are consumed in index
            # order so the feed never shows a later image before an earlier one.
            pending = [
                (request, loop.create_task(self._fetcher.fetch(request.url)))
                for request in requests
            ]
            for request, task in pending:
                outcome = await self._settle(request, task)
                outcomes.append(outcome)
                if self._deliver(outcome):
                    succeeded += 1
        finally:
            self._state.end_image_batch()

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        LOGGER.info("Loaded %d images in %d ms.", len(requests), elapsed_ms)
        self._events.publish(
            BatchCompletedEvent(
                first_index=requests[0].index,
                requested=len(requests),
                succeeded=succeeded,
                elapsed_ms=elapsed_ms,
            )
        )
        return outcomes

    async def _settle(self, request: LoadRequest, task: asyncio.Task) -> LoadOutcome:
        try:
            image = await task
        except Exception as exc:
            return LoadOutcome(request, error=exc)
        if image is None:
            error = ResourceFetchError(request.url, FetchErrorKind.EMPTY_PAYLOAD, "no image returned")
            return LoadOutcome(request, error=error)
        return LoadOutcome(request, image=image)

    def _deliver(self, outcome: LoadOutcome) -> bool:
        """Hand *outcome* to the sink; return whether the image was shown."""

        request = outcome.request
        if outcome.ok:
            LOGGER.debug("Successfully downloaded image from %s.", request.url)
            if self._notify("on_resource_loaded", request.index, outcome.image) is not False:
                return True
            LOGGER.warning("Presentation sink rejected image %d from %s", request.index, request.url)
            return False
        self._report(outcome.error, ErrorSeverity.ERROR, index=request.index, url=request.url)
        self._notify("on_resource_failed", request.index)
        return False

    # -- URL pages ---------------------------------------------------------

    def _begin_url_fetch(self) -> Optional[tuple[str, int]]:
        consumed = self._state.consumed_count
        if consumed < self._state.next_url_fetch_threshold:
            return None
        if consumed in (self._url_growth_stalled_at, self._url_fetch_failed_at):
            return None
        if not self._state.try_begin_url_fetch():
            return None
        LOGGER.info("Consumed %d of %d URLs. Fetching next batch...", consumed, len(self._buffer))
        return self._cursor.range_spec, consumed

    async def _run_url_fetch(self, range_spec: str, consumed: int) -> int:
        try:
            try:
                rows = await self._source.fetch_page(range_spec)
            except PageFetchError as exc:
                self._report(exc, ErrorSeverity.WARNING, range_spec=range_spec)
                self._url_fetch_failed_at = consumed
                return 0
            except Exception as exc:
                error = PageFetchError(range_spec, str(exc))
                error.__cause__ = exc
                self._report(error, ErrorSeverity.WARNING, range_spec=range_spec)
                self._url_fetch_failed_at = consumed
                return 0

            added = self._append_page(range_spec, rows)
            self._state.next_url_fetch_threshold = url_fetch_threshold(len(self._buffer))
            self._url_fetch_failed_at = None
            self._url_growth_stalled_at = None if added else consumed
            return added
        finally:
            self._state.end_url_fetch()

    def _append_page(self, range_spec: str, rows: Sequence[Any]) -> int:
        added, rejected = self._buffer.extend(rows)
        for error in rejected:
            self._report(error, ErrorSeverity.WARNING, range_spec=range_spec)
        if rows:
            LOGGER.info("Successfully fetched %d URLs from %s.", added, range_spec)
        else:
            LOGGER.warning("The range '%s' is empty or does not exist.", range_spec)
        self._cursor = self._cursor.advanced_to(len(self._buffer))
        self._events.publish(
            UrlPageAppendedEvent(
                range_spec=range_spec,
                added=added,
                skipped=len(rejected),
                total=len(self._buffer),
            )
        )
        return added

    # -- internal ----------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("Feed task failed: %s", exc, exc_info=exc)

    def _notify(self, method: str, *args: Any) -> Any:
        try:
            return getattr(self._sink, method)(*args)
        except Exception:
            LOGGER.exception("Presentation sink %s failed", method)
            return False

    def _report(self, error: Exception, severity: ErrorSeverity, **context: Any) -> None:
        self._errors.handle(error, severity, context)


__all__ = ["PrefetchController"]
