"""Host the prefetch controller on its own asyncio event loop thread."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Awaitable, Callable, Optional

from ..domain.models import ScrollAxis
from ..errors.handler import ErrorHandler, ErrorSeverity
from .services.prefetch_controller import PrefetchController

LOGGER = logging.getLogger(__name__)

ControllerFactory = Callable[[], PrefetchController]


class FeedRuntime:
    """Run a :class:`PrefetchController` on a dedicated event loop.

    The GUI thread never touches controller state directly: scroll positions
    are posted with :meth:`post_scroll` and marshalled onto the loop thread,
    results reach the GUI through the presentation sink.  *closers* are
    awaited on the loop after the controller went idle, e.g. to close an HTTP
    client.
    """

    def __init__(
        self,
        controller_factory: ControllerFactory,
        *,
        closers: tuple[Callable[[], Awaitable[Any]], ...] = (),
        thread_name: str = "memefeed-loop",
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self._controller_factory = controller_factory
        self._closers = closers
        self._thread_name = thread_name
        self._error_handler = error_handler
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._controller: Optional[PrefetchController] = None
        self._shutdown: Optional[asyncio.Event] = None
        self._started = threading.Event()
        self._initialized = threading.Event()
        self._ready = False

    @property
    def controller(self) -> Optional[PrefetchController]:
        return self._controller

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def is_ready(self) -> bool:
        return self._ready

    def start(self) -> None:
        """Spawn the loop thread and start initialising the controller."""

        if self._thread is not None:
            raise RuntimeError("FeedRuntime can only be started once")
        self._thread = threading.Thread(target=self._run, name=self._thread_name, daemon=True)
        self._thread.start()
        self._started.wait()

    def wait_initialized(self, timeout: Optional[float] = None) -> bool:
        """Block until :meth:`PrefetchController.initialize` returned."""

        return self._initialized.wait(timeout)

    def post_scroll(self, position: float, axis: ScrollAxis) -> None:
        """Forward a scroll position from any thread."""

        loop = self._loop
        controller = self._controller
        if loop is None or controller is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(controller.on_scroll_position_changed, position, axis)
        except RuntimeError:
            # The loop is shutting down; late render ticks are dropped.
            LOGGER.debug("Dropping scroll position %.3f after shutdown", position)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Let in-flight work finish, close collaborators and join the thread."""

        loop = self._loop
        thread = self._thread
        if loop is None or thread is None:
            return
        if not loop.is_closed():
            try:
                loop.call_soon_threadsafe(self._request_shutdown)
            except RuntimeError:
                LOGGER.debug("Feed loop already closed")
        thread.join(timeout)

    # -- loop thread -------------------------------------------------------

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._shutdown = asyncio.Event()
        try:
            self._controller = self._controller_factory()
        except Exception as exc:
            if self._error_handler is not None:
                self._error_handler.handle(exc, ErrorSeverity.CRITICAL, {"stage": "startup"})
            else:
                LOGGER.exception("Failed to build the prefetch controller")
            self._started.set()
            self._initialized.set()
            loop.close()
            return
        self._started.set()
        try:
            loop.run_until_complete(self._main())
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    async def _main(self) -> None:
        controller = self._controller
        try:
            self._ready = await controller.initialize()
        except Exception:
            LOGGER.exception("Prefetch controller initialisation failed")
        finally:
            self._initialized.set()
        await self._shutdown.wait()
        await controller.wait_idle()
        for closer in self._closers:
            try:
                await closer()
            except Exception:
                LOGGER.exception("Failed to close feed collaborator")

    def _request_shutdown(self) -> None:
        self._shutdown.set()


__all__ = ["FeedRuntime"]
