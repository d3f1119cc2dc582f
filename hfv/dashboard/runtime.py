from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

R = TypeVar("R")


class ViewRuntime:
    """A private asyncio loop on a daemon thread.

    Streamlit reruns the page script on its own threads; controllers and their
    timers live on this loop instead, and the page only hands work over via
    :meth:`call` / :meth:`run` and reads the immutable snapshots back.

    Streamlit never reports a closed tab, so the page calls :meth:`touch` on
    every render and :meth:`watch` shuts the loop down once those heartbeats
    stop arriving.
    """

    def __init__(self, name: str = "hfv-views") -> None:
        self.loop = asyncio.new_event_loop()
        self._last_touch = time.monotonic()
        self._thread = threading.Thread(target=self._serve, name=name, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_forever()
        finally:
            pending = asyncio.all_tasks(self.loop)
            for task in pending:
                task.cancel()
            if pending:
                self.loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            self.loop.close()
            logger.debug("view runtime stopped")

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and not self.loop.is_closed()

    def touch(self) -> None:
        """Record a heartbeat from the page."""
        self._last_touch = time.monotonic()

    def watch(
        self,
        on_idle: Callable[[], Any],
        idle_seconds: float,
        check_every: Optional[float] = None,
    ) -> None:
        """Call ``on_idle`` and stop the loop after ``idle_seconds`` without a heartbeat."""
        self.touch()
        check_every = check_every if check_every is not None else max(idle_seconds / 4, 0.01)
        asyncio.run_coroutine_threadsafe(self._watchdog(on_idle, idle_seconds, check_every), self.loop)

    async def _watchdog(self, on_idle: Callable[[], Any], idle_seconds: float, check_every: float) -> None:
        while time.monotonic() - self._last_touch < idle_seconds:
            await asyncio.sleep(check_every)
        logger.info("no page heartbeat for %.1fs; shutting down view runtime", idle_seconds)
        try:
            on_idle()
        finally:
            self.loop.stop()

    def call(self, fn: Callable[..., R], *args: Any, timeout: Optional[float] = 10.0) -> R:
        """Run ``fn(*args)`` on the loop thread and return its result."""

        async def invoke() -> R:
            return fn(*args)

        return asyncio.run_coroutine_threadsafe(invoke(), self.loop).result(timeout)

    def run(self, awaitable: Awaitable[R], timeout: Optional[float] = None) -> R:
        return asyncio.run_coroutine_threadsafe(_await(awaitable), self.loop).result(timeout)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the loop thread to exit; True once it has."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def stop(self, timeout: float = 5.0) -> None:
        if not self.running:
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        self.join(timeout)


async def _await(awaitable: Awaitable[R]) -> R:
    return await awaitable
