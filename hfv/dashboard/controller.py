"""Fetch lifecycle for one dashboard view.

A controller moves between ``loading``, ``ready`` and ``error`` and keeps only
the latest result. Work is scheduled on the running asyncio loop: one task per
fetch plus an optional timer task that re-issues the fetch every interval while
the view is mounted.

Every mount and every parameter change starts a new epoch. A fetch only
writes its result back if the controller is still mounted and still in the
epoch the fetch was started in, so late answers for an unmounted view or an
old currency are dropped instead of overwriting newer state.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Mapping, Optional, Set, TypeVar

from hfv.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetcher = Callable[[Mapping[str, Any]], Awaitable[Any]]
Mapper = Callable[[Any, Mapping[str, Any]], T]


class ViewStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class ViewSnapshot(Generic[T]):
    status: ViewStatus
    data: Optional[T] = None
    error: Optional[str] = None
    params: Mapping[str, Any] = field(default_factory=dict)
    updated_at: Optional[datetime] = None


def threaded(fn: Callable[..., Any], *args: Any) -> Fetcher:
    """Adapt a blocking ``fn(*args, **params)`` into an async fetcher."""

    async def fetch(params: Mapping[str, Any]) -> Any:
        return await asyncio.to_thread(fn, *args, **params)

    return fetch


class PollingViewController(Generic[T]):
    def __init__(
        self,
        name: str,
        fetch: Fetcher,
        mapper: Mapper[T],
        params: Optional[Mapping[str, Any]] = None,
        interval_seconds: Optional[float] = settings.poll_interval_seconds,
    ) -> None:
        self.name = name
        self.interval_seconds = interval_seconds
        self._fetch = fetch
        self._mapper = mapper
        self._params: Dict[str, Any] = dict(params or {})
        self._epoch = 0
        self._mounted = False
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
        self._snapshot: ViewSnapshot[T] = ViewSnapshot(ViewStatus.LOADING, params=dict(self._params))

    @property
    def snapshot(self) -> ViewSnapshot[T]:
        return self._snapshot

    @property
    def params(self) -> Dict[str, Any]:
        return dict(self._params)

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def mount(self) -> None:
        """Start fetching; must be called from inside the running event loop."""
        if self._mounted:
            return
        self._mounted = True
        logger.debug("mount %s %s", self.name, self._params)
        self._start_epoch()

    def unmount(self) -> None:
        """Stop the timer and ignore any fetch still in flight."""
        if not self._mounted:
            return
        self._mounted = False
        self._epoch += 1
        self._cancel_timer()
        logger.debug("unmount %s (%s fetches in flight)", self.name, len(self._inflight))

    def update_params(self, **changes: Any) -> bool:
        """Apply dependency changes; refetch only if something actually changed."""
        merged = {**self._params, **changes}
        if merged == self._params:
            return False
        self._params = merged
        if self._mounted:
            self._start_epoch()
        return True

    def refresh(self) -> Optional[asyncio.Task]:
        if not self._mounted:
            return None
        return self._spawn_load()

    async def wait_idle(self) -> None:
        """Wait until no fetch is in flight."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def _start_epoch(self) -> None:
        self._epoch += 1
        self._cancel_timer()
        self._snapshot = ViewSnapshot(ViewStatus.LOADING, params=dict(self._params))
        self._spawn_load()
        if self.interval_seconds:
            self._timer = asyncio.get_running_loop().create_task(self._tick(self._epoch))

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _is_current(self, epoch: int) -> bool:
        return self._mounted and epoch == self._epoch

    def _spawn_load(self) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._load(self._epoch, dict(self._params)))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _tick(self, epoch: int) -> None:
        while self._is_current(epoch):
            await asyncio.sleep(self.interval_seconds)
            if not self._is_current(epoch):
                break
            self._spawn_load()

    async def _load(self, epoch: int, params: Dict[str, Any]) -> None:
        if self._is_current(epoch):
            self._snapshot = ViewSnapshot(ViewStatus.LOADING, params=params)
        try:
            payload = await self._fetch(params)
            data = self._mapper(payload, params)
        except Exception as exc:  # noqa: BLE001
            if not self._is_current(epoch):
                logger.debug("%s: dropping failure from stale fetch: %s", self.name, exc)
                return
            logger.warning("%s fetch failed: %s", self.name, exc)
            self._snapshot = ViewSnapshot(
                ViewStatus.ERROR,
                error=str(exc),
                params=params,
                updated_at=datetime.now(timezone.utc),
            )
            return

        if not self._is_current(epoch):
            logger.debug("%s: dropping stale result for %s", self.name, params)
            return
        self._snapshot = ViewSnapshot(
            ViewStatus.READY,
            data=data,
            params=params,
            updated_at=datetime.now(timezone.utc),
        )
