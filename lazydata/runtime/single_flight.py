"""
Single-Flight Loader.

Ensures at most one fetch is in flight per collection. Callers that
trigger a load while one is running (or settled less than a grace period
ago) join the existing task instead of starting another.

Lifecycle of a PendingLoad:
    1. ensure_loading() creates a task, flags LoadState.loading and clears
       the previous error
    2. the loader callback runs; data it returns is written to the store
    3. on settlement LoadState is updated (ready or error + error_at)
    4. the task stays registered for ``grace_seconds`` so near-simultaneous
       repeat triggers join it rather than restarting the fetch
    5. the entry is removed

In-flight loads are never cancelled. A load keeps running and updates
state even when nobody is waiting for it any more.
A forced load for a different locale (a locale switch) does not join the
running one: it waits for it to settle and then fetches in the new locale,
so the last write always matches the current locale.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from lazydata.observability import AccessorMetrics, PlainLogger, StructuredLogger

if TYPE_CHECKING:
    from lazydata.store import CollectionStoreAdapter

logger = logging.getLogger(__name__)

LoadCollection = Callable[[str, str], Awaitable[Any]]


class SingleFlightLoader:
    """
    Per-collection single-flight wrapper around the host's loader callback.

    Example:
        loader = SingleFlightLoader(load_collection, adapter, grace_seconds=1.0)

        t1 = loader.ensure_loading("items", "en")
        t2 = loader.ensure_loading("items", "en")
        assert t1 is t2
    """

    def __init__(
        self,
        load_collection: LoadCollection,
        store: CollectionStoreAdapter,
        *,
        grace_seconds: float = 1.0,
        metrics: AccessorMetrics | None = None,
        events: StructuredLogger | None = None,
    ):
        self._load_collection = load_collection
        self._store = store
        self._grace_seconds = grace_seconds
        self._metrics = metrics if metrics is not None else AccessorMetrics()
        self._events = events if events is not None else PlainLogger(__name__)
        self._pending: dict[str, asyncio.Task[bool]] = {}
        self._release_handles: dict[str, asyncio.TimerHandle] = {}
        self._locales: dict[str, str] = {}

    def pending(self, name: str) -> asyncio.Task[bool] | None:
        """The registered task for a collection, settled or not."""
        return self._pending.get(name)

    def is_pending(self, name: str) -> bool:
        return name in self._pending

    def in_flight(self) -> list[asyncio.Task[bool]]:
        """Tasks that have not settled yet."""
        return [task for task in self._pending.values() if not task.done()]

    def ensure_loading(
        self,
        name: str,
        locale: str,
        *,
        force: bool = False,
    ) -> asyncio.Task[bool] | None:
        """
        Start a load for a collection, or join the one already registered.

        Args:
            name: Collection name
            locale: Locale passed to the loader callback
            force: Start a new load unless one for the same locale is still
                running. A forced load for another locale waits for the
                running one to settle, then fetches again.

        Returns:
            The load task, or None when there is no running event loop
        """
        existing = self._pending.get(name)
        if existing is not None:
            running = not existing.done()
            if not force or (running and self._locales.get(name) == locale):
                self._metrics.loads_joined += 1
                return existing

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"[single_flight] No running event loop, cannot start load: {name}")
            return None

        previous = existing if existing is not None and not existing.done() else None
        if existing is not None:
            self._release(name, existing)

        self._store.mark_loading(name)
        self._metrics.loads_started += 1

        task = loop.create_task(self._run(name, locale, previous), name=f"lazydata.load:{name}")
        self._pending[name] = task
        self._locales[name] = locale
        task.add_done_callback(functools.partial(self._on_settled, name))
        return task

    async def _run(
        self, name: str, locale: str, previous: asyncio.Task[bool] | None = None
    ) -> bool:
        """Run the loader callback. Failures are recorded, never raised."""
        events = self._events.with_context(collection=name, locale=locale)
        if previous is not None:
            # The superseded load writes its result first
            await asyncio.wait({previous})
            self._store.set_load_state(name, loading=True)

        start = time.perf_counter()
        events.info("Load started")

        try:
            result = await self._load_collection(name, locale)
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            message = str(e) or type(e).__name__
            self._store.mark_failed(name, message)
            self._metrics.record_load(False, duration_ms)
            events.warning(
                "Load failed",
                error=message,
                exception_type=type(e).__name__,
                duration_ms=round(duration_ms, 2),
            )
            return False

        if result is not None:
            self._store.write(name, result)
        else:
            # The callback wrote into the shared store itself
            self._store.invalidate(name)

        duration_ms = (time.perf_counter() - start) * 1000
        state = self._store.mark_settled(name)
        self._metrics.record_load(True, duration_ms)
        events.info("Load settled", ready=state.ready, duration_ms=round(duration_ms, 2))
        return True

    def _on_settled(self, name: str, task: asyncio.Task[bool]) -> None:
        if self._pending.get(name) is not task:
            return
        if self._grace_seconds <= 0:
            self._release(name, task)
            return
        loop = task.get_loop()
        self._release_handles[name] = loop.call_later(
            self._grace_seconds, self._release, name, task
        )

    def _release(self, name: str, task: asyncio.Task[bool]) -> None:
        if self._pending.get(name) is task:
            del self._pending[name]
            self._locales.pop(name, None)
        handle = self._release_handles.pop(name, None)
        if handle is not None:
            handle.cancel()

    async def drain(self) -> None:
        """Wait for every in-flight load to settle."""
        tasks = self.in_flight()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def close(self) -> None:
        """Cancel grace timers and forget registered loads (running loads continue)."""
        for handle in self._release_handles.values():
            handle.cancel()
        self._release_handles.clear()
        self._pending.clear()
        self._locales.clear()
