"""
Accessor Context.

Owns every cache and registry of one accessor session: the identity
cache, pending loads, load states, placeholders, capability registry and
metrics. Nothing is module-global, so two contexts never share state.

Lifecycle:
    1. Construct once per application session
    2. Read through ``ctx.get(name, path)`` or the ``ctx.accessor`` facade
    3. ``await ctx.aclose()`` (or ``async with``) on teardown: in-flight
       loads are awaited, never cancelled, then caches are cleared

Usage:
    async with AccessorContext(
        load_collection=FileCollectionLoader("data/"),
        classify_collection=classify,
        mutation_handlers={"table": mutate},
        pagination_handler=paginate,
    ) as ctx:
        products = ctx.get("products")          # placeholder, load started
        await ctx.load("products")
        products = ctx.get("products")          # ArrayView
        cheap = products.query([["lessThan", "price", 10]])
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from lazydata.capabilities import (
    CapabilityDispatcher,
    CapabilityRegistry,
    ClassifyCollection,
    MutationHandler,
    PaginationHandler,
)
from lazydata.config import AccessorSettings, get_settings
from lazydata.errors import LoadFailure
from lazydata.observability import AccessorMetrics, create_event_logger
from lazydata.store import CollectionStoreAdapter, InMemorySharedStore, LoadState, SharedStore
from lazydata.views import IdentityCache, Placeholder, PlaceholderFactory, ViewBuilder

from .guard import ReentrancyGuard
from .resolver import CollectionResolver
from .single_flight import LoadCollection, SingleFlightLoader

logger = logging.getLogger(__name__)


class AccessorContext:
    """
    One accessor session: explicit ``get`` plus load/reload/locale control.

    Args:
        load_collection: Loader callback ``(name, locale) -> data | None``
        store: Host shared store (an InMemorySharedStore by default)
        settings: Settings (``get_settings()`` by default)
        classify_collection: Host classification callback
        mutation_handlers: Mutation handler per collection kind
        pagination_handler: Cursor-based page fetcher
        locale: Initial locale (``settings.default_locale`` by default)
        clock: Wall clock used for error cooldowns
    """

    def __init__(
        self,
        *,
        load_collection: LoadCollection,
        store: SharedStore | None = None,
        settings: AccessorSettings | None = None,
        classify_collection: ClassifyCollection | None = None,
        mutation_handlers: dict[str, MutationHandler] | None = None,
        pagination_handler: PaginationHandler | None = None,
        locale: str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._settings = settings or get_settings()
        self._locale = locale or self._settings.default_locale
        self._metrics = AccessorMetrics()
        self._closed = False

        self._store = CollectionStoreAdapter(
            store if store is not None else InMemorySharedStore(),
            clock=clock,
        )
        self._cache = IdentityCache()
        self._store.add_invalidation_listener(self._on_invalidated)

        self._registry = CapabilityRegistry(
            classify_collection,
            mutation_handlers=mutation_handlers,
            pagination_handler=pagination_handler,
        )
        self._dispatcher = CapabilityDispatcher(
            self._store, self._registry, self._settings, self._metrics
        )
        self._loader = SingleFlightLoader(
            load_collection,
            self._store,
            grace_seconds=self._settings.pending_grace_seconds,
            metrics=self._metrics,
            events=create_event_logger(self._settings.structured_logging),
        )
        self._guard = ReentrancyGuard(self._settings.max_depth)
        self._builder = ViewBuilder(self._metrics)
        self._placeholders = PlaceholderFactory(
            self._store.get_load_state,
            self._builder.empty_view,
            on_served=self._count_placeholder,
        )
        self._resolver = CollectionResolver(
            store=self._store,
            loader=self._loader,
            cache=self._cache,
            builder=self._builder,
            placeholders=self._placeholders,
            guard=self._guard,
            dispatcher=self._dispatcher,
            settings=self._settings,
            locale=lambda: self._locale,
            metrics=self._metrics,
        )
        self._builder.bind(self._resolver)
        self._accessor: Any = None

        logger.debug(
            f"[context] Created (locale={self._locale}, max_depth={self._settings.max_depth})"
        )

    # =========================================================================
    # Components
    # =========================================================================

    @property
    def settings(self) -> AccessorSettings:
        return self._settings

    @property
    def metrics(self) -> AccessorMetrics:
        return self._metrics

    @property
    def store(self) -> CollectionStoreAdapter:
        return self._store

    @property
    def cache(self) -> IdentityCache:
        return self._cache

    @property
    def loader(self) -> SingleFlightLoader:
        return self._loader

    @property
    def guard(self) -> ReentrancyGuard:
        return self._guard

    @property
    def registry(self) -> CapabilityRegistry:
        return self._registry

    @property
    def resolver(self) -> CollectionResolver:
        return self._resolver

    @property
    def placeholders(self) -> PlaceholderFactory:
        return self._placeholders

    @property
    def fallback(self) -> Placeholder:
        return self._placeholders.fallback

    @property
    def locale(self) -> str:
        return self._locale

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def accessor(self) -> Any:
        """Attribute-style facade (``ctx.accessor.items``)."""
        if self._accessor is None:
            from lazydata.accessor import Accessor

            self._accessor = Accessor(self)
        return self._accessor

    # =========================================================================
    # Read path
    # =========================================================================

    def get(self, name: str, path: tuple[Any, ...] | list[Any] = ()) -> Any:
        """Resolve a collection or nested path. Never raises."""
        return self._resolver.get(name, path)

    def load_state(self, name: str) -> LoadState:
        return self._store.get_load_state(name)

    # =========================================================================
    # Loading
    # =========================================================================

    async def load(self, name: str, *, raise_on_error: bool = False) -> Any:
        """
        Ensure a collection is loaded, waiting for the load to settle.

        Present data is returned as is, a running load is joined, and a
        failure still inside its cooldown window is not retried (use
        ``reload`` for that).

        Args:
            name: Collection name
            raise_on_error: Raise LoadFailure when the load failed

        Returns:
            The resolved view (or placeholder when the load failed)
        """
        task = self._loader.pending(name)
        if task is None:
            if self._store.get_raw(name) is not None:
                return self.get(name)
            if not self._store.has_recent_error(name, self._settings.error_cooldown_seconds):
                task = self._loader.ensure_loading(name, self._locale)
        return await self._settle(name, task, raise_on_error)

    async def reload(self, name: str, *, raise_on_error: bool = False) -> Any:
        """Start a fresh load (ignoring any error cooldown) and wait for it."""
        task = self._loader.ensure_loading(name, self._locale, force=True)
        return await self._settle(name, task, raise_on_error)

    async def _settle(
        self, name: str, task: asyncio.Task[bool] | None, raise_on_error: bool
    ) -> Any:
        if task is not None:
            await asyncio.shield(task)
        state = self._store.get_load_state(name)
        if raise_on_error and state.error is not None:
            raise LoadFailure(state.error, name)
        return self.get(name)

    async def set_locale(self, locale: str) -> None:
        """Switch locale and reload every collection that already has data."""
        if locale == self._locale:
            return
        previous, self._locale = self._locale, locale
        names = self._store.collections_with_data()
        logger.info(f"[context] Locale {previous} -> {locale}, reloading {len(names)} collections")
        tasks = [self._loader.ensure_loading(name, locale, force=True) for name in names]
        pending = [task for task in tasks if task is not None]
        if pending:
            await asyncio.gather(*(asyncio.shield(task) for task in pending))

    def write(self, name: str, raw: Any) -> None:
        """Replace a collection's raw data (views rebuild on next access)."""
        self._store.write(name, raw)

    def invalidate(self, name: str | None = None) -> int:
        """Drop cached views for one collection or all of them."""
        return self._cache.invalidate(name)

    # =========================================================================
    # Teardown
    # =========================================================================

    def close(self) -> None:
        """Cancel grace timers and clear every cache. Running loads are left to finish."""
        if self._closed:
            return
        self._closed = True
        self._loader.close()
        self._cache.invalidate()
        self._placeholders.clear()
        self._registry.invalidate()
        self._store.clear()
        logger.debug("[context] Closed")

    async def aclose(self) -> None:
        """Wait for in-flight loads, then close."""
        await self._loader.drain()
        self.close()

    async def __aenter__(self) -> AccessorContext:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.aclose()

    # =========================================================================
    # Internals
    # =========================================================================

    def _on_invalidated(self, name: str) -> None:
        self._cache.invalidate(name)

    def _count_placeholder(self) -> None:
        self._metrics.placeholders_served += 1
