"""
Collection Resolver.

The single read entry point: ``get(name, path)`` turns a collection name
and a key path into a view, a scalar, or a placeholder.

Flow:
    1. Enter the reentrancy guard (fallback when the ceiling is crossed)
    2. Read the raw root from the store (non-tracking read)
    3. Absent root: start or join a load (unless a recent failure is in its
       cooldown window) and return the memoized placeholder
    4. Walk the path over raw data; missing keys give the fallback
    5. Scalars pass through; arrays and objects come from the identity
       cache, built on a miss
    6. Subscribe to the collection, last

Nothing on this path raises. Unexpected errors are logged and the
chain-safe fallback is returned instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from lazydata.capabilities import CapabilityDispatcher, CapabilitySet
from lazydata.config.schemas import AccessorSettings
from lazydata.errors import ErrorKind
from lazydata.observability import AccessorMetrics
from lazydata.shape import Shape, classify_shape, is_array_like
from lazydata.store import CollectionStoreAdapter, LoadState
from lazydata.views import IdentityCache, Placeholder, PlaceholderFactory, ViewBuilder

from .guard import ReentrancyGuard
from .single_flight import SingleFlightLoader

logger = logging.getLogger(__name__)


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def walk(raw: Any, path: tuple[Any, ...]) -> Any:
    """Follow a key path through raw data; MISSING when any step is absent."""
    current = raw
    for key in path:
        if isinstance(current, Mapping):
            try:
                if key not in current:
                    return MISSING
            except TypeError:
                return MISSING
            current = current[key]
        elif is_array_like(current):
            if isinstance(key, bool) or not isinstance(key, int):
                return MISSING
            if not 0 <= key < len(current):
                return MISSING
            current = current[key]
        else:
            return MISSING
    return current


class CollectionResolver:
    """
    Resolves (name, path) to views with identity-stable caching.

    Example:
        resolver = CollectionResolver(
            store=adapter,
            loader=single_flight,
            cache=IdentityCache(),
            builder=builder,
            placeholders=placeholders,
            guard=ReentrancyGuard(settings.max_depth),
            dispatcher=dispatcher,
            settings=settings,
            locale=lambda: "en",
        )

        items = resolver.get("items")
        items is resolver.get("items")    # True while the raw data is unchanged
    """

    def __init__(
        self,
        *,
        store: CollectionStoreAdapter,
        loader: SingleFlightLoader,
        cache: IdentityCache,
        builder: ViewBuilder,
        placeholders: PlaceholderFactory,
        guard: ReentrancyGuard,
        dispatcher: CapabilityDispatcher,
        settings: AccessorSettings,
        locale: Callable[[], str],
        metrics: AccessorMetrics | None = None,
    ):
        self._store = store
        self._loader = loader
        self._cache = cache
        self._builder = builder
        self._placeholders = placeholders
        self._guard = guard
        self._dispatcher = dispatcher
        self._settings = settings
        self._locale = locale
        self._metrics = metrics if metrics is not None else AccessorMetrics()

    @property
    def store(self) -> CollectionStoreAdapter:
        return self._store

    @property
    def dispatcher(self) -> CapabilityDispatcher:
        return self._dispatcher

    @property
    def guard(self) -> ReentrancyGuard:
        return self._guard

    @property
    def fallback(self) -> Placeholder:
        return self._placeholders.fallback

    def load_state(self, name: str) -> LoadState:
        return self._store.get_load_state(name)

    def raw_at(self, name: str, path: tuple[Any, ...]) -> Any:
        """Raw value at a path without tracking, caching or loading (MISSING when absent)."""
        root = self._store.get_raw(name)
        if root is None:
            return MISSING
        return walk(root, path)

    def capabilities(self, name: str) -> CapabilitySet:
        """Current capability set of a collection."""
        return self._dispatcher.registry.resolve(name)

    def detached(self, name: str, raw: Any) -> Any:
        """View over data that has no live place in the store (search/page results)."""
        return self._builder.build(raw, name, None)

    # =========================================================================
    # Resolution
    # =========================================================================

    def get(self, name: str, path: tuple[Any, ...] | list[Any] = ()) -> Any:
        """
        Resolve a collection (or a nested path within it).

        Args:
            name: Collection name
            path: Keys/indexes from the collection root

        Returns:
            ArrayView / ObjectView for structured data, the raw value for
            scalars, a Placeholder while the collection is unresolved, or
            the fallback when resolution cannot proceed
        """
        path = tuple(path)
        with self._guard.enter() as overflow:
            if overflow:
                self._metrics.guard_trips += 1
                self._metrics.record_error(ErrorKind.RECURSION_OVERFLOW)
                return self._placeholders.fallback
            try:
                return self._resolve(name, path)
            except Exception:
                logger.exception(f"[resolver] Failed to resolve {name}{list(path)}")
                return self._placeholders.fallback

    def _resolve(self, name: str, path: tuple[Any, ...]) -> Any:
        if not isinstance(name, str) or not name:
            return self._placeholders.fallback

        root = self._store.get_raw(name)

        if root is None:
            self._trigger_load(name)
            placeholder = self._placeholders.at(name, path)
            self._store.subscribe(name)
            return placeholder

        raw = walk(root, path)
        if raw is MISSING:
            self._store.subscribe(name)
            return self._placeholders.fallback
        if raw is None:
            self._store.subscribe(name)
            return None

        shape = classify_shape(raw)
        if shape is Shape.SCALAR:
            self._store.subscribe(name)
            return raw
        if shape is Shape.UNKNOWN:
            self._metrics.ambiguous_classifications += 1
            self._metrics.record_error(ErrorKind.CLASSIFICATION_AMBIGUITY)
            logger.debug(
                f"[resolver] Ambiguous {type(raw).__name__} at {name}{list(path)}, passing through"
            )
            self._store.subscribe(name)
            return raw

        view = self._cache.lookup(name, path, raw)
        if view is None:
            self._metrics.cache_misses += 1
            view = self._cache.store(name, path, raw, self._builder.build(raw, name, path, shape))
            if not path:
                self._placeholders.discard(name)
        else:
            self._metrics.cache_hits += 1

        self._store.subscribe(name)
        return view

    def _trigger_load(self, name: str) -> None:
        if not self._loader.is_pending(name) and self._store.has_recent_error(
            name, self._settings.error_cooldown_seconds
        ):
            self._metrics.loads_suppressed += 1
            logger.debug(f"[resolver] Load of {name} suppressed (recent failure)")
            return
        self._loader.ensure_loading(name, self._locale())
