"""
Collection Store Adapter.

Thin passthrough to the host's shared store plus the per-collection load
state records.

Ordering rule:
    Resolve from raw, then subscribe. ``get_raw`` never registers a
    dependency; ``subscribe`` does, and on a tracking store it can re-enter
    the resolution path synchronously. Callers read and cache everything
    they need before calling ``subscribe``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Hashable
from typing import Any

from lazydata.errors import ErrorKind

from .memory import SharedStore, TrackingStore
from .state import LoadState

logger = logging.getLogger(__name__)

InvalidationListener = Callable[[str], None]


class CollectionStoreAdapter:
    """
    Read/write access to collections and their load state.

    Example:
        adapter = CollectionStoreAdapter(InMemorySharedStore())
        adapter.write("items", [{"id": 1}])
        adapter.get_raw("items")               # [{"id": 1}]
        adapter.get_load_state("items").ready  # True
    """

    def __init__(
        self,
        store: SharedStore,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._clock = clock
        self._states: dict[str, LoadState] = {}
        self._listeners: list[InvalidationListener] = []
        self._mutating: dict[str, set[Hashable]] = {}

    @property
    def store(self) -> SharedStore:
        return self._store

    def now(self) -> float:
        return self._clock()

    # =========================================================================
    # Data
    # =========================================================================

    def get_raw(self, name: str) -> Any:
        """Raw, unwrapped data for a collection, or None when absent."""
        return self._store.get_shared(name)

    def write(self, name: str, raw: Any, ready: bool | None = None) -> None:
        """
        Replace a collection's raw data and invalidate views built on it.

        Args:
            name: Collection name
            raw: New raw reference (None removes the collection)
            ready: Override for LoadState.ready (defaults to "raw is present")
        """
        self._store.set_shared(name, raw)
        state = self.get_load_state(name)
        state.ready = raw is not None if ready is None else ready
        logger.debug(f"[store] Wrote {name} (present={raw is not None})")
        self._notify(name)

    def invalidate(self, name: str) -> None:
        """Tell listeners that views built on a collection are stale."""
        self._notify(name)

    def subscribe(self, name: str) -> None:
        """Register a reactive dependency on the store. May re-enter readers."""
        if isinstance(self._store, TrackingStore):
            self._store.track(name)

    def add_invalidation_listener(self, listener: InvalidationListener) -> None:
        self._listeners.append(listener)

    def remove_invalidation_listener(self, listener: InvalidationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, name: str) -> None:
        for listener in list(self._listeners):
            listener(name)

    def collections_with_data(self) -> list[str]:
        """Names of known collections whose raw data is present."""
        return [name for name in self._states if self.get_raw(name) is not None]

    # =========================================================================
    # Load state
    # =========================================================================

    def get_load_state(self, name: str) -> LoadState:
        """Load state for a collection, created on first access."""
        state = self._states.get(name)
        if state is None:
            state = LoadState(ready=self.get_raw(name) is not None)
            self._states[name] = state
        return state

    def set_load_state(self, name: str, **patch: Any) -> LoadState:
        """Apply a partial update to a collection's load state."""
        state = self.get_load_state(name)
        for key, value in patch.items():
            if not hasattr(state, key):
                raise AttributeError(f"LoadState has no field '{key}'")
            setattr(state, key, value)
        return state

    def mark_loading(self, name: str) -> LoadState:
        """Start a new attempt: clear the previous error and flag loading."""
        state = self.get_load_state(name)
        return self.set_load_state(
            name,
            loading=True,
            error=None,
            error_kind=None,
            error_at=None,
            attempts=state.attempts + 1,
        )

    def mark_settled(self, name: str) -> LoadState:
        return self.set_load_state(
            name,
            loading=False,
            ready=self.get_raw(name) is not None,
        )

    def mark_failed(self, name: str, message: str) -> LoadState:
        return self.set_load_state(
            name,
            loading=False,
            error=message,
            error_kind=ErrorKind.LOAD_FAILURE,
            error_at=self._clock(),
            ready=self.get_raw(name) is not None,
        )

    def has_recent_error(self, name: str, cooldown_seconds: float) -> bool:
        state = self._states.get(name)
        if state is None:
            return False
        return state.has_recent_error(cooldown_seconds, self._clock())

    # =========================================================================
    # In-flight mutations
    # =========================================================================

    def begin_mutation(self, name: str, entry_id: Hashable) -> None:
        self._mutating.setdefault(name, set()).add(entry_id)

    def end_mutation(self, name: str, entry_id: Hashable) -> None:
        entries = self._mutating.get(name)
        if entries is not None:
            entries.discard(entry_id)
            if not entries:
                del self._mutating[name]

    def is_mutating(self, name: str, entry_id: Hashable) -> bool:
        return entry_id in self._mutating.get(name, ())

    def clear(self) -> None:
        """Drop load states, listeners and mutation tracking (teardown)."""
        self._states.clear()
        self._listeners.clear()
        self._mutating.clear()
