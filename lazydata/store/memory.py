"""
Shared store protocols and an in-memory implementation.

The shared store is owned by the host. The accessor layer only needs a
get/set primitive; stores that track reads (the way a reactive framework
registers dependencies) additionally expose ``track(name)``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

StoreObserver = Callable[[str], None]


class SharedStore(Protocol):
    """Protocol for the host's shared key -> value store."""

    def get_shared(self, name: str) -> Any:
        """Return the raw value for a name, or None when absent."""
        ...

    def set_shared(self, name: str, raw: Any) -> None:
        """Store a raw value under a name."""
        ...


@runtime_checkable
class TrackingStore(Protocol):
    """A shared store that registers reactive dependencies on read."""

    def track(self, name: str) -> None:
        """Register a dependency on a name. May synchronously re-enter readers."""
        ...


class InMemorySharedStore:
    """
    Dict-backed shared store with a version counter and read observers.

    ``get_shared`` is a plain (non-tracking) read. ``track`` reads the
    version counter and notifies observers, which is where a host framework
    would re-run dependent computations. Observers may call back into the
    accessor layer before ``track`` returns.

    Usage:
        store = InMemorySharedStore()
        store.set_shared("items", [{"id": 1}])
        store.add_observer(lambda name: print("read", name))
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._values: dict[str, Any] = dict(initial or {})
        self._version = 0
        self._observers: list[StoreObserver] = []

    @property
    def version(self) -> int:
        return self._version

    def get_shared(self, name: str) -> Any:
        return self._values.get(name)

    def set_shared(self, name: str, raw: Any) -> None:
        if raw is None:
            self._values.pop(name, None)
        else:
            self._values[name] = raw
        self._version += 1

    def track(self, name: str) -> None:
        for observer in list(self._observers):
            observer(name)

    def add_observer(self, observer: StoreObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: StoreObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def names(self) -> list[str]:
        return list(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)
