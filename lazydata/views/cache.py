"""
Identity Cache.

Memoizes built views keyed by (collection name, nested path). A cached
view is returned only while the raw reference it was built from is the
identical object; a new raw reference (an external mutation or a reload)
makes the entry stale and the view is rebuilt on next access.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

PathKey = tuple[Any, ...]
CacheKey = tuple[str, PathKey]


@dataclass(slots=True)
class CacheEntry:
    """A built view and the raw reference it borrows."""

    raw: Any
    view: Any


class IdentityCache:
    """
    (name, path) -> view cache with raw-identity validation.

    Example:
        cache = IdentityCache()
        cache.store("items", (), raw, view)
        cache.lookup("items", (), raw) is view      # True
        cache.lookup("items", (), [*raw]) is None   # different reference
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    def lookup(self, name: str, path: PathKey, raw: Any) -> Any | None:
        """
        Return the cached view for (name, path) if built from this exact raw object.

        A stale entry (built from a different reference) is evicted.
        """
        key = (name, path)
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        if entry.raw is not raw:
            del self._entries[key]
            self._misses += 1
            logger.debug(f"[identity_cache] Stale entry evicted: {name}{list(path)}")
            return None
        self._hits += 1
        return entry.view

    def store(self, name: str, path: PathKey, raw: Any, view: Any) -> Any:
        """Cache a view and return it."""
        self._entries[(name, path)] = CacheEntry(raw=raw, view=view)
        return view

    def invalidate(self, name: str | None = None) -> int:
        """
        Drop cached views for one collection (every path) or for all collections.

        Returns:
            Number of entries removed
        """
        if name is None:
            count = len(self._entries)
            self._entries.clear()
            return count

        keys = [key for key in self._entries if key[0] == name]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.debug(f"[identity_cache] Invalidated {len(keys)} entries for {name}")
        return len(keys)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
