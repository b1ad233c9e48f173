"""
Runtime: resolution, loading and the session context.

- AccessorContext: owns caches, loaders and registries for one session
- CollectionResolver: get(name, path) with guard, cache and placeholders
- SingleFlightLoader: at most one fetch per collection
- ReentrancyGuard: bounded depth for synchronous re-entry
- Loaders: Memory / File / Http loader callbacks
"""

from .context import AccessorContext
from .guard import DEFAULT_MAX_DEPTH, ReentrancyGuard
from .loaders import (
    FileCollectionLoader,
    HttpCollectionLoader,
    MemoryCollectionLoader,
    deep_merge_with_fallback,
    parse_csv,
)
from .resolver import MISSING, CollectionResolver, walk
from .single_flight import LoadCollection, SingleFlightLoader

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "MISSING",
    "AccessorContext",
    "CollectionResolver",
    "FileCollectionLoader",
    "HttpCollectionLoader",
    "LoadCollection",
    "MemoryCollectionLoader",
    "ReentrancyGuard",
    "SingleFlightLoader",
    "deep_merge_with_fallback",
    "parse_csv",
    "walk",
]
