"""
lazydata - lazy, identity-stable access to asynchronously loaded collections.

Read any collection at any time, even before it has been fetched:

    ctx = AccessorContext(load_collection=MemoryCollectionLoader({...}))

    items = ctx.get("items")     # Placeholder while loading; never raises
    items.ready                  # False
    await ctx.load("items")
    items = ctx.get("items")     # ArrayView, identical on every read
    items.query([["equal", "id", 1]])
"""

from .accessor import Accessor
from .capabilities import (
    CapabilityRegistry,
    CapabilitySet,
    MutationOperation,
    Page,
    PaginationDirection,
    apply_query,
    search_items,
)
from .config import AccessorSettings, CollectionClassification, get_settings, reset_settings
from .errors import (
    CapabilityUnavailable,
    ErrorKind,
    LazyDataError,
    LoadFailure,
    UnsupportedOperation,
)
from .observability import AccessorMetrics, JSONLogger
from .runtime import (
    AccessorContext,
    CollectionResolver,
    FileCollectionLoader,
    HttpCollectionLoader,
    MemoryCollectionLoader,
    ReentrancyGuard,
    SingleFlightLoader,
)
from .shape import Shape, classify
from .store import CollectionStoreAdapter, InMemorySharedStore, LoadState
from .views import ArrayView, IdentityCache, ObjectView, Placeholder, is_placeholder

__version__ = "0.1.0"

__all__ = [
    "Accessor",
    "AccessorContext",
    "AccessorMetrics",
    "AccessorSettings",
    "ArrayView",
    "CapabilityRegistry",
    "CapabilitySet",
    "CapabilityUnavailable",
    "CollectionClassification",
    "CollectionResolver",
    "CollectionStoreAdapter",
    "ErrorKind",
    "FileCollectionLoader",
    "HttpCollectionLoader",
    "IdentityCache",
    "InMemorySharedStore",
    "JSONLogger",
    "LazyDataError",
    "LoadFailure",
    "LoadState",
    "MemoryCollectionLoader",
    "MutationOperation",
    "ObjectView",
    "Page",
    "PaginationDirection",
    "Placeholder",
    "ReentrancyGuard",
    "Shape",
    "SingleFlightLoader",
    "UnsupportedOperation",
    "apply_query",
    "classify",
    "get_settings",
    "is_placeholder",
    "reset_settings",
    "search_items",
    "__version__",
]
