"""
Store layer: the host's shared store and per-collection load state.
"""

from .adapter import CollectionStoreAdapter
from .memory import InMemorySharedStore, SharedStore, TrackingStore
from .state import LoadState

__all__ = [
    "CollectionStoreAdapter",
    "InMemorySharedStore",
    "LoadState",
    "SharedStore",
    "TrackingStore",
]
