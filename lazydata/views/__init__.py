"""
Views over collection data.

- ArrayView: capability-bearing sequence view
- ObjectView: recursive mapping view
- Placeholder: chain-safe stand-in for unresolved data
- IdentityCache: (name, path) memoization validated by raw identity
"""

from .array import ArrayView
from .base import BaseView, unwrap
from .builder import ViewBuilder
from .cache import IdentityCache
from .object import ObjectView
from .placeholder import Placeholder, PlaceholderFactory, is_placeholder

__all__ = [
    "ArrayView",
    "BaseView",
    "IdentityCache",
    "ObjectView",
    "Placeholder",
    "PlaceholderFactory",
    "ViewBuilder",
    "is_placeholder",
    "unwrap",
]
