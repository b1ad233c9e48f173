"""
Configuration for lazydata.
"""

from .schemas import LOCAL_COLLECTION, AccessorSettings, CollectionClassification
from .settings import get_settings, reset_settings

__all__ = [
    "LOCAL_COLLECTION",
    "AccessorSettings",
    "CollectionClassification",
    "get_settings",
    "reset_settings",
]
