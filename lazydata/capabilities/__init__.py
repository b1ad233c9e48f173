"""
Capabilities attached to array views.

Local (always available):
- search: case-insensitive substring match
- query: ordered filter/order/slice operations
- route: path-key lookup

Delegated to host handlers (by collection classification):
- pagination: first / next / prev / page
- mutation: create / update / delete / duplicate
"""

from .dispatch import CapabilityDispatcher
from .mutations import MutationOperation, apply_mutation_result, entry_payload
from .pagination import Page, PaginationDirection
from .query import QUERY_METHODS, apply_query, field_value, search_items
from .registry import (
    LOCAL_CAPABILITIES,
    CapabilityRegistry,
    CapabilitySet,
    ClassifyCollection,
    MutationHandler,
    PaginationHandler,
)
from .routing import find_item_by_path, locate_item, path_segments

__all__ = [
    "LOCAL_CAPABILITIES",
    "QUERY_METHODS",
    "CapabilityDispatcher",
    "CapabilityRegistry",
    "CapabilitySet",
    "ClassifyCollection",
    "MutationHandler",
    "MutationOperation",
    "Page",
    "PaginationDirection",
    "PaginationHandler",
    "apply_mutation_result",
    "apply_query",
    "entry_payload",
    "field_value",
    "find_item_by_path",
    "locate_item",
    "path_segments",
    "search_items",
]
