"""
Cursor-based pagination types.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PaginationDirection(str, Enum):
    """Direction passed to the host's pagination handler."""

    FIRST = "first"
    NEXT = "next"
    PREV = "prev"
    PAGE = "page"


@dataclass(frozen=True, slots=True)
class Page:
    """
    One page of results from an externally paginated collection.

    Attributes:
        items: Entries on this page (an ArrayView once dispatched)
        cursor: Cursor for the following request (id of the last entry)
        total: Total number of entries known to the backend
        has_more: Whether another page follows
    """

    items: Any = field(default_factory=list)
    cursor: str | None = None
    total: int = 0
    has_more: bool = False

    @classmethod
    def from_result(cls, result: Any, limit: int) -> Page:
        """
        Normalize a handler result.

        Accepts a Page, a mapping with items/cursor/total/has_more
        (``hasMore`` is accepted too), or a bare list of items.
        """
        if isinstance(result, Page):
            return result
        if isinstance(result, Mapping):
            items = list(result.get("items") or [])
            total = int(result.get("total") or 0)
            has_more = result.get("has_more", result.get("hasMore"))
            if has_more is None:
                has_more = len(items) == limit and total > limit
            return cls(
                items=items,
                cursor=result.get("cursor"),
                total=total,
                has_more=bool(has_more),
            )
        items = list(result or [])
        return cls(items=items, cursor=None, total=len(items), has_more=False)
