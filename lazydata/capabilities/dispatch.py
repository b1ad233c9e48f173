"""
Capability Dispatcher.

Runs the write-path capabilities (mutation and pagination) for array
views. Unlike the read path, every failure here propagates to the caller:
missing handlers, argument errors and handler exceptions alike.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping
from typing import TYPE_CHECKING, Any

from lazydata.config.schemas import AccessorSettings
from lazydata.observability import AccessorMetrics
from lazydata.shape import is_array_like, to_list

from .mutations import MutationOperation, apply_mutation_result
from .pagination import Page, PaginationDirection
from .registry import CapabilityRegistry

if TYPE_CHECKING:
    from lazydata.store import CollectionStoreAdapter

logger = logging.getLogger(__name__)


class CapabilityDispatcher:
    """
    Invokes host mutation/pagination handlers on behalf of views.

    Example:
        dispatcher = CapabilityDispatcher(adapter, registry, settings)

        created = await dispatcher.mutate(
            "tasks", MutationOperation.CREATE, {"title": "Write docs"}
        )
        page = await dispatcher.paginate("tasks", PaginationDirection.FIRST)
    """

    def __init__(
        self,
        store: CollectionStoreAdapter,
        registry: CapabilityRegistry,
        settings: AccessorSettings,
        metrics: AccessorMetrics | None = None,
    ):
        self._store = store
        self._registry = registry
        self._settings = settings
        self._metrics = metrics if metrics is not None else AccessorMetrics()

    @property
    def registry(self) -> CapabilityRegistry:
        return self._registry

    # =========================================================================
    # Mutations
    # =========================================================================

    async def mutate(
        self,
        name: str,
        operation: MutationOperation,
        payload: Any,
        *,
        path: tuple[Any, ...] | None = (),
    ) -> Any:
        """
        Run a mutation through the host handler.

        Args:
            name: Collection name
            operation: Mutation operation
            payload: Entry data (create) or {"id", "data"} (update/delete/duplicate)
            path: Path of the calling view; the result is applied to the
                stored collection only for root-level views

        Returns:
            Whatever the handler returned

        Raises:
            CapabilityUnavailable: Collection is not mutable or has no handler
        """
        handler = self._registry.resolve(name).require_mutation(operation, name)

        entry_id = _payload_id(payload)
        if entry_id is not None:
            self._store.begin_mutation(name, entry_id)
        self._metrics.mutations += 1

        try:
            result = await handler(operation, name, payload)
        finally:
            if entry_id is not None:
                self._store.end_mutation(name, entry_id)

        logger.info(f"[capabilities] {operation.value} on {name} succeeded")

        if self._settings.apply_mutations_locally and path == ():
            self._apply_locally(name, operation, payload, result)
        return result

    def _apply_locally(
        self, name: str, operation: MutationOperation, payload: Any, result: Any
    ) -> None:
        raw = self._store.get_raw(name)
        if not is_array_like(raw):
            return
        updated = apply_mutation_result(
            to_list(raw),
            operation,
            payload,
            result,
            id_field=self._settings.id_field,
        )
        if updated is not None:
            self._store.write(name, updated)

    # =========================================================================
    # Pagination
    # =========================================================================

    async def paginate(
        self,
        name: str,
        direction: PaginationDirection,
        cursor: Any = None,
        limit: int | None = None,
    ) -> Page:
        """
        Fetch a page through the host handler.

        Args:
            name: Collection name
            direction: first/next/prev/page
            cursor: Cursor for next/prev, page number for page
            limit: Page size (defaults to settings.default_page_limit)

        Returns:
            Normalized Page (items are raw entries)

        Raises:
            UnsupportedOperation: Collection is not externally paginated
            CapabilityUnavailable: No pagination handler registered
            ValueError: Missing cursor or invalid page number
        """
        handler = self._registry.resolve(name).require_pagination(direction, name)

        if direction in (PaginationDirection.NEXT, PaginationDirection.PREV) and not cursor:
            raise ValueError(f"{direction.value} requires a cursor")
        if direction is PaginationDirection.PAGE:
            if isinstance(cursor, bool) or not isinstance(cursor, int) or cursor < 1:
                raise ValueError(f"page number must be an integer >= 1, got {cursor!r}")
        if direction is PaginationDirection.FIRST:
            cursor = None

        limit = limit if limit is not None else self._settings.default_page_limit
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        result = await handler(direction, name, cursor, limit)
        page = Page.from_result(result, limit)
        logger.debug(
            f"[capabilities] {direction.value} page of {name}: "
            f"{len(page.items)} items, has_more={page.has_more}"
        )
        return page


def _payload_id(payload: Any) -> Hashable | None:
    if isinstance(payload, Mapping):
        entry_id = payload.get("id")
        if isinstance(entry_id, Hashable):
            return entry_id
    return None
