"""
Array View.

Read-only sequence wrapper over array-shaped collection data, carrying the
capability set of its collection.

Store-backed views (``path`` is a tuple) resolve every element through the
resolver, so nested objects come back as cached views and repeated reads
of ``view[0]`` return the identical object. Detached views (search, query,
slice and page results) keep the raw entries they were derived from and,
where an entry still sits at its original place in the store, resolve it
the same way. Other entries (page items, entries replaced since) come back
as detached views memoized per index, so chaining never hits a raw dict.

Usage:
    tasks = ctx.get("tasks")

    tasks[0].title
    open_tasks = tasks.query([["equal", "status", "open"], ["orderAsc", "due"]])
    urgent = open_tasks.search("urgent", fields=["title"])

    created = await tasks.create({"title": "Write docs"})
    page = await tasks.first(limit=20)
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from lazydata.capabilities import (
    CapabilitySet,
    MutationOperation,
    Page,
    PaginationDirection,
    apply_query,
    entry_payload,
    find_item_by_path,
    locate_item,
    path_segments,
    search_items,
)
from lazydata.shape import to_list

from .base import BaseView, Path, unwrap

if TYPE_CHECKING:
    from lazydata.runtime.resolver import CollectionResolver

logger = logging.getLogger(__name__)


class ArrayView(BaseView, Sequence):
    """Capability-bearing sequence view."""

    __slots__ = ("_items", "_origins")

    def __init__(
        self,
        raw: Any,
        name: str,
        path: Path | None,
        resolver: CollectionResolver,
        origins: Sequence[Path | None] | None = None,
    ):
        super().__init__(raw, name, path, resolver)
        self._items: list[Any] = to_list(raw)
        self._origins: tuple[Path | None, ...] | None = (
            tuple(origins) if origins is not None else None
        )

    @property
    def collection(self) -> str:
        return self._name

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def detached(self) -> bool:
        return self._path is None

    @property
    def capabilities(self) -> CapabilitySet:
        """Capability set of the collection, as currently registered."""
        return self._resolver.capabilities(self._name)

    # =========================================================================
    # Sequence protocol
    # =========================================================================

    def _origin(self, index: int) -> Path | None:
        if self._path is not None:
            return (*self._path, index)
        if self._origins is not None:
            return self._origins[index]
        return None

    def _element(self, index: int) -> Any:
        item = self._items[index]
        origin = self._origin(index)
        if origin is not None and (
            self._path is not None or self._resolver.raw_at(self._name, origin) is item
        ):
            return self._resolver.get(self._name, origin)
        # Page entries, or entries replaced in the store since this result was derived
        return self._wrap_detached(index, item)

    def __getitem__(self, index: Any) -> Any:
        if isinstance(index, slice):
            positions = range(len(self._items))[index]
            return self._derive([self._items[i] for i in positions], list(positions))
        try:
            position = range(len(self._items))[index]
        except (IndexError, TypeError):
            return self._resolver.fallback
        return self._element(position)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        for index in range(len(self._items)):
            yield self._element(index)

    def __contains__(self, value: object) -> bool:
        target = unwrap(value)
        return any(item is target or item == target for item in self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ArrayView):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return self._items == [unwrap(item) for item in other]
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        where = "detached" if self._path is None else "/".join(str(k) for k in self._path) or "root"
        return f"ArrayView({self._name!r}, {where}, {len(self._items)} items)"

    # =========================================================================
    # Derived views
    # =========================================================================

    def _derive(self, items: list[Any], positions: Sequence[int] | None = None) -> ArrayView:
        """Detached view over a subset of this view's entries."""
        if positions is None:
            index_of = {id(item): i for i, item in enumerate(self._items)}
            positions = [index_of.get(id(item), -1) for item in items]
        origins = [self._origin(i) if i >= 0 else None for i in positions]
        return ArrayView(
            items,
            self._name,
            None,
            self._resolver,
            origins=origins,
        )

    def _pairs(self) -> Iterator[tuple[int, Any]]:
        for index in range(len(self._items)):
            yield index, self._element(index)

    def filter(self, predicate: Callable[[Any], Any]) -> ArrayView:
        positions = [i for i, element in self._pairs() if predicate(element)]
        return self._derive([self._items[i] for i in positions], positions)

    def map(self, fn: Callable[[Any], Any]) -> list[Any]:
        return [fn(element) for element in self]

    def reduce(self, fn: Callable[[Any, Any], Any], initial: Any = None) -> Any:
        accumulator = initial
        for element in self:
            accumulator = fn(accumulator, element)
        return accumulator

    def slice(self, start: int | None = None, end: int | None = None) -> ArrayView:
        return self[start:end]

    def find(self, predicate: Callable[[Any], Any]) -> Any:
        for _, element in self._pairs():
            if predicate(element):
                return element
        return None

    def find_index(self, predicate: Callable[[Any], Any]) -> int:
        for index, element in self._pairs():
            if predicate(element):
                return index
        return -1

    def index_of(self, value: Any) -> int:
        target = unwrap(value)
        for index, item in enumerate(self._items):
            if item is target or item == target:
                return index
        return -1

    def some(self, predicate: Callable[[Any], Any]) -> bool:
        return any(predicate(element) for element in self)

    def every(self, predicate: Callable[[Any], Any]) -> bool:
        return all(predicate(element) for element in self)

    def includes(self, value: Any) -> bool:
        return value in self

    def join(self, separator: str = ",") -> str:
        return separator.join("" if item is None else str(item) for item in self._items)

    def sorted(self, key: Callable[[Any], Any] | None = None, reverse: bool = False) -> ArrayView:
        """New view sorted by ``key`` (applied to resolved elements). Never sorts in place."""
        pairs = list(self._pairs())
        if key is not None:
            pairs.sort(key=lambda pair: key(pair[1]), reverse=reverse)
        else:
            pairs.sort(key=lambda pair: self._items[pair[0]], reverse=reverse)
        positions = [index for index, _ in pairs]
        return self._derive([self._items[i] for i in positions], positions)

    sort = sorted

    def to_list(self) -> list[Any]:
        """Shallow copy of the raw entries."""
        return list(self._items)

    # =========================================================================
    # Local capabilities
    # =========================================================================

    def search(self, term: Any, fields: Sequence[str] = ()) -> ArrayView:
        """Case-insensitive substring search over ``fields`` (or every string field)."""
        return self._derive(search_items(self._items, term, fields))

    def query(self, queries: Sequence[Sequence[Any]], *, rng: random.Random | None = None) -> ArrayView:
        """Apply [method, *args] operations left to right."""
        return self._derive(apply_query(self._items, queries, rng=rng))

    def route(self, path_key: str, path: str | Sequence[str]) -> Any:
        """
        Find the first entry (searching nested data) whose ``path_key`` matches a path segment.

        Returns:
            The resolved entry, or the chain-safe fallback
        """
        item = find_item_by_path(self._items, path_key, path_segments(path))
        if item is None:
            return self._resolver.fallback
        location = locate_item(self._items, item)
        if location:
            index, *rest = location
            origin = self._origin(index)
            if origin is not None and (
                self._path is not None or self._resolver.raw_at(self._name, origin) is self._items[index]
            ):
                return self._resolver.get(self._name, (*origin, *rest))
        return self._wrap_detached(("route", *(location or ())), item)

    # =========================================================================
    # Pagination
    # =========================================================================

    async def _paginate(self, direction: PaginationDirection, cursor: Any, limit: int | None) -> Page:
        page = await self._resolver.dispatcher.paginate(self._name, direction, cursor, limit)
        return Page(
            items=ArrayView(page.items, self._name, None, self._resolver),
            cursor=page.cursor,
            total=page.total,
            has_more=page.has_more,
        )

    async def first(self, limit: int | None = None) -> Page:
        return await self._paginate(PaginationDirection.FIRST, None, limit)

    async def next_page(self, cursor: Any, limit: int | None = None) -> Page:
        return await self._paginate(PaginationDirection.NEXT, cursor, limit)

    async def prev_page(self, cursor: Any, limit: int | None = None) -> Page:
        return await self._paginate(PaginationDirection.PREV, cursor, limit)

    async def page(self, number: int, limit: int | None = None) -> Page:
        return await self._paginate(PaginationDirection.PAGE, number, limit)

    # =========================================================================
    # Mutations
    # =========================================================================

    async def _mutate(self, operation: MutationOperation, payload: Any) -> Any:
        return await self._resolver.dispatcher.mutate(
            self._name, operation, payload, path=self._path
        )

    async def create(self, data: Mapping[str, Any]) -> Any:
        return await self._mutate(MutationOperation.CREATE, dict(data))

    async def update(self, entry_id: Any, data: Mapping[str, Any]) -> Any:
        return await self._mutate(MutationOperation.UPDATE, entry_payload(entry_id, data))

    async def delete(self, entry_id: Any) -> Any:
        return await self._mutate(MutationOperation.DELETE, entry_payload(entry_id))

    async def duplicate(self, entry_id: Any, overrides: Mapping[str, Any] | None = None) -> Any:
        return await self._mutate(MutationOperation.DUPLICATE, entry_payload(entry_id, overrides))

    def is_mutating(self, entry_id: Any) -> bool:
        """Whether a mutation on this entry is in flight."""
        return self._resolver.store.is_mutating(self._name, entry_id)
