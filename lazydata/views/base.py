"""
Shared behaviour of views over resolved collection data.

Views expose as few public attributes as possible: on an ObjectView every
other attribute name is a data key.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lazydata.runtime.resolver import CollectionResolver
    from lazydata.store import LoadState

Path = tuple[Any, ...]


class BaseView:
    """
    A wrapper that borrows a raw reference; it never copies or owns data.

    ``_path`` is the key path from the collection root, or None for a
    detached view (search/query/page results that live outside the store).
    Children of detached data are wrapped here and memoized per key.
    """

    __slots__ = ("_raw", "_name", "_path", "_resolver", "_detached")

    def __init__(
        self,
        raw: Any,
        name: str,
        path: Path | None,
        resolver: CollectionResolver,
    ):
        self._raw = raw
        self._name = name
        self._path = path
        self._resolver = resolver
        self._detached: dict[Any, BaseView] | None = None

    @property
    def raw(self) -> Any:
        """The borrowed raw data."""
        return self._raw

    @property
    def loading(self) -> bool:
        return self._load_state().loading

    @property
    def error(self) -> str | None:
        return self._load_state().error

    @property
    def ready(self) -> bool:
        return self._load_state().ready

    def _load_state(self) -> LoadState:
        return self._resolver.load_state(self._name)

    def _child_path(self, key: Any) -> Path | None:
        if self._path is None:
            return None
        return (*self._path, key)

    def _wrap_detached(self, key: Any, value: Any) -> Any:
        """Detached view over a child value with no live store location."""
        if self._detached is None:
            self._detached = {}
        cached = self._detached.get(key)
        if cached is not None and cached.raw is value:
            return cached
        view = self._resolver.detached(self._name, value)
        if isinstance(view, BaseView):
            self._detached[key] = view
        return view


def unwrap(value: Any) -> Any:
    """Raw data behind a view (other values are returned unchanged)."""
    if isinstance(value, BaseView):
        return value.raw
    return value
