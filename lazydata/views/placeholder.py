"""
Loading Placeholder Factory.

A Placeholder stands in for a collection that has not been resolved yet.
Every read on it succeeds:

    placeholder.a.b.c       -> child placeholders (cached, chain-stable)
    placeholder[0].title    -> child placeholders
    placeholder.filter(fn)  -> empty array view
    placeholder.join(", ")  -> ""
    placeholder.ready       -> live LoadState value
    list(placeholder)       -> []
    bool(placeholder)       -> False

Attribute reads always produce a child placeholder, so a data field that
happens to share a method name (``items``, ``map``, ``filter``) still
chains. Calling a child named after a sequence method returns that
method's benign default; calling any other placeholder returns itself.

Placeholders are memoized per collection name, so the top-level
placeholder is identity-stable across repeated accesses just like a
resolved view. Once real data exists the resolver discards it.

Dunder and underscore names raise AttributeError so copy/pickle/inspection
protocols see an ordinary object instead of an infinitely chainable one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any

from lazydata.store.state import LoadState

logger = logging.getLogger(__name__)

StateReader = Callable[[str], LoadState]
EmptyViewFactory = Callable[[str], Any]

# Loading/error/ready-style keys that report the live LoadState
STATE_KEYS = frozenset({"loading", "error", "ready"})


def _empty_view(factory: PlaceholderFactory, name: str, args: tuple, kwargs: dict) -> Any:
    return factory.empty_view(name)


def _reduce(factory: PlaceholderFactory, name: str, args: tuple, kwargs: dict) -> Any:
    if len(args) > 1:
        return args[1]
    return kwargs.get("initial")


def _get(factory: PlaceholderFactory, name: str, args: tuple, kwargs: dict) -> Any:
    if len(args) > 1:
        return args[1]
    return kwargs.get("default")


def _constant(value: Any) -> Callable[..., Any]:
    def default(factory: PlaceholderFactory, name: str, args: tuple, kwargs: dict) -> Any:
        return value() if callable(value) else value

    return default


_METHOD_DEFAULTS: dict[str, Callable[..., Any]] = {
    **dict.fromkeys(
        ("filter", "slice", "sorted", "sort", "search", "query", "concat", "reverse"),
        _empty_view,
    ),
    **dict.fromkeys(("map", "keys", "values", "items"), _constant(list)),
    **dict.fromkeys(("find_index", "index_of", "index"), _constant(-1)),
    **dict.fromkeys(("some", "every", "includes", "is_mutating"), _constant(False)),
    "find": _constant(None),
    "count": _constant(0),
    "join": _constant(""),
    "reduce": _reduce,
    "get": _get,
    "route": lambda factory, name, args, kwargs: factory.fallback,
}


class Placeholder:
    """Chain-safe stand-in for unresolved data."""

    __slots__ = ("_factory", "_name", "_path", "_children")

    def __init__(self, factory: PlaceholderFactory, name: str, path: tuple[Any, ...] = ()):
        self._factory = factory
        self._name = name
        self._path = path
        self._children: dict[Any, Placeholder] = {}

    @property
    def loading(self) -> bool:
        return self._factory.state(self._name).loading

    @property
    def error(self) -> str | None:
        return self._factory.state(self._name).error

    @property
    def ready(self) -> bool:
        return self._factory.state(self._name).ready

    def _child(self, key: Any) -> Placeholder:
        try:
            child = self._children.get(key)
        except TypeError:
            # Unhashable key: still chain-safe, just not cached
            return Placeholder(self._factory, self._name, (*self._path, repr(key)))
        if child is None:
            child = Placeholder(self._factory, self._name, (*self._path, key))
            self._children[key] = child
        return child

    def __getattr__(self, key: str) -> Placeholder:
        if key.startswith("_"):
            raise AttributeError(key)
        return self._child(key)

    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, slice):
            return self._factory.empty_view(self._name)
        return self._child(key)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        method = self._path[-1] if self._path else None
        if isinstance(method, str):
            default = _METHOD_DEFAULTS.get(method)
            if default is not None:
                return default(self._factory, self._name, args, kwargs)
        return self

    def __iter__(self) -> Iterator[Any]:
        return iter(())

    def __reversed__(self) -> Iterator[Any]:
        return iter(())

    def __len__(self) -> int:
        return 0

    def __bool__(self) -> bool:
        return False

    def __contains__(self, item: object) -> bool:
        return False

    def __str__(self) -> str:
        return ""

    def __repr__(self) -> str:
        dotted = ".".join(str(key) for key in (self._name, *self._path) if key != "")
        return f"<Placeholder {dotted or '?'}>"


class PlaceholderFactory:
    """
    Memoized placeholders per collection name, plus the shared fallback.

    Example:
        factory = PlaceholderFactory(adapter.get_load_state, builder.empty_view)
        factory.get("items") is factory.get("items")   # True
        factory.fallback.a.b.c                          # never raises
    """

    def __init__(
        self,
        state_reader: StateReader,
        empty_view: EmptyViewFactory,
        on_served: Callable[[], None] | None = None,
    ):
        self._state_reader = state_reader
        self._empty_view = empty_view
        self._on_served = on_served
        self._placeholders: dict[str, Placeholder] = {}
        self._fallback_state = LoadState()
        self._fallback = Placeholder(self, "")

    @property
    def fallback(self) -> Placeholder:
        """Chain-safe value returned when resolution cannot proceed."""
        return self._fallback

    def get(self, name: str) -> Placeholder:
        """Top-level placeholder for a collection (identity-stable)."""
        placeholder = self._placeholders.get(name)
        if placeholder is None:
            placeholder = Placeholder(self, name)
            self._placeholders[name] = placeholder
            logger.debug(f"[placeholder] Created placeholder for {name}")
        if self._on_served is not None:
            self._on_served()
        return placeholder

    def at(self, name: str, path: tuple[Any, ...]) -> Placeholder:
        """Placeholder for a nested path (walks the cached children)."""
        placeholder = self.get(name)
        for key in path:
            placeholder = placeholder._child(key)
        return placeholder

    def state(self, name: str) -> LoadState:
        if not name:
            return self._fallback_state
        return self._state_reader(name)

    def empty_view(self, name: str) -> Any:
        return self._empty_view(name)

    def discard(self, name: str) -> bool:
        """Forget the placeholder for a collection once real data exists."""
        return self._placeholders.pop(name, None) is not None

    def clear(self) -> None:
        self._placeholders.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._placeholders

    def __len__(self) -> int:
        return len(self._placeholders)


def is_placeholder(value: Any) -> bool:
    """Check whether a value is an unresolved placeholder."""
    return isinstance(value, Placeholder)
