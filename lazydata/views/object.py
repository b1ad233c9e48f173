"""
Object View.

Mapping-style wrapper over object-shaped collection data. Each accessed key
resolves through the resolver with the extended path, so nested objects and
arrays are memoized at every level:

    settings = ctx.get("settings")
    settings.theme.colors is settings.theme.colors   # True
    settings["theme"]["colors"][0]

A missing key yields the chain-safe fallback instead of raising. Methods
and the ``loading``/``error``/``ready`` properties take precedence over
attribute access to data keys of the same name; item syntax always reaches
the data.

A detached object (a search or page entry) has no store path; its nested
objects and arrays come back as detached views memoized per key.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from .base import BaseView, unwrap


class ObjectView(BaseView):
    """Recursive view over a mapping."""

    __slots__ = ()

    def __getattr__(self, key: str) -> Any:
        if key.startswith("_"):
            raise AttributeError(key)
        return self[key]

    def __getitem__(self, key: Any) -> Any:
        try:
            present = key in self._raw
        except TypeError:
            present = False
        if not present:
            return self._resolver.fallback
        path = self._child_path(key)
        if path is None:
            return self._wrap_detached(key, self._raw[key])
        return self._resolver.get(self._name, path)

    def get(self, key: Any, default: Any = None) -> Any:
        if key in self:
            return self[key]
        return default

    def keys(self) -> list[Any]:
        return list(self._raw.keys())

    def values(self) -> list[Any]:
        return [self[key] for key in self._raw]

    def items(self) -> list[tuple[Any, Any]]:
        return [(key, self[key]) for key in self._raw]

    def to_dict(self) -> dict[Any, Any]:
        """Shallow copy of the raw mapping."""
        return dict(self._raw)

    def __contains__(self, key: object) -> bool:
        try:
            return key in self._raw
        except TypeError:
            return False

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._raw))

    def __len__(self) -> int:
        return len(self._raw)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (ObjectView, Mapping)):
            return dict(self._raw) == dict(unwrap(other))
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        where = "/".join(str(k) for k in self._path) if self._path else "root"
        return f"ObjectView({self._name!r}, {where}, keys={list(self._raw)[:5]})"
