"""
Attribute-style facade over AccessorContext.get.

    acc = ctx.accessor
    acc.products            # same as ctx.get("products")
    acc["site-settings"]    # names that are not identifiers

All caching, guarding and classification stays in the context; this
class only turns attribute and item syntax into ``get`` calls.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lazydata.runtime.context import AccessorContext


class Accessor:
    """Dynamic attribute adapter for collection access."""

    __slots__ = ("_context",)

    def __init__(self, context: AccessorContext):
        self._context = context

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._context.get(name)

    def __getitem__(self, name: str) -> Any:
        return self._context.get(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._context.store.get_raw(name) is not None

    def __repr__(self) -> str:
        return f"<Accessor locale={self._context.locale}>"
