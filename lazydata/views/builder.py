"""
View Builder.

Constructs the wrapper appropriate to a raw value's shape:

- ARRAY  -> ArrayView (capabilities read live from the registry)
- OBJECT -> ObjectView (recursive descent through the resolver)
- SCALAR -> the raw value itself

Detached data (search, query and page results whose entries no longer
sit in the store) is built with a None path.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from lazydata.observability import AccessorMetrics
from lazydata.shape import Shape, classify

from .array import ArrayView
from .base import Path
from .object import ObjectView

if TYPE_CHECKING:
    from lazydata.runtime.resolver import CollectionResolver

logger = logging.getLogger(__name__)


class ViewBuilder:
    """
    Builds views for the resolver.

    Example:
        builder = ViewBuilder(metrics)
        builder.bind(resolver)
        view = builder.build([{"id": 1}], "items", ())
    """

    def __init__(self, metrics: AccessorMetrics | None = None):
        self._metrics = metrics if metrics is not None else AccessorMetrics()
        self._resolver: CollectionResolver | None = None

    def bind(self, resolver: CollectionResolver) -> None:
        """Attach the resolver that views use for nested access."""
        self._resolver = resolver

    @property
    def resolver(self) -> CollectionResolver:
        if self._resolver is None:
            raise RuntimeError("ViewBuilder is not bound to a resolver")
        return self._resolver

    def build(self, raw: Any, name: str, path: Path | None, shape: Shape | None = None) -> Any:
        """
        Build the view for a raw value.

        Args:
            raw: Raw, unwrapped data
            name: Collection name
            path: Key path from the collection root (None for detached data)
            shape: Pre-computed shape (classified here when omitted)

        Returns:
            ArrayView, ObjectView, or ``raw`` for scalars
        """
        shape = shape or classify(raw)
        if shape is Shape.ARRAY:
            view: Any = ArrayView(raw, name, path, self.resolver)
        elif shape is Shape.OBJECT:
            view = ObjectView(raw, name, path, self.resolver)
        else:
            return raw

        self._metrics.views_built += 1
        where = "detached" if path is None else list(path)
        logger.debug(f"[builder] Built {type(view).__name__} for {name} {where}")
        return view

    def empty_view(self, name: str) -> ArrayView:
        """Detached empty array view (what placeholder sequence methods return)."""
        return ArrayView([], name, None, self.resolver)
