"""
Capability Registry.

Resolves which optional operations an array view carries. Resolution is
declarative and cached: the host's classification callback runs once per
collection name, and one CapabilitySet is built per distinct
classification.

Design Principle:
    Absence of a handler never breaks read access. Missing handlers
    surface only when the dependent operation is called, as
    CapabilityUnavailable (or UnsupportedOperation when the collection is
    not externally paginable).

Usage:
    registry = CapabilityRegistry(
        classify_collection=lambda name: CollectionClassification(
            is_mutable_collection=name == "tasks",
            is_paginable=name == "tasks",
            kind="table",
        ),
    )
    registry.register_mutation_handler("table", mutate)
    registry.set_pagination_handler(paginate)

    caps = registry.resolve("tasks")
    caps.can_mutate      # True
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from lazydata.config.schemas import LOCAL_COLLECTION, CollectionClassification
from lazydata.errors import CapabilityUnavailable, UnsupportedOperation

from .mutations import MutationOperation
from .pagination import PaginationDirection

logger = logging.getLogger(__name__)

ClassifyCollection = Callable[[str], CollectionClassification]
MutationHandler = Callable[[MutationOperation, str, Any], Awaitable[Any]]
PaginationHandler = Callable[[PaginationDirection, str, Any, int], Awaitable[Any]]

# Always available on array views (pure, local)
LOCAL_CAPABILITIES = ("search", "query", "route")


@dataclass(frozen=True)
class CapabilitySet:
    """
    Operations available to array views of one collection classification.

    Local operations (search/query/route) are always present. Mutation and
    pagination are present when the classification allows them and the
    host registered a handler.
    """

    classification: CollectionClassification
    mutation_handler: MutationHandler | None = None
    pagination_handler: PaginationHandler | None = None

    @property
    def can_mutate(self) -> bool:
        return self.classification.is_mutable_collection and self.mutation_handler is not None

    @property
    def can_paginate(self) -> bool:
        return self.classification.is_paginable and self.pagination_handler is not None

    @property
    def names(self) -> tuple[str, ...]:
        names = list(LOCAL_CAPABILITIES)
        if self.can_paginate:
            names.extend(direction.value for direction in PaginationDirection)
        if self.can_mutate:
            names.extend(operation.value for operation in MutationOperation)
        return tuple(names)

    def require_mutation(self, operation: MutationOperation, collection: str) -> MutationHandler:
        """Return the mutation handler or raise CapabilityUnavailable."""
        if not self.classification.is_mutable_collection:
            raise CapabilityUnavailable(
                operation.value,
                collection,
                "collection is local/static data; mutations need an externally backed collection",
            )
        if self.mutation_handler is None:
            raise CapabilityUnavailable(
                operation.value,
                collection,
                f"no mutation handler registered for kind '{self.classification.kind}'",
            )
        return self.mutation_handler

    def require_pagination(
        self, direction: PaginationDirection, collection: str
    ) -> PaginationHandler:
        """Return the pagination handler or raise."""
        if not self.classification.is_paginable:
            raise UnsupportedOperation(
                direction.value,
                collection,
                "pagination is only supported for externally paginated collections",
            )
        if self.pagination_handler is None:
            raise CapabilityUnavailable(
                direction.value, collection, "no pagination handler registered"
            )
        return self.pagination_handler


class CapabilityRegistry:
    """
    Registry of mutation/pagination handlers and per-classification capability sets.
    """

    def __init__(
        self,
        classify_collection: ClassifyCollection | None = None,
        *,
        mutation_handlers: dict[str, MutationHandler] | None = None,
        pagination_handler: PaginationHandler | None = None,
    ):
        self._classify_collection = classify_collection
        self._mutation_handlers: dict[str, MutationHandler] = dict(mutation_handlers or {})
        self._pagination_handler = pagination_handler
        self._classifications: dict[str, CollectionClassification] = {}
        self._sets: dict[CollectionClassification, CapabilitySet] = {}

    def register_mutation_handler(self, kind: str, handler: MutationHandler) -> None:
        """Register the mutation handler for a collection kind (replaces any existing one)."""
        self._mutation_handlers[kind] = handler
        self._sets.clear()
        logger.info(f"[capabilities] Registered mutation handler for kind: {kind}")

    def unregister_mutation_handler(self, kind: str) -> bool:
        if kind in self._mutation_handlers:
            del self._mutation_handlers[kind]
            self._sets.clear()
            logger.info(f"[capabilities] Unregistered mutation handler for kind: {kind}")
            return True
        return False

    def set_pagination_handler(self, handler: PaginationHandler | None) -> None:
        self._pagination_handler = handler
        self._sets.clear()

    def classification(self, name: str) -> CollectionClassification:
        """Host classification for a collection, looked up once per name."""
        cached = self._classifications.get(name)
        if cached is not None:
            return cached

        classification = LOCAL_COLLECTION
        if self._classify_collection is not None and name:
            try:
                classification = self._classify_collection(name)
            except Exception as e:
                logger.warning(
                    f"[capabilities] Classification failed for {name}: {e}. Treating as local."
                )
                return LOCAL_COLLECTION
        self._classifications[name] = classification
        return classification

    def resolve(self, name: str) -> CapabilitySet:
        """Capability set for a collection (shared by all collections with the same classification)."""
        classification = self.classification(name)
        capability_set = self._sets.get(classification)
        if capability_set is None:
            capability_set = CapabilitySet(
                classification=classification,
                mutation_handler=(
                    self._mutation_handlers.get(classification.kind)
                    if classification.is_mutable_collection
                    else None
                ),
                pagination_handler=(
                    self._pagination_handler if classification.is_paginable else None
                ),
            )
            self._sets[classification] = capability_set
            logger.debug(
                f"[capabilities] Resolved {classification}: {', '.join(capability_set.names)}"
            )
        return capability_set

    def invalidate(self, name: str | None = None) -> None:
        """Forget cached classifications (one name or all) and capability sets."""
        if name is None:
            self._classifications.clear()
        else:
            self._classifications.pop(name, None)
        self._sets.clear()
