"""
Mutation operations and local application of their results.

The host's mutation handler does the real work. After it succeeds, the
result is applied to the raw collection as a new list reference so views
rebuild without waiting for a reload.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class MutationOperation(str, Enum):
    """Mutation operations delegated to the host's mutation handler."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    DUPLICATE = "duplicate"


def entry_payload(entry_id: Any, data: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Payload for operations that target an existing entry."""
    return {"id": entry_id, "data": dict(data or {})}


def _entry_id(entry: Any, id_field: str) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(id_field)
    return getattr(entry, id_field, None)


def apply_mutation_result(
    items: list[Any],
    operation: MutationOperation,
    payload: Any,
    result: Any,
    *,
    id_field: str = "id",
) -> list[Any] | None:
    """
    Compute the collection after a successful mutation.

    Args:
        items: Current raw entries (not modified)
        operation: Operation that succeeded
        payload: Payload that was sent to the handler
        result: Handler result (the stored entry, when it returns one)
        id_field: Entry identity key

    Returns:
        New list of entries, or None when the result cannot be applied locally
    """
    if operation is MutationOperation.CREATE:
        entry = result if isinstance(result, Mapping) else payload
        if not isinstance(entry, Mapping):
            return None
        return [*items, dict(entry)]

    if operation is MutationOperation.DUPLICATE:
        if not isinstance(result, Mapping):
            return None
        return [*items, dict(result)]

    if not isinstance(payload, Mapping) or "id" not in payload:
        return None
    entry_id = payload["id"]

    if operation is MutationOperation.DELETE:
        remaining = [entry for entry in items if _entry_id(entry, id_field) != entry_id]
        if len(remaining) == len(items):
            return None
        return remaining

    if operation is MutationOperation.UPDATE:
        updates = result if isinstance(result, Mapping) else payload.get("data") or {}
        changed = False
        updated: list[Any] = []
        for entry in items:
            if isinstance(entry, Mapping) and _entry_id(entry, id_field) == entry_id:
                updated.append({**entry, **updates})
                changed = True
            else:
                updated.append(entry)
        return updated if changed else None

    logger.debug(f"[mutations] No local application for {operation.value}")
    return None
