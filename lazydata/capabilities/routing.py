"""
Path-key lookup over nested collection data.

Finds the entry whose path key (e.g. "slug") matches a segment of a
"/"-separated path. Used by ``ArrayView.route()`` to map a location to the
record that describes it.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from lazydata.shape import is_array_like, to_list


def path_segments(path: str | Sequence[str]) -> list[str]:
    """Split a path into non-empty segments."""
    if isinstance(path, str):
        return [segment for segment in path.split("/") if segment]
    return [str(segment) for segment in path if str(segment)]


def find_item_by_path(data: Any, path_key: str, segments: Sequence[str]) -> Any | None:
    """
    Depth-first search for the first record whose ``path_key`` matches a segment.

    Args:
        data: Array or object data to search
        path_key: Field holding the path value
        segments: Candidate path segments (compared as strings)

    Returns:
        The matching record, or None
    """
    if not segments:
        return None

    wanted = {str(segment) for segment in segments}

    if is_array_like(data):
        for item in to_list(data):
            if isinstance(item, Mapping):
                if path_key in item and str(item[path_key]) in wanted:
                    return item
                found = find_item_by_path(item, path_key, segments)
                if found is not None:
                    return found
            elif is_array_like(item):
                found = find_item_by_path(item, path_key, segments)
                if found is not None:
                    return found
    elif isinstance(data, Mapping):
        for value in data.values():
            if isinstance(value, Mapping) or is_array_like(value):
                found = find_item_by_path(value, path_key, segments)
                if found is not None:
                    return found
    return None


def locate_item(data: Any, target: Any) -> tuple[Any, ...] | None:
    """
    Find the key path of a specific object inside nested data (identity match).

    Returns:
        Tuple of keys/indexes from ``data`` to ``target``, or None
    """
    if data is target:
        return ()
    if is_array_like(data):
        children: Sequence[tuple[Any, Any]] = list(enumerate(to_list(data)))
    elif isinstance(data, Mapping):
        children = list(data.items())
    else:
        return None
    for key, child in children:
        if child is target:
            return (key,)
        if isinstance(child, Mapping) or is_array_like(child):
            sub = locate_item(child, target)
            if sub is not None:
                return (key, *sub)
    return None
