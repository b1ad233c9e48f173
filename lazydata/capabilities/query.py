"""
Local query and search over array data.

Queries are ordered lists of operations applied left to right:

    [
        ["equal", "status", "active"],
        ["greaterThan", "price", 10],
        ["orderDesc", "price"],
        ["limit", 5],
    ]

Filtering: equal, notEqual, greaterThan, greaterThanOrEqual, lessThan,
lessThanOrEqual, between, contains, startsWith, endsWith, isNull,
isNotNull. Ordering: orderAsc, orderDesc, orderRandom (nulls always sort
last). Slicing: limit, offset. snake_case spellings are accepted too.

Everything here is pure: inputs are never modified.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable, Mapping, Sequence
from functools import cmp_to_key
from typing import Any

logger = logging.getLogger(__name__)

_MISSING = object()

Query = Sequence[Any]


def field_value(item: Any, attr: str) -> Any:
    """Read a field from a mapping or an attribute-bearing object (None when absent)."""
    if isinstance(item, Mapping):
        return item.get(attr)
    if item is None or isinstance(item, (str, bytes, int, float, bool)):
        return None
    return getattr(item, attr, None)


def _is_record(item: Any) -> bool:
    return item is not None and not isinstance(item, (str, bytes, int, float, bool))


def _text(value: Any) -> str:
    return str(value).casefold()


def _compare(a: Any, b: Any) -> int:
    if isinstance(a, str) and isinstance(b, str):
        a, b = a.casefold(), b.casefold()
    try:
        return (a > b) - (a < b)
    except TypeError:
        a, b = str(a), str(b)
        return (a > b) - (a < b)


def _safe(predicate: Callable[[Any], bool]) -> Callable[[Any], bool]:
    def check(value: Any) -> bool:
        try:
            return predicate(value)
        except TypeError:
            return False

    return check


def _filter(items: list[Any], attr: str, predicate: Callable[[Any], bool]) -> list[Any]:
    check = _safe(predicate)
    return [
        item
        for item in items
        if _is_record(item) and (value := field_value(item, attr)) is not None and check(value)
    ]


def _order(items: list[Any], attr: str, descending: bool) -> list[Any]:
    present = [item for item in items if field_value(item, attr) is not None]
    missing = [item for item in items if field_value(item, attr) is None]
    present.sort(
        key=cmp_to_key(lambda a, b: _compare(field_value(a, attr), field_value(b, attr))),
        reverse=descending,
    )
    return present + missing


def _to_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


_ALIASES = {
    "not_equal": "notEqual",
    "greater_than": "greaterThan",
    "greater_than_or_equal": "greaterThanOrEqual",
    "less_than": "lessThan",
    "less_than_or_equal": "lessThanOrEqual",
    "starts_with": "startsWith",
    "ends_with": "endsWith",
    "is_null": "isNull",
    "is_not_null": "isNotNull",
    "order_asc": "orderAsc",
    "order_desc": "orderDesc",
    "order_random": "orderRandom",
}

# method -> minimum number of arguments
_ARITY = {
    "equal": 2,
    "notEqual": 2,
    "greaterThan": 2,
    "greaterThanOrEqual": 2,
    "lessThan": 2,
    "lessThanOrEqual": 2,
    "contains": 2,
    "startsWith": 2,
    "endsWith": 2,
    "between": 3,
    "isNull": 1,
    "isNotNull": 1,
    "orderAsc": 1,
    "orderDesc": 1,
    "orderRandom": 0,
    "limit": 1,
    "offset": 1,
}

QUERY_METHODS = frozenset(_ARITY)


def _apply_one(items: list[Any], method: str, args: Sequence[Any], rng: random.Random) -> list[Any]:
    if method == "equal":
        attr, value = args[0], args[1]
        return [item for item in items if _is_record(item) and field_value(item, attr) == value]
    if method == "notEqual":
        attr, value = args[0], args[1]
        return [item for item in items if _is_record(item) and field_value(item, attr) != value]
    if method == "greaterThan":
        return _filter(items, args[0], lambda v: v > args[1])
    if method == "greaterThanOrEqual":
        return _filter(items, args[0], lambda v: v >= args[1])
    if method == "lessThan":
        return _filter(items, args[0], lambda v: v < args[1])
    if method == "lessThanOrEqual":
        return _filter(items, args[0], lambda v: v <= args[1])
    if method == "between":
        return _filter(items, args[0], lambda v: args[1] <= v <= args[2])
    if method == "contains":
        needle = _text(args[1])
        return _filter(items, args[0], lambda v: needle in _text(v))
    if method == "startsWith":
        needle = _text(args[1])
        return _filter(items, args[0], lambda v: _text(v).startswith(needle))
    if method == "endsWith":
        needle = _text(args[1])
        return _filter(items, args[0], lambda v: _text(v).endswith(needle))
    if method == "isNull":
        attr = args[0]
        return [
            item for item in items if _is_record(item) and field_value(item, attr) in (None, "")
        ]
    if method == "isNotNull":
        attr = args[0]
        return [
            item for item in items if _is_record(item) and field_value(item, attr) not in (None, "")
        ]
    if method == "orderAsc":
        return _order(items, args[0], descending=False)
    if method == "orderDesc":
        return _order(items, args[0], descending=True)
    if method == "orderRandom":
        shuffled = list(items)
        rng.shuffle(shuffled)
        return shuffled
    if method == "limit":
        limit = _to_int(args[0])
        return items if limit is None else items[: max(limit, 0)]
    if method == "offset":
        offset = _to_int(args[0])
        return items if offset is None else items[max(offset, 0) :]
    return items


def apply_query(
    items: Iterable[Any],
    queries: Sequence[Query] | None,
    *,
    rng: random.Random | None = None,
) -> list[Any]:
    """
    Apply query operations to items, left to right.

    Args:
        items: Source items (not modified)
        queries: List of [method, *args] operations
        rng: Random source for orderRandom

    Returns:
        New list with the matching items
    """
    result = list(items)
    if not queries:
        return result

    rng = rng or random.Random()
    for query in queries:
        if isinstance(query, (str, bytes)) or not isinstance(query, Sequence) or not query:
            continue
        method, *args = query
        method = _ALIASES.get(method, method)
        arity = _ARITY.get(method)
        if arity is None:
            logger.debug(f"[query] Ignoring unknown query method: {method!r}")
            continue
        if len(args) < arity:
            logger.debug(f"[query] Ignoring {method}: expected {arity} arguments, got {len(args)}")
            continue
        result = _apply_one(result, method, args, rng)
    return result


def search_items(items: Iterable[Any], term: Any, fields: Sequence[str] = ()) -> list[Any]:
    """
    Case-insensitive substring search.

    Args:
        items: Source items
        term: Search text; blank or non-string terms match everything
        fields: Fields to search; when empty every string-valued field is searched

    Returns:
        New list with the matching items
    """
    source = list(items)
    if not isinstance(term, str) or not term.strip():
        return source

    needle = term.strip().casefold()

    def matches(item: Any) -> bool:
        if not _is_record(item):
            return False
        if fields:
            values = [field_value(item, attr) for attr in fields]
            return any(value is not None and needle in _text(value) for value in values)
        if isinstance(item, Mapping):
            values = list(item.values())
        else:
            values = list(vars(item).values()) if hasattr(item, "__dict__") else []
        return any(isinstance(value, str) and needle in value.casefold() for value in values)

    return [item for item in source if matches(item)]
