"""
Shape Classifier.

Decides how raw data is wrapped: array views, object views, or plain
passthrough. Classification always runs on the raw, unwrapped reference.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# Primitive types that are sequences in Python but scalars to consumers
_TEXT_TYPES = (str, bytes, bytearray, memoryview)
_SCALAR_TYPES = (bool, int, float, complex, *_TEXT_TYPES)


class Shape(str, Enum):
    """Shape of a raw collection value."""

    ARRAY = "array"
    OBJECT = "object"
    SCALAR = "scalar"
    UNKNOWN = "unknown"


def is_array_like(raw: Any) -> bool:
    """
    Check if a value behaves like an array.

    Native sequences qualify directly. Other objects qualify when they expose
    an integer length and integer-indexed access (host wrappers often present
    list data without being a list).
    """
    if raw is None or isinstance(raw, _TEXT_TYPES) or isinstance(raw, Mapping):
        return False
    if isinstance(raw, Sequence):
        return True
    if not (hasattr(raw, "__len__") and hasattr(raw, "__getitem__")):
        return False
    try:
        length = len(raw)
    except TypeError:
        return False
    if not isinstance(length, int) or length < 0:
        return False
    if length == 0:
        return True
    try:
        raw[0]
    except (IndexError, KeyError, TypeError):
        return False
    return True


def classify_shape(raw: Any) -> Shape:
    """
    Classify raw data without defaulting.

    Returns UNKNOWN for None and for values that are neither primitives,
    mappings, nor array-like.
    """
    if raw is None:
        return Shape.UNKNOWN
    if isinstance(raw, _SCALAR_TYPES):
        return Shape.SCALAR
    if isinstance(raw, Mapping):
        return Shape.OBJECT
    if is_array_like(raw):
        return Shape.ARRAY
    return Shape.UNKNOWN


def classify(raw: Any) -> Shape:
    """
    Classify raw data as ARRAY, OBJECT or SCALAR.

    Ambiguous values (custom objects that are neither mappings nor
    array-like) are treated as SCALAR and passed through untouched rather
    than guessed at.
    """
    shape = classify_shape(raw)
    if shape is Shape.UNKNOWN:
        if raw is not None:
            logger.debug(f"[shape] Ambiguous value of type {type(raw).__name__}, passing through")
        return Shape.SCALAR
    return shape


def to_list(raw: Any) -> list[Any]:
    """Materialize an array-like value as a list (the same list when already one)."""
    if isinstance(raw, list):
        return raw
    if isinstance(raw, Sequence):
        return list(raw)
    return [raw[i] for i in range(len(raw))]
