"""Normalization helpers.

Centralizes the kind-matching rules used when reading loosely-typed
documents.  A value is either accepted as-is (after widening to the
Python type of its field) or rejected so the field default applies;
nothing here parses strings into numbers, except :func:`recency_key`.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterator, Mapping
from enum import StrEnum
from typing import Any

from pyturbidity._constants import INT32_MAX, INT32_MIN, INT64_MAX, INT64_MIN


class FieldKind(StrEnum):
    STRING = "string"
    FLOAT = "float"
    INT32 = "int32"
    INT64 = "int64"


_INT_BOUNDS: dict[FieldKind, tuple[int, int]] = {
    FieldKind.INT32: (INT32_MIN, INT32_MAX),
    FieldKind.INT64: (INT64_MIN, INT64_MAX),
}

_DECIMAL_INT = re.compile(r"[+-]?[0-9]+")


def as_string(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def as_float(value: Any) -> float | None:
    # bool is an int subclass but never a number in the store.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    result = float(value)
    if math.isnan(result):
        return None
    return result


def as_int(value: Any, kind: FieldKind = FieldKind.INT64) -> int | None:
    """Accept ints and whole-valued floats that fit *kind*'s range.

    JSON numbers carry no int/float distinction, so ``-60.0`` is as much
    an integer as ``-60``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if not isinstance(value, int):
        return None
    low, high = _INT_BOUNDS.get(kind, _INT_BOUNDS[FieldKind.INT64])
    if not low <= value <= high:
        return None
    return value


def match_kind(value: Any, kind: FieldKind) -> Any | None:
    """Return *value* widened to *kind*, or ``None`` when it is the wrong kind."""
    if kind == FieldKind.STRING:
        return as_string(value)
    if kind == FieldKind.FLOAT:
        return as_float(value)
    return as_int(value, kind)


def recency_key(timestamp: Any) -> int:
    """Ordering key for a history timestamp.

    Integers are used directly; strings must be a plain signed decimal
    integer within 64 bits.  Anything else sorts as ``0``.
    """
    if isinstance(timestamp, bool):
        return 0
    if isinstance(timestamp, int):
        return timestamp
    if not isinstance(timestamp, str) or not _DECIMAL_INT.fullmatch(timestamp):
        return 0
    parsed = int(timestamp)
    if not INT64_MIN <= parsed <= INT64_MAX:
        return 0
    return parsed


def iter_children(tree: Any) -> Iterator[tuple[str, Any]]:
    """Yield ``(key, child)`` pairs of a collection subtree in store order.

    The store returns arrays for collections whose keys are dense small
    integers; missing indices come back as ``null`` and are skipped.
    Scalars and ``None`` have no children.
    """
    if isinstance(tree, Mapping):
        for key, child in tree.items():
            yield str(key), child
        return
    if isinstance(tree, list):
        for index, child in enumerate(tree):
            if child is not None:
                yield str(index), child
