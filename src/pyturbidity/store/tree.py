"""Local copy of a watched subtree.

The streaming API sends ``put`` / ``patch`` deltas relative to the watched
path.  These helpers fold them into a plain JSON tree so listeners can
always be handed the full current subtree.

Trees follow the database's data model: no empty objects, no ``null``
leaves, arrays stored as objects keyed by index.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from typing import Any

from pyturbidity._constants import INT32_MAX, INT32_MIN

_INT_KEY = re.compile(r"-?(0|[1-9][0-9]*)")


def _segments(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def normalize_tree(data: Any) -> Any:
    """Return a copy of *data* in database shape (``None`` when empty)."""
    if isinstance(data, Mapping):
        items = data.items()
    elif isinstance(data, list):
        items = ((str(index), value) for index, value in enumerate(data))
    else:
        return copy.deepcopy(data)

    normalized: dict[str, Any] = {}
    for key, value in items:
        child = normalize_tree(value)
        if child is not None:
            normalized[str(key)] = child
    return normalized or None


def apply_put(tree: Any, path: str, data: Any) -> Any:
    """Replace the node at *path* (relative to the tree root) with *data*.

    Returns the new root, which may be a different object than *tree*.
    """
    segments = _segments(path)
    value = normalize_tree(data)
    if not segments:
        return value

    root: dict[str, Any] = tree if isinstance(tree, dict) else {}
    parents: list[tuple[dict[str, Any], str]] = []
    node = root
    for segment in segments[:-1]:
        child = node.get(segment)
        if not isinstance(child, dict):
            if value is None:
                return root or None
            child = {}
            node[segment] = child
        parents.append((node, segment))
        node = child

    last = segments[-1]
    if value is None:
        node.pop(last, None)
    else:
        node[last] = value

    # Deleting a leaf can leave empty ancestors behind.
    for parent, segment in reversed(parents):
        if parent[segment]:
            break
        del parent[segment]
    return root or None


def apply_patch(tree: Any, path: str, data: Any) -> Any:
    """Merge the children of *data* into the node at *path*."""
    if not isinstance(data, Mapping):
        return tree
    base = "/".join(_segments(path))
    for key, value in data.items():
        tree = apply_put(tree, f"{base}/{key}" if base else str(key), value)
    return tree


def key_order(key: str) -> tuple[int, int, str]:
    """Database key ordering: 32-bit integer keys numerically first, then strings."""
    if _INT_KEY.fullmatch(key):
        number = int(key)
        if INT32_MIN <= number <= INT32_MAX:
            return (0, number, "")
    return (1, 0, key)


def ordered_snapshot(tree: Any) -> Any:
    """Deep copy of *tree* with every object's keys in database order."""
    if not isinstance(tree, dict):
        return copy.deepcopy(tree)
    return {key: ordered_snapshot(tree[key]) for key in sorted(tree, key=key_order)}
