"""Helpers for safe debug logging.

Database URLs carry the auth token as a query parameter and history
subtrees can grow large.  This module masks the former and truncates
the latter before anything reaches a DEBUG log.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import urlsplit, urlunsplit

_MASK = "<redacted>"
_MAX_DEPTH = 20

# Compared case-insensitively.
_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "auth",
        "authorization",
        "token",
        "idtoken",
        "id_token",
        "accesstoken",
        "access_token",
        "refreshtoken",
        "refresh_token",
        "secret",
        "password",
    }
)


def redact_url(url: str) -> str:
    """Return *url* with its query string replaced by a marker."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, _MASK, parts.fragment))


def redact_for_log(value: Any, *, max_string: int = 512, max_items: int = 50) -> Any:
    """Return a copy of a JSON-like *value* that is safe to log.

    Secret-looking keys are masked at any depth, strings longer than
    *max_string* are cut, and collections keep at most *max_items*
    entries followed by a ``<N more>`` marker.
    """

    def _walk(node: Any, depth: int) -> Any:
        if depth > _MAX_DEPTH:
            return "<max-depth>"
        if node is None or isinstance(node, (bool, int, float)):
            return node
        if isinstance(node, str):
            return node if len(node) <= max_string else f"{node[:max_string]}…<truncated>"
        if isinstance(node, (bytes, bytearray)):
            return f"<bytes:{len(node)}b>"
        if isinstance(node, Mapping):
            out: dict[str, Any] = {}
            for key, child in list(node.items())[:max_items]:
                name = str(key)
                out[name] = _MASK if name.lower() in _SECRET_KEYS else _walk(child, depth + 1)
            if len(node) > max_items:
                out["…"] = f"<{len(node) - max_items} more>"
            return out
        if isinstance(node, Sequence):
            items = [_walk(child, depth + 1) for child in list(node)[:max_items]]
            if len(node) > max_items:
                items.append(f"<{len(node) - max_items} more>")
            return items
        return repr(node)

    return _walk(value, 0)
