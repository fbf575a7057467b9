"""History projector.

Recomputes the full ordered history on every collection notification;
collections are small enough that incremental diffing is not worth it.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pyturbidity.ingestion.decoder import Record, RecordKind, decode
from pyturbidity.ingestion.normalize import iter_children


def _recency(record: Record) -> int:
    key = getattr(record, "recency_key", 0)
    return key if isinstance(key, int) else 0


def project(
    children: Iterable[tuple[str, Any]],
    kind: RecordKind,
    *,
    value_key: str | None = None,
) -> list[Record]:
    """Decode ``(key, document)`` pairs and order them newest first.

    Records are sorted descending by recency key; unparsable timestamps
    count as ``0`` and therefore sort last.  The sort is stable, so equal
    keys keep the store's own order.
    """
    records = [decode(document, kind, value_key=value_key) for _key, document in children]
    return sorted(records, key=_recency, reverse=True)


def project_tree(tree: Any, kind: RecordKind, *, value_key: str | None = None) -> list[Record]:
    """:func:`project` applied to a whole collection subtree."""
    return project(iter_children(tree), kind, value_key=value_key)
