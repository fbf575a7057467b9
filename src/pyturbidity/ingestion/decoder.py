"""Snapshot decoder.

Converts an untyped store subtree into a record.  Decoding is total and
pure: missing or wrongly-typed fields fall back to the record defaults,
and nothing is ever raised.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pyturbidity.config import SchemaVariant
from pyturbidity.ingestion.normalize import FieldKind, iter_children, match_kind
from pyturbidity.models import Alert, DeviceStatus, HistoryEntry, Measurement, TurbidityBaseModel
from pyturbidity.models._base import STORE_DOCUMENT_CONTEXT
from pyturbidity.models.measurement import VALUE_KEY_CONTEXT


class RecordKind(StrEnum):
    MEASUREMENT = "measurement"
    DEVICE_STATUS = "device_status"
    ALERT = "alert"
    HISTORY_ENTRY = "history_entry"


Record = Measurement | DeviceStatus | Alert | HistoryEntry

_MODELS: dict[RecordKind, type[TurbidityBaseModel]] = {
    RecordKind.MEASUREMENT: Measurement,
    RecordKind.DEVICE_STATUS: DeviceStatus,
    RecordKind.ALERT: Alert,
    RecordKind.HISTORY_ENTRY: HistoryEntry,
}


def history_kind(schema: SchemaVariant) -> RecordKind:
    """Record kind stored under the history collection of *schema*."""
    if schema == SchemaVariant.HISTORY_ENTRY:
        return RecordKind.HISTORY_ENTRY
    return RecordKind.MEASUREMENT


def decode(raw: Any, kind: RecordKind, *, value_key: str | None = None) -> Record:
    """Decode one document into a fully-populated record of *kind*.

    ``value_key`` names the document key holding a Measurement's value
    (the metric name); it is ignored for other kinds.
    """
    model = _MODELS[kind]
    document = raw if isinstance(raw, Mapping) else {}
    context: dict[str, Any] = {STORE_DOCUMENT_CONTEXT: True}
    if value_key:
        context[VALUE_KEY_CONTEXT] = value_key
    record: Record = model.model_validate(document, context=context)  # type: ignore[assignment]
    return record


def decode_current(raw: Any, schema: SchemaVariant, *, value_key: str | None = None) -> Measurement:
    """Decode the current-value document.

    The measurement layout stores ``{<metric>: <number>}``; the history
    entry layout stores a bare integer.  Both yield a :class:`Measurement`.
    """
    if schema == SchemaVariant.HISTORY_ENTRY:
        number = match_kind(raw, FieldKind.INT32)
        if number is None:
            return Measurement(unit="")
        return Measurement(value=float(number), unit="", raw={"value": raw})
    record = decode(raw, RecordKind.MEASUREMENT, value_key=value_key)
    assert isinstance(record, Measurement)  # noqa: S101
    return record


def decode_children(tree: Any, kind: RecordKind, *, value_key: str | None = None) -> list[Record]:
    """Decode every child of a collection subtree, in store order."""
    return [decode(child, kind, value_key=value_key) for _key, child in iter_children(tree)]
