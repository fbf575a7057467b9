"""Measurement model (one observed reading)."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, ClassVar

from pyturbidity._constants import DEFAULT_METRIC, DEFAULT_UNIT
from pyturbidity.ingestion.normalize import FieldKind, recency_key
from pyturbidity.models._base import TurbidityBaseModel, millis_to_datetime

#: Validation-context key naming the document key that holds the value.
VALUE_KEY_CONTEXT = "value_key"


class Measurement(TurbidityBaseModel):
    """One observed reading.

    Parameters
    ----------
    value : float
        Measured value (remote key: the metric name, e.g. ``turbidity``,
        or ``value``).
    timestamp : str
        String-encoded epoch milliseconds.  Also the child key of the
        reading under the history collection.
    unit : str
        Unit of ``value``.
    source_id : str
        Device or app that produced the reading (remote key ``device_id``).
    """

    _FIELD_KINDS: ClassVar[dict[str, FieldKind]] = {
        "value": FieldKind.FLOAT,
        "timestamp": FieldKind.STRING,
        "unit": FieldKind.STRING,
        "source_id": FieldKind.STRING,
    }
    _KEY_ALIASES: ClassVar[dict[str, tuple[str, ...]]] = {
        "value": (DEFAULT_METRIC,),
        "source_id": ("device_id", "source"),
    }

    value: float = 0.0
    timestamp: str = ""
    unit: str = DEFAULT_UNIT
    source_id: str = ""

    @classmethod
    def _candidate_keys(cls, field_name: str, context: Mapping[str, Any]) -> tuple[str, ...]:
        value_key = context.get(VALUE_KEY_CONTEXT)
        if field_name == "value" and isinstance(value_key, str) and value_key:
            return (value_key, "value") if value_key != "value" else ("value",)
        return super()._candidate_keys(field_name, context)

    @property
    def recency_key(self) -> int:
        """Numeric ordering key (``0`` when the timestamp is unparsable)."""
        return recency_key(self.timestamp)

    @property
    def recorded_at(self) -> datetime | None:
        """UTC time of the reading, ``None`` when the timestamp is unparsable."""
        return millis_to_datetime(self.timestamp)
