"""History entry model (integer schema)."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from pyturbidity._constants import DEFAULT_HISTORY_SOURCE
from pyturbidity.ingestion.normalize import FieldKind
from pyturbidity.models._base import TurbidityBaseModel, millis_to_datetime


class HistoryEntry(TurbidityBaseModel):
    """History record of the simpler integer layout.

    Parameters
    ----------
    value : int
        Submitted value.
    timestamp_millis : int
        Epoch milliseconds (remote key ``timestamp``).
    source : str
        Writer of the entry.
    """

    _FIELD_KINDS: ClassVar[dict[str, FieldKind]] = {
        "value": FieldKind.INT32,
        "timestamp_millis": FieldKind.INT64,
        "source": FieldKind.STRING,
    }
    _KEY_ALIASES: ClassVar[dict[str, tuple[str, ...]]] = {
        "timestamp_millis": ("timestamp",),
    }

    value: int = 0
    timestamp_millis: int = 0
    source: str = DEFAULT_HISTORY_SOURCE

    @property
    def recency_key(self) -> int:
        return self.timestamp_millis

    @property
    def recorded_at(self) -> datetime | None:
        return millis_to_datetime(self.timestamp_millis)
