"""Downstream sinks fed by the sync controller."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from pyturbidity.models import Alert, DeviceStatus, HistoryEntry, Measurement

HistoryRecords = Sequence[Measurement] | Sequence[HistoryEntry]


def _ignore(*_args: object) -> None:
    return None


@dataclass(frozen=True)
class SyncSinks:
    """Callbacks receiving decoded data, normally supplied by a UI layer.

    All callbacks run on the controller's event loop.  Unset sinks
    discard their deliveries.
    """

    on_current_value: Callable[[Measurement], None] = _ignore
    on_history: Callable[[HistoryRecords], None] = _ignore
    on_device_status: Callable[[DeviceStatus], None] = _ignore
    on_alert: Callable[[Alert], None] = _ignore
    on_connection_status: Callable[[str, bool], None] = _ignore
