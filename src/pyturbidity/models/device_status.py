"""Device status model reported by the sensor node."""

from __future__ import annotations

from typing import ClassVar

from pyturbidity.ingestion.normalize import FieldKind
from pyturbidity.models._base import TurbidityBaseModel


class DeviceStatus(TurbidityBaseModel):
    """Health snapshot published by the sensor device.

    Parameters
    ----------
    state : str
        Free-form device state (remote key ``status``).
    signal_strength : int
        WiFi RSSI in dBm (remote key ``wifi_rssi``).
    free_memory_bytes : int
        Free heap in bytes (remote key ``free_heap``).
    """

    _FIELD_KINDS: ClassVar[dict[str, FieldKind]] = {
        "state": FieldKind.STRING,
        "signal_strength": FieldKind.INT32,
        "free_memory_bytes": FieldKind.INT64,
    }
    _KEY_ALIASES: ClassVar[dict[str, tuple[str, ...]]] = {
        "state": ("status",),
        "signal_strength": ("wifi_rssi",),
        "free_memory_bytes": ("free_heap",),
    }

    state: str = ""
    signal_strength: int = 0
    free_memory_bytes: int = 0

    @property
    def free_memory_kib(self) -> int:
        """Free heap in whole KiB."""
        return self.free_memory_bytes // 1024
