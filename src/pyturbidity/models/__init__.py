"""Record models decoded from realtime database documents."""

from pyturbidity.models._base import TurbidityBaseModel, millis_to_datetime
from pyturbidity.models.alert import Alert
from pyturbidity.models.device_status import DeviceStatus
from pyturbidity.models.history import HistoryEntry
from pyturbidity.models.measurement import Measurement

__all__ = [
    "Alert",
    "DeviceStatus",
    "HistoryEntry",
    "Measurement",
    "TurbidityBaseModel",
    "millis_to_datetime",
]
