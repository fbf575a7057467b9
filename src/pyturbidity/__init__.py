"""pyturbidity - Async realtime sync client for turbidity sensor data."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyturbidity")
except PackageNotFoundError:
    __version__ = "0+local"
from pyturbidity._sync.writes import SubmitResult, WriteStep
from pyturbidity.config import SchemaVariant, SyncPaths, TurbidityConfig
from pyturbidity.controller import ControllerState, SyncController
from pyturbidity.exceptions import (
    TurbidityConfigError,
    TurbidityError,
    TurbidityInvalidInputError,
    TurbidityRemoteWriteError,
    TurbiditySubscriptionError,
    TurbidityTransportError,
    TurbidityWriteError,
)
from pyturbidity.ingestion.decoder import RecordKind, decode, decode_children, decode_current
from pyturbidity.ingestion.history import project, project_tree
from pyturbidity.models import Alert, DeviceStatus, HistoryEntry, Measurement
from pyturbidity.sinks import SyncSinks
from pyturbidity.store import RemoteStore, RtdbStore, SubscriptionToken

__all__ = [
    "__version__",
    "Alert",
    "ControllerState",
    "DeviceStatus",
    "HistoryEntry",
    "Measurement",
    "RecordKind",
    "RemoteStore",
    "RtdbStore",
    "SchemaVariant",
    "SubmitResult",
    "SubscriptionToken",
    "SyncController",
    "SyncPaths",
    "SyncSinks",
    "TurbidityConfig",
    "TurbidityConfigError",
    "TurbidityError",
    "TurbidityInvalidInputError",
    "TurbidityRemoteWriteError",
    "TurbiditySubscriptionError",
    "TurbidityTransportError",
    "TurbidityWriteError",
    "WriteStep",
    "decode",
    "decode_children",
    "decode_current",
    "project",
    "project_tree",
]
