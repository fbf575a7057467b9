"""Realtime synchronization controller."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from pyturbidity._sync.registry import SubscriptionHandle, SubscriptionRegistry
from pyturbidity._sync.writes import SubmitResult, WritePipeline
from pyturbidity.config import TurbidityConfig
from pyturbidity.ingestion.decoder import RecordKind, decode, decode_children, decode_current, history_kind
from pyturbidity.ingestion.history import project_tree
from pyturbidity.models import Alert, DeviceStatus, HistoryEntry, Measurement
from pyturbidity.sinks import SyncSinks
from pyturbidity.store.base import RemoteStore

_logger = logging.getLogger(__name__)


class ControllerState(StrEnum):
    STOPPED = "stopped"
    LISTENING = "listening"


class SyncController:
    """Mirror the watched documents into sinks and submit new readings.

    Usage::

        async with RtdbStore(config) as store:
            async with SyncController(store, config, sinks) as controller:
                result = await controller.submit_measurement("1500")

    Store callbacks may arrive on any thread; sinks are always invoked on
    the controller's event loop.  A submission does not update local state
    itself: the new values arrive through the subscriptions like any other
    writer's.
    """

    def __init__(
        self,
        store: RemoteStore,
        config: TurbidityConfig,
        sinks: SyncSinks | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._store = store
        self._config = config
        self._sinks = sinks or SyncSinks()
        self._loop = loop
        self._registry: SubscriptionRegistry | None = None
        self._handle: SubscriptionHandle | None = None
        self._routes: dict[str, Callable[[Any], None]] = {}
        self._pipeline = WritePipeline(store, config, clock=clock)

        self._current: Measurement | None = None
        self._history: tuple[Measurement, ...] | tuple[HistoryEntry, ...] = ()
        self._device_status: DeviceStatus | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SyncController:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> ControllerState:
        if self._handle is not None and self._handle.active:
            return ControllerState.LISTENING
        return ControllerState.STOPPED

    @property
    def current(self) -> Measurement | None:
        """Last current-value delivery."""
        return self._current

    @property
    def history(self) -> tuple[Measurement, ...] | tuple[HistoryEntry, ...]:
        """Most recently projected history, newest first."""
        return self._history

    @property
    def device_status(self) -> DeviceStatus | None:
        return self._device_status

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Subscribe to every configured path.

        Legal while already listening: the previous subscriptions are torn
        down before the new ones are registered.
        """
        if self._registry is None:
            loop = self._loop or asyncio.get_running_loop()
            self._registry = SubscriptionRegistry(self._store, loop=loop)

        paths = self._config.resolved_paths
        routes: dict[str, Callable[[Any], None]] = {
            paths.latest: self._handle_latest,
            paths.history: self._handle_history,
        }
        if paths.device_status:
            routes[paths.device_status] = self._handle_device_status
        if paths.alerts:
            routes[paths.alerts] = self._handle_alerts
        self._routes = routes

        self._handle = self._registry.start(paths.watched(), self._on_change, self._on_error)
        _logger.debug("Controller listening paths=%s", self._handle.paths)
        self._notify_connection(self._config.listening_message, True)

    def stop(self) -> None:
        """Cancel all subscriptions and report the disconnection.

        In-flight submissions are not affected.
        """
        if self._registry is not None:
            self._registry.stop(self._handle)
        self._handle = None
        _logger.debug("Controller stopped")
        self._notify_connection("Stopped listening", False)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def submit_measurement(
        self,
        raw_input: str,
        *,
        threshold: float | None = None,
        source_id: str | None = None,
    ) -> SubmitResult:
        """Validate and write a new reading; see :class:`WritePipeline`."""
        return await self._pipeline.submit(raw_input, threshold=threshold, source_id=source_id)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def _on_change(self, path: str, tree: Any) -> None:
        route = self._routes.get(path)
        if route is None:
            _logger.debug("No route for path=%s", path)
            return
        route(tree)

    def _on_error(self, path: str, error: Exception) -> None:
        _logger.warning("Listener on %s cancelled: %s", path, error)
        self._notify_connection(f"{path} listener cancelled: {error}", False)

    def _handle_latest(self, tree: Any) -> None:
        measurement = decode_current(tree, self._config.schema, value_key=self._config.metric)
        self._current = measurement
        self._emit(self._sinks.on_current_value, measurement)

    def _handle_history(self, tree: Any) -> None:
        records = project_tree(tree, history_kind(self._config.schema), value_key=self._config.metric)
        self._history = tuple(records)  # type: ignore[assignment]
        self._emit(self._sinks.on_history, list(records))

    def _handle_device_status(self, tree: Any) -> None:
        status = decode(tree, RecordKind.DEVICE_STATUS)
        assert isinstance(status, DeviceStatus)  # noqa: S101
        self._device_status = status
        self._emit(self._sinks.on_device_status, status)

    def _handle_alerts(self, tree: Any) -> None:
        for alert in decode_children(tree, RecordKind.ALERT):
            assert isinstance(alert, Alert)  # noqa: S101
            if not alert.is_valid:
                _logger.debug("Suppressed alert without kind raw=%s", alert.raw)
                continue
            self._emit(self._sinks.on_alert, alert)

    def _notify_connection(self, message: str, connected: bool) -> None:
        self._emit(self._sinks.on_connection_status, message, connected)

    @staticmethod
    def _emit(sink: Callable[..., None], *args: Any) -> None:
        try:
            sink(*args)
        except Exception:
            _logger.exception("Sink %s failed", getattr(sink, "__name__", sink))
