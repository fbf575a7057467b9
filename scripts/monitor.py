#!/usr/bin/env python3
"""Live monitor for a turbidity realtime database.

Subscribes to the configured paths and prints every decoded delivery
(current value, history, device status, alerts, connection status).
Optionally submits one or more readings first, exercising the same
write pipeline as the app.

Configuration comes from ``TURBIDITY_*`` environment variables; see
:meth:`pyturbidity.TurbidityConfig.from_env`.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyturbidity import (  # noqa: E402
    Alert,
    DeviceStatus,
    HistoryEntry,
    Measurement,
    RtdbStore,
    SchemaVariant,
    SyncController,
    SyncSinks,
    TurbidityConfig,
    TurbidityError,
)

_LOG = logging.getLogger("turbidity_monitor")


@dataclass
class MonitorStats:
    started_at: float
    deliveries: int = 0
    alerts: int = 0
    errors: int = 0


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print live turbidity data from a Firebase Realtime Database.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--submit",
        action="append",
        default=[],
        metavar="VALUE",
        help="Submit a reading before listening (repeatable).",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Alert threshold override for --submit.",
    )
    parser.add_argument(
        "--schema",
        choices=[variant.value for variant in SchemaVariant],
        default=None,
        help="Document layout (default: TURBIDITY_SCHEMA or measurement).",
    )
    parser.add_argument(
        "--history-limit",
        type=int,
        default=10,
        help="Number of history rows to print per delivery.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _fmt_time(millis: int) -> str:
    if millis <= 0:
        return "?"
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(millis / 1000.0))


def _build_sinks(stats: MonitorStats, history_limit: int) -> SyncSinks:
    def on_current(measurement: Measurement) -> None:
        stats.deliveries += 1
        unit = f" {measurement.unit}" if measurement.unit else ""
        print(f"[monitor] current  : {measurement.value}{unit}")

    def on_history(records: Sequence[Measurement] | Sequence[HistoryEntry]) -> None:
        stats.deliveries += 1
        print(f"[monitor] history  : {len(records)} record(s)")
        for record in records[:history_limit]:
            if isinstance(record, HistoryEntry):
                print(f"[monitor]   {_fmt_time(record.timestamp_millis)}  {record.value:>8}  {record.source}")
            else:
                print(
                    f"[monitor]   {_fmt_time(record.recency_key)}  {record.value:>8} {record.unit}  {record.source_id}"
                )

    def on_device_status(status: DeviceStatus) -> None:
        stats.deliveries += 1
        print(
            f"[monitor] device   : state={status.state or '?'} rssi={status.signal_strength}dBm "
            f"free={status.free_memory_kib}KB"
        )

    def on_alert(alert: Alert) -> None:
        stats.alerts += 1
        print(f"[monitor] ALERT    : {alert.kind} value={alert.value} {alert.message}")

    def on_connection_status(message: str, connected: bool) -> None:
        if not connected:
            stats.errors += 1
        print(f"[monitor] status   : {message} (connected={connected})")

    return SyncSinks(
        on_current_value=on_current,
        on_history=on_history,
        on_device_status=on_device_status,
        on_alert=on_alert,
        on_connection_status=on_connection_status,
    )


def _print_summary(stats: MonitorStats) -> None:
    runtime = time.time() - stats.started_at
    print("[monitor] Summary")
    print(f"[monitor]   runtime_s  : {runtime:.1f}")
    print(f"[monitor]   deliveries : {stats.deliveries}")
    print(f"[monitor]   alerts     : {stats.alerts}")
    print(f"[monitor]   errors     : {stats.errors}")


async def _run(args: argparse.Namespace, config: TurbidityConfig, stats: MonitorStats) -> int:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop_event.set)
        except NotImplementedError:  # pragma: no cover - Windows
            pass

    sinks = _build_sinks(stats, args.history_limit)
    exit_code = 0
    async with RtdbStore(config) as store, SyncController(store, config, sinks) as controller:
        for raw in args.submit:
            result = await controller.submit_measurement(raw, threshold=args.threshold)
            if result.ok:
                print(f"[monitor] submitted: {result.value} key={result.history_key} alert={result.alerted}")
            else:
                print(f"[monitor] submit failed: {result.error}", file=sys.stderr)
                exit_code = 1

        timeout = args.duration if args.duration > 0 else None
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=timeout)
        except TimeoutError:
            print(f"[monitor] Reached --duration={args.duration}s, stopping.")
    return exit_code


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = {"schema": SchemaVariant(args.schema)} if args.schema else {}
    try:
        config = TurbidityConfig.from_env(**overrides)
        config.validate()
    except TurbidityError as exc:
        print(f"[monitor] Invalid configuration: {exc}", file=sys.stderr)
        return 2

    _LOG.debug("Monitoring %s paths=%s", config.database_url, config.resolved_paths.watched())
    stats = MonitorStats(started_at=time.time())
    try:
        exit_code = asyncio.run(_run(args, config, stats))
    except TurbidityError as exc:  # pragma: no cover - network/system interaction
        print(f"[monitor] Failed: {exc}", file=sys.stderr)
        exit_code = 2

    _print_summary(stats)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(_main())
