"""Write pipeline for submitted measurements.

A submission is an ordered sequence of independent writes (current value,
history entry, optional alert).  Each write is awaited before the next
one starts.  There is no transaction: a failure aborts the remaining
steps but leaves completed ones in place.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pyturbidity._constants import INT32_MAX, INT32_MIN
from pyturbidity.config import SchemaVariant, TurbidityConfig
from pyturbidity.exceptions import TurbidityInvalidInputError, TurbidityRemoteWriteError, TurbidityWriteError
from pyturbidity.store.base import RemoteStore

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class WriteStep(StrEnum):
    LATEST = "latest"
    HISTORY = "history"
    ALERT = "alert"


@dataclass(frozen=True)
class SubmitResult:
    """Outcome of :meth:`WritePipeline.submit`.

    ``steps`` lists the writes that completed, in order.  On failure it
    shows exactly which documents were already updated.
    """

    error: TurbidityWriteError | None = None
    value: float | int | None = None
    timestamp: str = ""
    history_key: str = ""
    steps: tuple[WriteStep, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def alerted(self) -> bool:
        return WriteStep.ALERT in self.steps

    def raise_for_error(self) -> None:
        """Raise the stored error, if any."""
        if self.error is not None:
            raise self.error


class WritePipeline:
    """Parse a raw value and write it through the configured paths."""

    def __init__(
        self,
        store: RemoteStore,
        config: TurbidityConfig,
        *,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._store = store
        self._config = config
        self._clock = clock or _now_ms

    def parse(self, raw_input: str) -> float | int:
        """Parse *raw_input* for the configured schema.

        Raises :class:`TurbidityInvalidInputError` for blank, non-numeric
        or non-finite input.
        """
        text = (raw_input or "").strip()
        if not text:
            raise TurbidityInvalidInputError(self._config.blank_input_message, raw_input=raw_input)
        invalid = TurbidityInvalidInputError("Please enter a valid number", raw_input=raw_input)
        # float()/int() accept digit separators; the store's other clients do not.
        if "_" in text:
            raise invalid

        if self._config.schema == SchemaVariant.HISTORY_ENTRY:
            try:
                number = int(text)
            except ValueError:
                raise invalid from None
            if not INT32_MIN <= number <= INT32_MAX:
                raise invalid
            return number

        try:
            value = float(text)
        except ValueError:
            raise invalid from None
        if not math.isfinite(value):
            raise invalid
        return value

    async def submit(
        self,
        raw_input: str,
        *,
        threshold: float | None = None,
        source_id: str | None = None,
    ) -> SubmitResult:
        """Validate and write one measurement.

        Never raises for validation or write failures; they are returned
        in :attr:`SubmitResult.error`.
        """
        try:
            value = self.parse(raw_input)
        except TurbidityInvalidInputError as exc:
            _logger.debug("Rejected input %r: %s", raw_input, exc)
            return SubmitResult(error=exc)

        limit = self._config.alert_threshold if threshold is None else threshold
        source = self._config.resolved_source_id if source_id is None else source_id
        now_ms = self._clock()
        timestamp = str(now_ms)
        paths = self._config.resolved_paths
        metric = self._config.metric

        completed: list[WriteStep] = []
        history_key = ""

        async def _write(step: WriteStep, path: str, child_key: str | None, document: Any) -> None:
            _logger.debug("Write step=%s path=%s key=%s", step, path, child_key)
            try:
                if child_key is None:
                    await self._store.set(path, document)
                else:
                    await self._store.set_child(path, child_key, document)
            except Exception as exc:
                target = f"{path}/{child_key}" if child_key is not None else path
                raise TurbidityRemoteWriteError(
                    f"Writing {step} to {target} failed: {exc}",
                    step=step,
                    path=target,
                ) from exc
            completed.append(step)

        try:
            if self._config.schema == SchemaVariant.HISTORY_ENTRY:
                await _write(WriteStep.LATEST, paths.latest, None, value)
                try:
                    history_key = self._store.generate_unique_child_key(paths.history)
                except Exception as exc:
                    raise TurbidityRemoteWriteError(
                        f"Generating a key under {paths.history} failed: {exc}",
                        step=WriteStep.HISTORY,
                        path=paths.history,
                    ) from exc
                await _write(
                    WriteStep.HISTORY,
                    paths.history,
                    history_key,
                    {"value": value, "timestamp": now_ms, "source": source},
                )
            else:
                await _write(WriteStep.LATEST, paths.latest, None, {metric: value})
                history_key = timestamp
                await _write(
                    WriteStep.HISTORY,
                    paths.history,
                    history_key,
                    {
                        metric: value,
                        "timestamp": timestamp,
                        "unit": self._config.unit,
                        "device_id": source,
                    },
                )

            if paths.alerts and value > limit:
                await _write(
                    WriteStep.ALERT,
                    paths.alerts,
                    timestamp,
                    {
                        "type": self._config.alert_kind,
                        "value": value,
                        "message": f"High {metric} detected from {source}: {value} {self._config.unit}",
                    },
                )
        except TurbidityRemoteWriteError as exc:
            _logger.warning("Submission aborted after steps=%s: %s", [str(step) for step in completed], exc)
            return SubmitResult(
                error=exc,
                value=value,
                timestamp=timestamp,
                history_key=history_key,
                steps=tuple(completed),
            )

        _logger.debug("Submitted value=%s timestamp=%s steps=%s", value, timestamp, completed)
        return SubmitResult(value=value, timestamp=timestamp, history_key=history_key, steps=tuple(completed))
