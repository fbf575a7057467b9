"""Subscription registry.

Owns the set of live path subscriptions for one controller:

- ``start`` always tears the previous set down before registering a new one
- ``stop`` is idempotent and guarantees no further delivery for the handle
- callbacks from foreign threads are marshaled onto the event loop
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from pyturbidity.exceptions import TurbidityError
from pyturbidity.store.base import RemoteStore, SubscriptionToken

_logger = logging.getLogger(__name__)

PathChangeCallback = Callable[[str, Any], None]
PathErrorCallback = Callable[[str, Exception], None]

_handle_ids = itertools.count(1)


@dataclass(eq=False)
class SubscriptionHandle:
    """Bundle of the registrations made by one ``start`` call."""

    tokens: dict[str, SubscriptionToken] = field(default_factory=dict)
    id: int = field(default_factory=lambda: next(_handle_ids))
    active: bool = True

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(self.tokens)


class SubscriptionRegistry:
    """Start/stop a set of store subscriptions as one unit."""

    def __init__(self, store: RemoteStore, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._store = store
        self._loop = loop
        self._current: SubscriptionHandle | None = None

    @property
    def current(self) -> SubscriptionHandle | None:
        return self._current

    def start(
        self,
        paths: Iterable[str],
        on_change: PathChangeCallback,
        on_error: PathErrorCallback,
    ) -> SubscriptionHandle:
        """Stop the previous handle, then subscribe once per distinct path.

        A path whose subscription cannot be registered is reported through
        *on_error* like any later listener failure: queued on the loop, so
        it arrives after ``start`` has returned.
        """
        self.stop(self._current)

        handle = SubscriptionHandle()
        self._current = handle
        failures: list[tuple[str, TurbidityError]] = []
        for path in dict.fromkeys(paths):
            try:
                token = self._store.subscribe(
                    path,
                    self._guard_change(handle, path, on_change),
                    self._guard_error(handle, path, on_error),
                )
            except TurbidityError as exc:
                _logger.warning("Subscribe to %s failed: %s", path, exc)
                failures.append((path, exc))
                continue
            handle.tokens[path] = token

        for path, exc in failures:
            self._guard_error(handle, path, on_error)(exc)

        _logger.debug("Registry started handle=%s paths=%s", handle.id, handle.paths)
        return handle

    def stop(self, handle: SubscriptionHandle | None) -> None:
        """Unsubscribe every registration of *handle*; no-op when already stopped."""
        if handle is None or not handle.active:
            return
        handle.active = False
        if self._current is handle:
            self._current = None
        for path, token in handle.tokens.items():
            try:
                self._store.unsubscribe(token)
            except TurbidityError:
                _logger.warning("Unsubscribe from %s failed", path, exc_info=True)
        _logger.debug("Registry stopped handle=%s", handle.id)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def _dispatch(self, handle: SubscriptionHandle, callback: Callable[[], None]) -> None:
        if not handle.active:
            return
        if self._loop is None:
            callback()
            return

        def _run() -> None:
            # The handle may have been stopped while this call was queued.
            if handle.active:
                callback()

        try:
            self._loop.call_soon_threadsafe(_run)
        except RuntimeError:
            _logger.debug("Dropping delivery for handle=%s: event loop is closed", handle.id)

    def _guard_change(
        self, handle: SubscriptionHandle, path: str, on_change: PathChangeCallback
    ) -> Callable[[Any], None]:
        def _on_change(tree: Any) -> None:
            self._dispatch(handle, lambda: on_change(path, tree))

        return _on_change

    def _guard_error(
        self, handle: SubscriptionHandle, path: str, on_error: PathErrorCallback
    ) -> Callable[[Exception], None]:
        def _on_error(error: Exception) -> None:
            self._dispatch(handle, lambda: on_error(path, error))

        return _on_error
