"""Firebase Realtime Database implementation of :class:`RemoteStore`."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp

from pyturbidity._paths import join_path, normalize_path
from pyturbidity._transport import RtdbTransport, StreamEvent, Transport
from pyturbidity.config import TurbidityConfig
from pyturbidity.exceptions import TurbidityError, TurbiditySubscriptionError, TurbidityTransportError
from pyturbidity.store.base import ChangeCallback, ErrorCallback, SubscriptionToken
from pyturbidity.store.push_ids import PushIdGenerator
from pyturbidity.store.tree import apply_patch, apply_put, ordered_snapshot

_logger = logging.getLogger(__name__)


class RtdbStore:
    """Async client for one Realtime Database.

    Each subscription runs its own streaming request in a task on the
    event loop; ``subscribe`` and ``unsubscribe`` must therefore be
    called from the loop's thread.

    Usage::

        async with RtdbStore(config) as store:
            token = store.subscribe("latest", on_change, on_error)
            await store.set("latest", {"turbidity": 12.5})
    """

    def __init__(
        self,
        config: TurbidityConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        push_ids: Callable[[], str] | None = None,
    ) -> None:
        config.validate()
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._push_ids = push_ids or PushIdGenerator()
        self._streams: dict[int, tuple[SubscriptionToken, asyncio.Task[None]]] = {}

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RtdbStore:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = RtdbTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close_streams()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    async def close_streams(self) -> None:
        """Cancel every live subscription and wait for the streams to close."""
        streams = list(self._streams.values())
        for token, _task in streams:
            self.unsubscribe(token)
        tasks = [task for _token, task in streams]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise TurbidityError("Store not initialized. Use 'async with RtdbStore(...) as store:'")
        return self._transport

    @property
    def active_subscriptions(self) -> int:
        return len(self._streams)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, path: str, on_change: ChangeCallback, on_error: ErrorCallback) -> SubscriptionToken:
        """Start streaming *path*; see :meth:`RemoteStore.subscribe`."""
        transport = self._require_transport()
        token = SubscriptionToken(path=normalize_path(path))
        task = asyncio.get_running_loop().create_task(
            self._listen(transport, token, on_change, on_error),
            name=f"rtdb-stream:{token.path}",
        )
        self._streams[token.id] = (token, task)
        _logger.debug("Subscribed path=%s token=%s", token.path, token.id)
        return token

    def unsubscribe(self, token: SubscriptionToken) -> None:
        token.cancelled = True
        entry = self._streams.pop(token.id, None)
        if entry is None:
            return
        _task_token, task = entry
        if not task.done():
            task.cancel()
        _logger.debug("Unsubscribed path=%s token=%s", token.path, token.id)

    async def _listen(
        self,
        transport: Transport,
        token: SubscriptionToken,
        on_change: ChangeCallback,
        on_error: ErrorCallback,
    ) -> None:
        tree: Any = None
        try:
            async for event in transport.stream(token.path):
                if token.cancelled:
                    return
                if event.event in ("put", "patch"):
                    tree = self._apply_event(tree, event, token.path)
                    self._deliver(token, on_change, ordered_snapshot(tree))
                elif event.event in ("cancel", "auth_revoked"):
                    reason = event.data if isinstance(event.data, str) and event.data else event.event
                    raise TurbiditySubscriptionError(
                        f"Listener on {token.path} cancelled by server: {reason}",
                        path=token.path,
                    )
                elif event.event != "keep-alive":
                    _logger.debug("Ignoring stream event=%s path=%s", event.event, token.path)
            raise TurbidityTransportError(f"Stream for {token.path} closed by server", path=token.path)
        except TurbidityError as exc:
            if token.cancelled:
                return
            _logger.warning("Subscription to %s ended: %s", token.path, exc)
            try:
                on_error(exc)
            except Exception:
                _logger.exception("on_error callback failed for path=%s", token.path)
        finally:
            entry = self._streams.get(token.id)
            if entry is not None and entry[0] is token:
                self._streams.pop(token.id, None)

    @staticmethod
    def _apply_event(tree: Any, event: StreamEvent, path: str) -> Any:
        payload = event.data
        if not isinstance(payload, Mapping):
            raise TurbidityTransportError(f"Invalid {event.event} payload on {path}: {payload!r:.100}", path=path)
        relative = payload.get("path")
        relative = relative if isinstance(relative, str) else "/"
        if event.event == "put":
            return apply_put(tree, relative, payload.get("data"))
        return apply_patch(tree, relative, payload.get("data"))

    @staticmethod
    def _deliver(token: SubscriptionToken, on_change: ChangeCallback, snapshot: Any) -> None:
        if token.cancelled:
            return
        try:
            on_change(snapshot)
        except Exception:
            _logger.exception("on_change callback failed for path=%s", token.path)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def set(self, path: str, value: Any) -> None:
        await self._require_transport().put_json(normalize_path(path), value)

    async def set_child(self, path: str, child_key: str, value: Any) -> None:
        await self._require_transport().put_json(join_path(path, child_key), value)

    def generate_unique_child_key(self, path: str) -> str:
        return self._push_ids()
