"""Remote store contract consumed by the sync core.

Having a protocol here makes it easy to pass test doubles while keeping
the production implementation (:class:`pyturbidity.store.rtdb.RtdbStore`)
concrete.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

ChangeCallback = Callable[[Any], None]
"""Receives the full current subtree of the watched path (``None`` when empty)."""

ErrorCallback = Callable[[Exception], None]
"""Receives the error that ended a subscription."""

_token_ids = itertools.count(1)


@dataclass(eq=False)
class SubscriptionToken:
    """Opaque registration returned by :meth:`RemoteStore.subscribe`."""

    path: str
    id: int = field(default_factory=lambda: next(_token_ids))
    cancelled: bool = False


class RemoteStore(Protocol):
    """Path-addressable realtime document store."""

    def subscribe(self, path: str, on_change: ChangeCallback, on_error: ErrorCallback) -> SubscriptionToken:
        """Watch *path*.

        ``on_change`` fires once with the current value and again after
        every change to the path or its descendants.  Callbacks may arrive
        on any thread.
        """
        ...

    def unsubscribe(self, token: SubscriptionToken) -> None:
        ...

    async def set(self, path: str, value: Any) -> None:
        ...

    async def set_child(self, path: str, child_key: str, value: Any) -> None:
        ...

    def generate_unique_child_key(self, path: str) -> str:
        ...
