from __future__ import annotations

import itertools
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import pytest

from pyturbidity.config import TurbidityConfig
from pyturbidity.exceptions import TurbidityTransportError
from pyturbidity.store.base import ChangeCallback, ErrorCallback, SubscriptionToken


@dataclass
class FakeStore:
    """In-memory :class:`RemoteStore` double.

    Writes to a path listed in ``fail_on`` (or below it) raise a transport
    error; listeners are only invoked through :meth:`emit`.
    """

    fail_on: set[str] = field(default_factory=set)
    attempts: list[str] = field(default_factory=list)
    writes: list[tuple[str, Any]] = field(default_factory=list)
    subscribe_calls: list[str] = field(default_factory=list)
    unsubscribed: list[SubscriptionToken] = field(default_factory=list)
    listeners: dict[int, tuple[SubscriptionToken, ChangeCallback, ErrorCallback]] = field(default_factory=dict)
    _push_counter: Iterator[int] = field(default_factory=lambda: itertools.count(1))

    def subscribe(self, path: str, on_change: ChangeCallback, on_error: ErrorCallback) -> SubscriptionToken:
        token = SubscriptionToken(path=path)
        self.subscribe_calls.append(path)
        self.listeners[token.id] = (token, on_change, on_error)
        return token

    def unsubscribe(self, token: SubscriptionToken) -> None:
        token.cancelled = True
        self.unsubscribed.append(token)
        self.listeners.pop(token.id, None)

    async def set(self, path: str, value: Any) -> None:
        self._write(path, value)

    async def set_child(self, path: str, child_key: str, value: Any) -> None:
        self._write(f"{path}/{child_key}", value)

    def generate_unique_child_key(self, path: str) -> str:
        return f"-Push{next(self._push_counter)}"

    def _write(self, path: str, value: Any) -> None:
        self.attempts.append(path)
        for failing in self.fail_on:
            if path == failing or path.startswith(f"{failing}/"):
                raise TurbidityTransportError(f"HTTP 401 writing {path}", status_code=401, path=path)
        self.writes.append((path, value))

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def callbacks_for(self, path: str) -> list[tuple[ChangeCallback, ErrorCallback]]:
        return [(on_change, on_error) for token, on_change, on_error in self.listeners.values() if token.path == path]

    def emit(self, path: str, tree: Any) -> None:
        for on_change, _on_error in self.callbacks_for(path):
            on_change(tree)

    def emit_error(self, path: str, error: Exception) -> None:
        for _on_change, on_error in self.callbacks_for(path):
            on_error(error)

    def listener_count(self, path: str) -> int:
        return len(self.callbacks_for(path))


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def config() -> TurbidityConfig:
    return TurbidityConfig(database_url="https://turbidity-demo.firebaseio.com")
