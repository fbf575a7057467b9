"""Client-side generation of chronologically ordered push keys."""

from __future__ import annotations

import secrets
import threading
import time
from collections.abc import Callable

from pyturbidity._constants import PUSH_CHARS, PUSH_RANDOM_CHARS, PUSH_TIME_CHARS


def _now_ms() -> int:
    return int(time.time() * 1000)


class PushIdGenerator:
    """Generate 20-character keys that sort by creation time.

    The first 8 characters encode the epoch-millisecond timestamp, the
    remaining 12 are random.  Keys generated within the same millisecond
    reuse the previous random part incremented by one, so they stay
    strictly increasing.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._last_time = -1
        self._last_random: list[int] = []

    def __call__(self) -> str:
        with self._lock:
            now = self._clock()
            if now == self._last_time and self._last_random:
                self._increment_random()
            else:
                self._last_random = [secrets.randbelow(len(PUSH_CHARS)) for _ in range(PUSH_RANDOM_CHARS)]
            self._last_time = now

            time_chars: list[str] = []
            remaining = now
            for _ in range(PUSH_TIME_CHARS):
                time_chars.append(PUSH_CHARS[remaining % 64])
                remaining //= 64
            if remaining:
                raise ValueError(f"timestamp {now} does not fit in a push key")

            return "".join(reversed(time_chars)) + "".join(PUSH_CHARS[index] for index in self._last_random)

    def _increment_random(self) -> None:
        digits = self._last_random
        position = len(digits) - 1
        while position >= 0 and digits[position] == 63:
            digits[position] = 0
            position -= 1
        if position >= 0:
            digits[position] += 1
