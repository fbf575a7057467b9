"""HTTP transport for the Firebase Realtime Database REST API.

Writes are plain ``PUT`` requests; subscriptions use the REST streaming
endpoint, which answers with ``text/event-stream``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote, urlencode

import aiohttp

from pyturbidity._constants import STREAM_IDLE_TIMEOUT
from pyturbidity._paths import normalize_path
from pyturbidity._redact import redact_for_log, redact_url
from pyturbidity.config import TurbidityConfig
from pyturbidity.exceptions import TurbidityTransportError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamEvent:
    """One server-sent event.

    ``data`` is the JSON-decoded payload, or the raw text when it is not
    JSON (``cancel`` events may carry a plain message).
    """

    event: str
    data: Any


class Transport(Protocol):
    """Structural transport interface used by :class:`RtdbStore`.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`RtdbTransport`) concrete.
    """

    async def put_json(self, path: str, value: Any) -> None:
        ...

    def stream(self, path: str) -> AsyncIterator[StreamEvent]:
        ...


def _decode_data(lines: list[str]) -> Any:
    text = "\n".join(lines)
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


async def parse_sse(lines: AsyncIterable[bytes]) -> AsyncIterator[StreamEvent]:
    """Parse raw ``text/event-stream`` lines into :class:`StreamEvent` objects."""
    event = ""
    data_lines: list[str] = []
    async for raw_line in lines:
        line = raw_line.decode("utf-8", errors="replace").rstrip("\r\n")
        if not line:
            if event or data_lines:
                yield StreamEvent(event=event or "message", data=_decode_data(data_lines))
            event = ""
            data_lines = []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            event = value
        elif name == "data":
            data_lines.append(value)
    if event or data_lines:
        yield StreamEvent(event=event or "message", data=_decode_data(data_lines))


class RtdbTransport:
    """REST transport bound to one database and auth token."""

    def __init__(self, config: TurbidityConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._base_url = config.database_url.strip().rstrip("/")

    def url_for(self, path: str, **params: str) -> str:
        """Build the ``.json`` URL for *path*, with auth and extra query params."""
        segments = normalize_path(path)
        url = f"{self._base_url}/{quote(segments)}.json" if segments else f"{self._base_url}/.json"
        query = dict(params)
        if self._config.auth_token:
            query["auth"] = self._config.auth_token
        if query:
            url = f"{url}?{urlencode(query)}"
        return url

    async def put_json(self, path: str, value: Any) -> None:
        """Replace the value at *path*."""
        url = self.url_for(path, print="silent")
        body = json.dumps(value, separators=(",", ":"), allow_nan=False)
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("PUT %s body=%s", redact_url(url), redact_for_log(value))

        try:
            async with self._http.put(
                url,
                data=body,
                headers={"content-type": "application/json; charset=UTF-8"},
                timeout=timeout,
            ) as resp:
                if not 200 <= resp.status < 300:
                    text = await resp.text()
                    raise TurbidityTransportError(
                        f"HTTP {resp.status} writing {path}: {text[:200]}",
                        status_code=resp.status,
                        path=path,
                    )
        except TurbidityTransportError:
            raise
        except TimeoutError as exc:
            raise TurbidityTransportError(f"Write to {path} timed out", path=path) from exc
        except aiohttp.ClientError as exc:
            raise TurbidityTransportError(f"Write to {path} failed: {exc}", path=path) from exc

    async def stream(self, path: str) -> AsyncIterator[StreamEvent]:
        """Open a streaming listener on *path* and yield its events.

        The generator ends when the server closes the connection.
        """
        url = self.url_for(path)
        timeout = aiohttp.ClientTimeout(
            total=None,
            sock_connect=self._config.request_timeout,
            sock_read=STREAM_IDLE_TIMEOUT,
        )

        _logger.debug("STREAM %s", redact_url(url))

        try:
            async with self._http.get(
                url,
                headers={"accept": "text/event-stream"},
                timeout=timeout,
            ) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise TurbidityTransportError(
                        f"HTTP {resp.status} listening to {path}: {text[:200]}",
                        status_code=resp.status,
                        path=path,
                    )
                async for event in parse_sse(resp.content):
                    yield event
        except TurbidityTransportError:
            raise
        except TimeoutError as exc:
            raise TurbidityTransportError(f"Stream for {path} went idle", path=path) from exc
        except aiohttp.ClientError as exc:
            raise TurbidityTransportError(f"Stream for {path} failed: {exc}", path=path) from exc
