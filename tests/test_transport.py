from __future__ import annotations

import json
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import pytest

from pyturbidity._transport import RtdbTransport, StreamEvent, parse_sse
from pyturbidity.config import TurbidityConfig
from pyturbidity.exceptions import TurbidityTransportError


async def _lines(*lines: bytes) -> AsyncIterator[bytes]:
    for line in lines:
        yield line


async def _collect(lines: AsyncIterator[bytes]) -> list[StreamEvent]:
    return [event async for event in parse_sse(lines)]


@pytest.mark.asyncio
async def test_parse_sse_decodes_firebase_events() -> None:
    events = await _collect(
        _lines(
            b"event: put\n",
            b'data: {"path":"/","data":{"turbidity":12.5}}\n',
            b"\n",
            b"event: keep-alive\n",
            b"data: null\n",
            b"\n",
            b"event: cancel\n",
            b"data: Permission denied\n",
            b"\n",
        )
    )

    assert events == [
        StreamEvent(event="put", data={"path": "/", "data": {"turbidity": 12.5}}),
        StreamEvent(event="keep-alive", data=None),
        StreamEvent(event="cancel", data="Permission denied"),
    ]


@pytest.mark.asyncio
async def test_parse_sse_handles_crlf_comments_and_unterminated_event() -> None:
    events = await _collect(
        _lines(
            b": comment\r\n",
            b"event:patch\r\n",
            b'data: {"path":"/a",\r\n',
            b'data: "data":{"b":1}}\r\n',
            b"\r\n",
            b"event: put\n",
            b'data: {"path":"/","data":null}\n',
        )
    )

    assert events == [
        StreamEvent(event="patch", data={"path": "/a", "data": {"b": 1}}),
        StreamEvent(event="put", data={"path": "/", "data": None}),
    ]


# ------------------------------------------------------------------
# RtdbTransport
# ------------------------------------------------------------------


class _FakeResponse:
    def __init__(self, status: int, text: str = "") -> None:
        self.status = status
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


@dataclass
class _FakeHttpSession:
    status: int = 200
    body: str = ""
    calls: list[tuple[str, str, dict[str, str]]] = field(default_factory=list)

    def put(self, url: str, *, data: str, headers: dict[str, str], timeout: Any) -> _FakeResponse:
        self.calls.append((url, data, headers))
        return _FakeResponse(self.status, self.body)


def _config(**kwargs: Any) -> TurbidityConfig:
    return TurbidityConfig(database_url="https://turbidity-demo.firebaseio.com/", **kwargs)


def test_url_for_appends_json_suffix_and_auth() -> None:
    transport = RtdbTransport(_config(auth_token="tok"), _FakeHttpSession())  # type: ignore[arg-type]

    assert transport.url_for("/readings/1700000000000/") == (
        "https://turbidity-demo.firebaseio.com/readings/1700000000000.json?auth=tok"
    )
    assert transport.url_for("latest", print="silent") == (
        "https://turbidity-demo.firebaseio.com/latest.json?print=silent&auth=tok"
    )
    assert transport.url_for("") == "https://turbidity-demo.firebaseio.com/.json?auth=tok"


def test_url_for_without_auth_has_no_query() -> None:
    transport = RtdbTransport(_config(), _FakeHttpSession())  # type: ignore[arg-type]
    assert transport.url_for("a b") == "https://turbidity-demo.firebaseio.com/a%20b.json"


@pytest.mark.asyncio
async def test_put_json_sends_compact_body() -> None:
    session = _FakeHttpSession()
    transport = RtdbTransport(_config(), session)  # type: ignore[arg-type]

    await transport.put_json("latest", {"turbidity": 12.5})

    [(url, body, headers)] = session.calls
    assert url.endswith("/latest.json?print=silent")
    assert json.loads(body) == {"turbidity": 12.5}
    assert " " not in body
    assert headers["content-type"].startswith("application/json")


@pytest.mark.asyncio
async def test_put_json_raises_on_http_error() -> None:
    session = _FakeHttpSession(status=401, body='{"error":"Permission denied"}')
    transport = RtdbTransport(_config(), session)  # type: ignore[arg-type]

    with pytest.raises(TurbidityTransportError) as excinfo:
        await transport.put_json("alerts/1", {"type": "high_turbidity"})

    assert excinfo.value.status_code == 401
    assert excinfo.value.path == "alerts/1"
    assert "Permission denied" in str(excinfo.value)
