from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from liveupdate import (
    ConnectionStatus,
    LiveUpdateClient,
    LiveUpdateConfig,
    LiveUpdateTransportError,
    WebSocketTransport,
)

SURFACE = "screen2:surface_1"
OFFSET = {"x": 1, "y": 2, "z": 3}

MESSAGES = web.AppKey("messages", list[dict[str, Any]])
SETTINGS = web.AppKey("settings", dict[str, int])


async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


async def _liveupdate_handler(request: web.Request) -> web.WebSocketResponse:
    ws = web.WebSocketResponse()
    await ws.prepare(request)
    async for msg in ws:
        if msg.type != aiohttp.WSMsgType.TEXT:
            continue
        message: dict[str, Any] = json.loads(msg.data)
        request.app[MESSAGES].append(message)
        if "subscribe" in message:
            body = message["subscribe"]
            entries = [
                {"id": index, "objectPath": body["object"], "propertyPath": path}
                for index, path in enumerate(body["properties"])
            ]
            await ws.send_str(json.dumps({"subscriptions": entries}))
            await ws.send_str(json.dumps({"valuesChanged": [{"id": 0, "value": OFFSET}]}))
            close_code = request.app[SETTINGS]["close_code"]
            if close_code:
                await ws.close(code=close_code)
    return ws


@pytest_asyncio.fixture
async def live_server() -> AsyncIterator[TestServer]:
    app = web.Application()
    app[MESSAGES] = []
    app[SETTINGS] = {"close_code": 0}
    app.router.add_get("/api/session/liveupdate", _liveupdate_handler)
    server = TestServer(app)
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


def _config(server: TestServer) -> LiveUpdateConfig:
    return LiveUpdateConfig(director=f"{server.host}:{server.port}", connect_timeout=2.0)


@pytest.mark.asyncio
async def test_connect_subscribe_and_receive(live_server: TestServer) -> None:
    statuses: list[ConnectionStatus] = []
    async with LiveUpdateClient(
        _config(live_server),
        {"updateFrequencyMs": 50},
        on_status_change=lambda status, _reason: statuses.append(status),
    ) as client:
        sub = client.auto_subscribe(SURFACE, ["object.offset"])
        await client.connect()
        await _wait_for(lambda: sub["offset"].has_value)

        assert sub["offset"].read() == OFFSET
        assert client.status == ConnectionStatus.OPEN
        assert live_server.app[MESSAGES] == [
            {"subscribe": {"object": SURFACE, "properties": ["object.offset"], "configuration": {"updateFrequencyMs": 50}}}
        ]

        sub["offset"].write({"x": 0})
        await _wait_for(lambda: len(live_server.app[MESSAGES]) == 2)
        assert live_server.app[MESSAGES][1] == {"set": [{"id": 0, "value": {"x": 0}}]}

    assert statuses == [ConnectionStatus.CONNECTING, ConnectionStatus.OPEN, ConnectionStatus.CLOSED]
    assert client.connection_info == "Normal closure"


@pytest.mark.asyncio
async def test_server_close_keeps_values_readable(live_server: TestServer) -> None:
    live_server.app[SETTINGS]["close_code"] = 1008
    async with LiveUpdateClient(_config(live_server)) as client:
        sub = client.auto_subscribe(SURFACE, ["object.offset"])
        await client.connect()
        await _wait_for(lambda: client.status == ConnectionStatus.CLOSED)

        assert client.connection_info == "Policy violation"
        assert sub["offset"].read() == OFFSET
        assert [entry.id for entry in client.debug_info.subscriptions] == [0]


@pytest.mark.asyncio
async def test_reconnect_after_server_close(live_server: TestServer) -> None:
    live_server.app[SETTINGS]["close_code"] = 1001
    async with LiveUpdateClient(_config(live_server)) as client:
        client.auto_subscribe(SURFACE, ["object.offset"])
        await client.connect()
        await _wait_for(lambda: client.status == ConnectionStatus.CLOSED)
        assert client.connection_info == "Going away"

        live_server.app[SETTINGS]["close_code"] = 0
        await client.reconnect()
        await _wait_for(lambda: len(live_server.app[MESSAGES]) == 2)

        assert client.status == ConnectionStatus.OPEN
        assert live_server.app[MESSAGES][1] == {"subscribe": {"object": SURFACE, "properties": ["object.offset"]}}


@pytest.mark.asyncio
async def test_connect_failure_reports_error(unused_tcp_port: int) -> None:
    config = LiveUpdateConfig(director=f"127.0.0.1:{unused_tcp_port}", connect_timeout=2.0)
    async with LiveUpdateClient(config) as client:
        with pytest.raises(LiveUpdateTransportError) as err:
            await client.connect()

        assert err.value.close_code == 1006
        assert client.status == ConnectionStatus.ERROR
        assert client.connection_info == "Could not establish connection"


@pytest.mark.asyncio
async def test_send_requires_open_connection() -> None:
    async with aiohttp.ClientSession() as session:
        transport = WebSocketTransport("ws://127.0.0.1:1/api/session/liveupdate", session)
        with pytest.raises(LiveUpdateTransportError):
            transport.send("{}")
        assert transport.status == ConnectionStatus.IDLE
        await transport.close()


@pytest.mark.asyncio
async def test_subscribe_while_server_closes_never_raises(live_server: TestServer) -> None:
    live_server.app[SETTINGS]["close_code"] = 1001
    errors: list[Exception] = []

    async with LiveUpdateClient(_config(live_server)) as client:
        offset = client.auto_subscribe(SURFACE, ["object.offset"])["offset"]

        async def keep_subscribing() -> None:
            while client.status == ConnectionStatus.OPEN:
                try:
                    client.auto_subscribe(SURFACE, ["object.rotation"])
                except LiveUpdateTransportError as exc:
                    errors.append(exc)
                await asyncio.sleep(0)

        await client.connect()
        await asyncio.wait_for(keep_subscribing(), timeout=2.0)

        assert errors == []
        assert client.status == ConnectionStatus.CLOSED
        assert client.connection_info == "Going away"
        assert offset.read() == OFFSET


class _FailingWebSocket:
    """Socket whose sends fail while its read side stays silent."""

    def __init__(self) -> None:
        self.closed = False
        self.close_code: int | None = None
        self._closed_event = asyncio.Event()

    async def send_str(self, text: str) -> None:
        raise ConnectionResetError("connection reset by peer")

    def __aiter__(self) -> _FailingWebSocket:
        return self

    async def __anext__(self) -> Any:
        await self._closed_event.wait()
        raise StopAsyncIteration

    async def close(self) -> bool:
        self.closed = True
        self.close_code = 1006
        self._closed_event.set()
        return True

    def exception(self) -> BaseException | None:
        return None


class _StubSession:
    def __init__(self, ws: _FailingWebSocket) -> None:
        self.ws = ws

    async def ws_connect(self, url: str, *, heartbeat: float | None = None) -> _FailingWebSocket:
        return self.ws


@pytest.mark.asyncio
async def test_send_failure_reports_error(caplog: pytest.LogCaptureFixture) -> None:
    ws = _FailingWebSocket()
    statuses: list[tuple[ConnectionStatus, str | None]] = []
    transport = WebSocketTransport("ws://stub/api/session/liveupdate", _StubSession(ws))  # type: ignore[arg-type]
    transport.bind(
        on_message=lambda _text: None,
        on_status=lambda status, reason: statuses.append((status, reason)),
    )
    await transport.open()

    with caplog.at_level(logging.WARNING):
        transport.send('{"set":[{"id":0,"value":1}]}')
        transport.send('{"unsubscribe":{"ids":[0]}}')
        await _wait_for(lambda: transport.status == ConnectionStatus.ERROR)

    assert statuses[-1] == (ConnectionStatus.ERROR, "WebSocket error")
    assert transport.close_reason == "WebSocket error"
    assert "WebSocket send failed; dropping 1 queued frame(s)" in caplog.text
    assert ws.closed
    with pytest.raises(LiveUpdateTransportError):
        transport.send("{}")
