"""WebSocket transport carrying live update JSON text frames."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

import aiohttp

from liveupdate._constants import WEBSOCKET_ERROR_REASON, describe_close_code
from liveupdate.exceptions import LiveUpdateTransportError

_logger = logging.getLogger(__name__)


class ConnectionStatus(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    ERROR = "error"


MessageHandler = Callable[[str], None]
StatusHandler = Callable[[ConnectionStatus, str | None], None]


class Transport(Protocol):
    """Structural transport interface used by the client.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`WebSocketTransport`) concrete.  Inbound
    frames and status transitions are pushed to the handlers given to
    :meth:`bind`; :meth:`send` is fire-and-forget and only valid while the
    status is ``open``.
    """

    @property
    def status(self) -> ConnectionStatus: ...

    @property
    def close_reason(self) -> str | None: ...

    def bind(self, *, on_message: MessageHandler, on_status: StatusHandler) -> None: ...

    def send(self, text: str) -> None: ...

    async def open(self) -> None: ...

    async def close(self) -> None: ...


class WebSocketTransport:
    """aiohttp WebSocket client with an ordered outbound queue.

    One reader task delivers text frames to ``on_message`` in arrival order;
    one writer task drains the outbound queue.  There is no automatic
    reconnect: after ``closed``/``error`` the owner calls :meth:`open` again.
    """

    def __init__(
        self,
        url: str,
        http_session: aiohttp.ClientSession,
        *,
        connect_timeout: float = 15.0,
        heartbeat: float | None = None,
    ) -> None:
        self._url = url
        self._http = http_session
        self._connect_timeout = connect_timeout
        self._heartbeat = heartbeat
        self._status = ConnectionStatus.IDLE
        self._close_reason: str | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._outbox: asyncio.Queue[str] | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._writer_task: asyncio.Task[None] | None = None
        self._on_message: MessageHandler | None = None
        self._on_status: StatusHandler | None = None
        self._closing = False
        self._write_failed = False

    @property
    def url(self) -> str:
        return self._url

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def close_reason(self) -> str | None:
        """Human readable reason of the last close or error."""
        return self._close_reason

    def bind(self, *, on_message: MessageHandler, on_status: StatusHandler) -> None:
        self._on_message = on_message
        self._on_status = on_status

    def _set_status(self, status: ConnectionStatus, reason: str | None = None) -> None:
        if status == self._status and reason == self._close_reason:
            return
        _logger.debug("WebSocket status %s -> %s reason=%s", self._status, status, reason)
        self._status = status
        self._close_reason = reason
        if self._on_status is not None:
            self._on_status(status, reason)

    async def open(self) -> None:
        """Connect to the endpoint; a no-op while connecting or open."""
        if self._status in (ConnectionStatus.CONNECTING, ConnectionStatus.OPEN):
            return

        self._set_status(ConnectionStatus.CONNECTING)
        _logger.debug("WebSocket connecting url=%s", self._url)
        try:
            ws = await asyncio.wait_for(
                self._http.ws_connect(self._url, heartbeat=self._heartbeat),
                timeout=self._connect_timeout,
            )
        except (aiohttp.ClientError, OSError, TimeoutError) as exc:
            self._set_status(ConnectionStatus.ERROR, describe_close_code(1006))
            raise LiveUpdateTransportError(
                f"Connection to {self._url} failed: {exc}",
                url=self._url,
                close_code=1006,
            ) from exc

        self._closing = False
        self._write_failed = False
        outbox: asyncio.Queue[str] = asyncio.Queue()
        self._ws = ws
        self._outbox = outbox
        self._writer_task = asyncio.create_task(self._write_loop(ws, outbox))
        self._reader_task = asyncio.create_task(self._read_loop(ws))
        self._set_status(ConnectionStatus.OPEN)

    def send(self, text: str) -> None:
        """Queue a text frame for sending."""
        if self._status != ConnectionStatus.OPEN or self._outbox is None:
            raise LiveUpdateTransportError(
                f"Cannot send while connection is {self._status}",
                url=self._url,
            )
        _logger.debug("WebSocket send %d chars", len(text))
        self._outbox.put_nowait(text)

    async def close(self) -> None:
        """Close the connection, wait for the reader and report ``closed``."""
        ws = self._ws
        reader = self._reader_task
        if ws is None:
            return
        self._closing = True
        await ws.close()
        if reader is not None and reader is not asyncio.current_task():
            with contextlib.suppress(asyncio.CancelledError):
                await reader
        self._set_status(ConnectionStatus.CLOSED, describe_close_code(ws.close_code))

    async def _write_loop(self, ws: aiohttp.ClientWebSocketResponse, outbox: asyncio.Queue[str]) -> None:
        while True:
            text = await outbox.get()
            try:
                await ws.send_str(text)
            except (aiohttp.ClientError, ConnectionError, RuntimeError):
                if ws.closed:
                    # Socket already closed; the reader reports it.
                    return
                _logger.warning(
                    "WebSocket send failed; dropping %d queued frame(s)",
                    outbox.qsize(),
                    exc_info=True,
                )
                self._write_failed = True
                # The reader owns teardown; stop it so the failure is reported.
                reader = self._reader_task
                if reader is not None and not reader.done():
                    reader.cancel()
                return

    async def _read_loop(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        errored = False
        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._dispatch(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    _logger.debug("WebSocket error frame: %s", ws.exception())
                    errored = True
                    break
                else:
                    _logger.debug("Ignoring WebSocket frame type=%s", msg.type)
        finally:
            await self._teardown(ws, errored=errored)

    def _dispatch(self, text: str) -> None:
        if self._on_message is None:
            return
        try:
            self._on_message(text)
        except Exception:
            _logger.warning("Live update frame handler failed", exc_info=True)

    async def _teardown(self, ws: aiohttp.ClientWebSocketResponse, *, errored: bool) -> None:
        if self._ws is not ws:
            return
        self._ws = None
        self._outbox = None
        self._reader_task = None
        writer = self._writer_task
        self._writer_task = None

        # Status leaves ``open`` before the first await: send() is refused from here on.
        if not self._closing:
            if errored or self._write_failed:
                self._set_status(ConnectionStatus.ERROR, WEBSOCKET_ERROR_REASON)
            else:
                self._set_status(ConnectionStatus.CLOSED, describe_close_code(ws.close_code))

        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await writer
        if not ws.closed and not self._closing:
            await ws.close()
