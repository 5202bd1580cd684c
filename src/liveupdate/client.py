"""High-level async client for the live update WebSocket API."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from liveupdate._client.resync import ResyncController
from liveupdate._client.subscriptions import SubscriptionManager
from liveupdate._protocol import decode_frame
from liveupdate._redact import redact_for_log
from liveupdate._transport import ConnectionStatus, Transport, WebSocketTransport
from liveupdate.accessor import Subscription
from liveupdate.config import LiveUpdateConfig
from liveupdate.exceptions import LiveUpdateProtocolError, LiveUpdateRemoteError
from liveupdate.models.configuration import validate_configuration
from liveupdate.models.subscription import SubscriptionEntry, SubscriptionKey
from liveupdate.state.store import SessionStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DebugInfo:
    """Read-only copy of the session state, for inspection and tests."""

    status: ConnectionStatus
    connection_info: str
    subscriptions: list[SubscriptionEntry] = field(default_factory=list)
    values: dict[SubscriptionKey, Any] = field(default_factory=dict)


class LiveUpdateClient:
    """Async client keeping remote object properties in sync.

    Usage::

        async with LiveUpdateClient("localhost:8080") as client:
            sub = client.auto_subscribe("screen2:surface_1", ["object.offset"])
            await client.connect()
            ...
            print(sub["offset"].read())
            sub.dispose()

    Subscribe, unsubscribe and set calls are synchronous: they validate,
    update local state and queue a frame.  Subscriptions requested before
    the connection is open are sent once it opens.
    """

    def __init__(
        self,
        config: LiveUpdateConfig | str,
        options: Mapping[str, Any] | None = None,
        *,
        transport: Transport | None = None,
        session: aiohttp.ClientSession | None = None,
        on_status_change: Callable[[ConnectionStatus, str | None], None] | None = None,
    ) -> None:
        if isinstance(config, str):
            config = LiveUpdateConfig(director=config)
        overrides = validate_configuration(options, label="configuration")

        self._config = config
        self._store = SessionStore()
        self._subscriptions = SubscriptionManager(
            self._store,
            default_configuration={**config.default_configuration(), **overrides},
        )
        self._resync = ResyncController(self._store, self._subscriptions)
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = None
        self._owns_transport = False
        self._on_status_change = on_status_change
        if transport is not None:
            self._attach(transport)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LiveUpdateClient:
        self._ensure_transport()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    @property
    def config(self) -> LiveUpdateConfig:
        return self._config

    @property
    def status(self) -> ConnectionStatus:
        if self._transport is None:
            return self._resync.status
        return self._transport.status

    @property
    def connection_info(self) -> str:
        """Human readable reason of the last close or error."""
        return self._resync.connection_info

    @property
    def default_configuration(self) -> dict[str, Any]:
        return self._subscriptions.default_configuration

    async def connect(self) -> None:
        """Open the connection; live keys are resubscribed once it is open."""
        await self._ensure_transport().open()

    async def reconnect(self) -> None:
        """Caller-initiated reconnect after a close or error."""
        await self.connect()

    async def close(self) -> None:
        """Close the connection, keeping the last known values readable."""
        if self._transport is not None:
            await self._transport.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._owns_transport:
            self._transport = None
            self._owns_transport = False

    def _ensure_transport(self) -> Transport:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._attach(
                WebSocketTransport(
                    self._config.url,
                    self._http_session,
                    connect_timeout=self._config.connect_timeout,
                    heartbeat=self._config.heartbeat,
                )
            )
            self._owns_transport = True
        assert self._transport is not None  # noqa: S101
        return self._transport

    def _attach(self, transport: Transport) -> None:
        self._transport = transport
        self._subscriptions.attach(transport)
        transport.bind(on_message=self._on_frame, on_status=self._on_status)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(
        self,
        object_path: str,
        names: Mapping[str, str],
        configuration: Mapping[str, Any] | None = None,
    ) -> Subscription:
        """Subscribe to named property paths of *object_path*.

        Parameters
        ----------
        object_path : str
            Remote object whose properties are tracked.
        names : Mapping[str, str]
            ``accessor name -> property path``.
        configuration : Mapping[str, Any] or None
            Per-call options overriding the client defaults
            (``{"updateFrequencyMs": 500}``).

        Returns
        -------
        Subscription
            ``name -> Accessor`` mapping; call ``dispose()`` when done.

        Raises
        ------
        LiveUpdateConfigError
            If *configuration* contains unknown keys.  Nothing is sent.
        """
        return self._subscriptions.subscribe(object_path, names, configuration)

    def auto_subscribe(
        self,
        object_path: str,
        property_paths: Iterable[str],
        configuration: Mapping[str, Any] | None = None,
    ) -> Subscription:
        """Like :meth:`subscribe`, naming accessors after the property paths.

        ``object.offset`` becomes ``offset``; ``object.offset.x`` becomes
        ``offset_x``.
        """
        return self._subscriptions.auto_subscribe(object_path, property_paths, configuration)

    def unsubscribe(self, keys: Iterable[SubscriptionKey]) -> list[int]:
        """Unsubscribe the currently active ids of *keys*."""
        return self._subscriptions.unsubscribe(keys)

    def set_values(self, updates: Mapping[SubscriptionKey, Any] | Iterable[tuple[SubscriptionKey, Any]]) -> list[int]:
        """Write values for *updates* in one set request."""
        return self._subscriptions.set_values(updates)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    @property
    def debug_info(self) -> DebugInfo:
        return DebugInfo(
            status=self.status,
            connection_info=self.connection_info,
            subscriptions=self._store.snapshot_entries(),
            values=self._store.snapshot_values(),
        )

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def _on_status(self, status: ConnectionStatus, reason: str | None) -> None:
        self._resync.on_status(status, reason)
        if self._on_status_change is not None:
            try:
                self._on_status_change(status, reason)
            except Exception:
                _logger.warning("Status callback failed", exc_info=True)

    def _on_frame(self, text: str) -> None:
        """Apply one inbound frame to the session state."""
        try:
            message = decode_frame(text)
        except LiveUpdateRemoteError as exc:
            _logger.warning("Live update error: %s", exc.remote_message)
            return
        except LiveUpdateProtocolError as exc:
            _logger.warning("Error parsing live update frame: %s (%s)", redact_for_log(exc.frame, max_string=200), exc)
            return

        _logger.debug("Frame %s", redact_for_log(message.model_dump(by_alias=True, exclude_unset=True)))

        if message.subscriptions is not None:
            change = self._store.apply_snapshot(message.subscriptions)
            if change.added or change.removed:
                _logger.debug("Snapshot added=%s removed=%s", [str(k) for k in change.added], [str(k) for k in change.removed])
            self._subscriptions.notify(change.pruned)

        if message.values_changed:
            written = self._store.apply_changes(message.values_changed)
            self._subscriptions.notify(dict.fromkeys(written))
