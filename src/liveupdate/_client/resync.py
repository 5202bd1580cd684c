"""Reconnect-driven resynchronization.

Server ids do not survive a connection: every time the transport reaches
``open`` the live keys are subscribed again, one request per object path,
and the next snapshot assigns fresh ids.  This is the only recovery path;
nothing is retried per subscription.
"""

from __future__ import annotations

import logging

from liveupdate._client.subscriptions import SubscriptionManager
from liveupdate._protocol import build_subscribe
from liveupdate._transport import ConnectionStatus
from liveupdate.models.messages import SubscribeMessage
from liveupdate.state.store import SessionStore

_logger = logging.getLogger(__name__)


class ResyncController:
    def __init__(self, store: SessionStore, subscriptions: SubscriptionManager) -> None:
        self._store = store
        self._subscriptions = subscriptions
        self._status = ConnectionStatus.IDLE
        self._connection_info = ""

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def connection_info(self) -> str:
        """Reason of the last close or error, empty while never closed."""
        return self._connection_info

    def on_status(self, status: ConnectionStatus, reason: str | None = None) -> list[SubscribeMessage]:
        """Track a transport status change; resubscribe on entering ``open``."""
        previous = self._status
        self._status = status

        if status in (ConnectionStatus.CLOSED, ConnectionStatus.ERROR):
            self._connection_info = reason or ""
            # Registry and cache are kept: last-known values stay readable.
            _logger.info("Live update connection %s: %s", status, self._connection_info)
            return []

        if status != ConnectionStatus.OPEN or previous == ConnectionStatus.OPEN:
            return []

        return self.resubscribe_all()

    def resubscribe_all(self) -> list[SubscribeMessage]:
        """Send one subscribe per object path covering all its live keys."""
        grouped = self._store.group_by_object(self._subscriptions.drain_resync_keys())
        sent: list[SubscribeMessage] = []
        for object_path, property_paths in grouped.items():
            message = build_subscribe(object_path, property_paths, self._store.configuration_for(object_path))
            if self._subscriptions.send(message):
                sent.append(message)
        _logger.debug("Resubscribed %d object(s) after connect", len(sent))
        return sent
