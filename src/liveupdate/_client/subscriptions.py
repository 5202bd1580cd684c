"""Subscription manager for LiveUpdateClient.

Owns:
- validating and merging subscription configuration
- building subscribe, unsubscribe and set requests
- the accessors handed out per key, and their disposal
- subscribes deferred until the transport is open
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from liveupdate._constants import AUTO_NAME_PREFIX
from liveupdate._protocol import build_set, build_subscribe, build_unsubscribe, encode
from liveupdate._redact import redact_for_log
from liveupdate._transport import ConnectionStatus, Transport
from liveupdate.accessor import Accessor, Subscription
from liveupdate.exceptions import LiveUpdateTransportError
from liveupdate.models._base import LiveUpdateBaseModel
from liveupdate.models.configuration import merge_configuration, validate_configuration
from liveupdate.models.requests import SubscribeRequest
from liveupdate.models.subscription import SubscriptionKey
from liveupdate.state.store import SessionStore

_logger = logging.getLogger(__name__)


def derive_name(property_path: str) -> str:
    """Accessor name for *property_path*: ``object.offset.x`` → ``offset_x``."""
    if property_path.startswith(AUTO_NAME_PREFIX):
        property_path = property_path[len(AUTO_NAME_PREFIX) :]
    return property_path.replace(".", "_")


class SubscriptionManager:
    def __init__(
        self,
        store: SessionStore,
        *,
        default_configuration: Mapping[str, Any] | None = None,
    ) -> None:
        self.store = store
        self._default_configuration = dict(default_configuration or {})
        self._transport: Transport | None = None
        self._accessors: dict[SubscriptionKey, list[Accessor]] = {}
        # Keys requested while the transport was not open, in request order.
        self._deferred: dict[SubscriptionKey, None] = {}
        # Registered keys whose unsubscribe could not be sent.
        self._released: set[SubscriptionKey] = set()

    @property
    def default_configuration(self) -> dict[str, Any]:
        return dict(self._default_configuration)

    def attach(self, transport: Transport) -> None:
        self._transport = transport

    @property
    def is_open(self) -> bool:
        return self._transport is not None and self._transport.status == ConnectionStatus.OPEN

    # ------------------------------------------------------------------
    # Subscribe
    # ------------------------------------------------------------------

    def subscribe(
        self,
        object_path: str,
        names: Mapping[str, str],
        configuration: Mapping[str, Any] | None = None,
    ) -> Subscription:
        """Subscribe to ``name -> property path`` on *object_path*."""
        overrides = validate_configuration(configuration, label="subscription configuration")
        request = SubscribeRequest(object_path=object_path, names=dict(names))

        effective = merge_configuration(self._default_configuration, overrides)
        if effective:
            self.store.remember_configuration(request.object_path, effective)

        self._request(request.object_path, request.property_paths, effective)

        accessors: dict[str, Accessor] = {}
        for name, property_path in request.names.items():
            key = SubscriptionKey(request.object_path, property_path)
            accessor = Accessor(self, name, key)
            self._accessors.setdefault(key, []).append(accessor)
            accessors[name] = accessor
        return Subscription(self, request.object_path, accessors)

    def auto_subscribe(
        self,
        object_path: str,
        property_paths: Iterable[str],
        configuration: Mapping[str, Any] | None = None,
    ) -> Subscription:
        """Subscribe with accessor names derived from the property paths."""
        names = {derive_name(property_path): property_path for property_path in property_paths}
        return self.subscribe(object_path, names, configuration)

    def resubscribe(self, key: SubscriptionKey) -> None:
        """Subscribe *key* again with the configuration stored for its object."""
        self._request(key.object_path, [key.property_path], self.store.configuration_for(key.object_path))

    def _request(
        self,
        object_path: str,
        property_paths: list[str],
        configuration: Mapping[str, Any] | None,
    ) -> None:
        keys = [SubscriptionKey(object_path, property_path) for property_path in property_paths]
        self._released.difference_update(keys)
        if self._send(build_subscribe(object_path, property_paths, configuration)):
            return
        for key in keys:
            self._deferred[key] = None
        _logger.debug("Deferred subscribe object=%s properties=%s", object_path, property_paths)

    # ------------------------------------------------------------------
    # Unsubscribe / release
    # ------------------------------------------------------------------

    def unsubscribe(self, keys: Iterable[SubscriptionKey]) -> list[int]:
        """Unsubscribe the active ids of *keys*; returns the ids sent."""
        keys = list(keys)
        ids: list[int] = []
        for key in keys:
            server_id = self.store.id_for(key)
            if server_id is None:
                _logger.debug("No active id for %s; skipping unsubscribe", key)
                continue
            ids.append(server_id)

        sent = bool(ids) and self._send(build_unsubscribe(ids))
        if not sent:
            self._forget(keys)
        return ids if sent else []

    def release(self, keys: Iterable[SubscriptionKey]) -> None:
        """Unsubscribe *keys* on behalf of a freezing accessor."""
        self.unsubscribe(keys)

    def dispose(self, accessors: Iterable[Accessor]) -> None:
        """Detach *accessors* and unsubscribe the keys of the live ones."""
        keys: list[SubscriptionKey] = []
        for accessor in accessors:
            bound = self._accessors.get(accessor.key, [])
            if accessor in bound:
                bound.remove(accessor)
            if not bound:
                self._accessors.pop(accessor.key, None)
            if not accessor.is_frozen() and accessor.key not in keys:
                keys.append(accessor.key)
            accessor._dispose()
        self.unsubscribe(keys)

    def _forget(self, keys: Iterable[SubscriptionKey]) -> None:
        """Drop offline bookkeeping for keys no live accessor still wants."""
        for key in keys:
            if self._is_wanted(key):
                continue
            self._deferred.pop(key, None)
            if key in self.store.registry:
                self._released.add(key)

    def _is_wanted(self, key: SubscriptionKey) -> bool:
        return any(not accessor.is_frozen() for accessor in self._accessors.get(key, []))

    # ------------------------------------------------------------------
    # Set
    # ------------------------------------------------------------------

    def set_values(self, updates: Mapping[SubscriptionKey, Any] | Iterable[tuple[SubscriptionKey, Any]]) -> list[int]:
        """Write values upstream, resolving ids now; returns the ids sent."""
        pairs = updates.items() if isinstance(updates, Mapping) else updates
        resolved: list[tuple[int, Any]] = []
        for key, value in pairs:
            server_id = self.store.id_for(key)
            if server_id is None:
                _logger.debug("No active id for %s; dropping write", key)
                continue
            resolved.append((server_id, value))
        if not resolved:
            return []
        if not self._send(build_set(resolved)):
            return []
        return [server_id for server_id, _ in resolved]

    # ------------------------------------------------------------------
    # Resync support
    # ------------------------------------------------------------------

    def drain_resync_keys(self) -> list[SubscriptionKey]:
        """Keys to subscribe again after (re)connecting, clearing offline state."""
        keys = [key for key in self.store.registry.keys() if key not in self._released]
        keys.extend(key for key in self._deferred if key not in keys)
        self._deferred.clear()
        self._released.clear()
        return keys

    def notify(self, keys: Iterable[SubscriptionKey]) -> None:
        """Tell the accessors bound to *keys* that their value may have changed."""
        for key in keys:
            for accessor in list(self._accessors.get(key, [])):
                accessor._notify()

    def accessors_for(self, key: SubscriptionKey) -> list[Accessor]:
        return list(self._accessors.get(key, []))

    def send(self, message: LiveUpdateBaseModel) -> bool:
        return self._send(message)

    def _send(self, message: LiveUpdateBaseModel) -> bool:
        text = encode(message)
        if not self.is_open:
            status = self._transport.status if self._transport is not None else ConnectionStatus.IDLE
            _logger.debug("Not sending %s while connection is %s", type(message).__name__, status)
            return False
        assert self._transport is not None  # noqa: S101
        try:
            self._transport.send(text)
        except LiveUpdateTransportError as exc:
            # The connection went away between the status check and the send.
            _logger.debug("Not sending %s: %s", type(message).__name__, exc)
            return False
        _logger.debug("Sent %s", redact_for_log(message.to_wire()))
        return True
