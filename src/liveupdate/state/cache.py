"""Value cache: last pushed value per subscription key."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable
from typing import Any

from liveupdate.models.messages import ValueChange
from liveupdate.models.subscription import SubscriptionKey
from liveupdate.state.registry import KeyRegistry

_logger = logging.getLogger(__name__)


class ValueCache:
    """Latest value per key, bounded to the keys the registry knows."""

    def __init__(self) -> None:
        self._values: dict[SubscriptionKey, Any] = {}

    def apply_changes(self, changes: Iterable[ValueChange], registry: KeyRegistry) -> list[SubscriptionKey]:
        """Store pushed values and return the keys that were written.

        Ids the registry cannot resolve are dropped: they belong to a
        subscription that was just released or not yet acknowledged.
        """
        written: list[SubscriptionKey] = []
        for change in changes:
            key = registry.key_for(change.id)
            if key is None:
                _logger.debug("Dropping value for unknown id=%d", change.id)
                continue
            self._values[key] = change.value
            written.append(key)
        return written

    def prune(self, registry: KeyRegistry) -> list[SubscriptionKey]:
        """Delete entries whose key is no longer registered."""
        stale = [key for key in self._values if key not in registry]
        for key in stale:
            del self._values[key]
        return stale

    def get(self, key: SubscriptionKey, default: Any = None) -> Any:
        return self._values.get(key, default)

    def has(self, key: SubscriptionKey) -> bool:
        return key in self._values

    def snapshot(self) -> dict[SubscriptionKey, Any]:
        """Deep copy of the cache for diagnostics."""
        return copy.deepcopy(self._values)

    def __len__(self) -> int:
        return len(self._values)
