"""Session store owning the registry, the value cache and stored configuration.

This is the only component allowed to mutate live session state.  The
client calls :meth:`SessionStore.apply_snapshot` and
:meth:`SessionStore.apply_changes` from its inbound frame handler; every
other component only reads.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from liveupdate.models.messages import ValueChange
from liveupdate.models.subscription import SubscriptionEntry, SubscriptionKey
from liveupdate.state.cache import ValueCache
from liveupdate.state.registry import KeyRegistry


@dataclass(frozen=True)
class SnapshotChange:
    """Difference between two consecutive snapshots."""

    added: tuple[SubscriptionKey, ...]
    removed: tuple[SubscriptionKey, ...]
    pruned: tuple[SubscriptionKey, ...]


class SessionStore:
    """State of one live update session."""

    def __init__(self) -> None:
        self.registry = KeyRegistry()
        self.cache = ValueCache()
        self._configurations: dict[str, dict[str, Any]] = {}

    def apply_snapshot(self, entries: Iterable[SubscriptionEntry]) -> SnapshotChange:
        """Replace the registry with *entries* and prune the cache to match."""
        before = set(self.registry)
        self.registry.replace(entries)
        after = set(self.registry)
        pruned = self.cache.prune(self.registry)
        return SnapshotChange(
            added=tuple(key for key in self.registry if key not in before),
            removed=tuple(key for key in before if key not in after),
            pruned=tuple(pruned),
        )

    def apply_changes(self, changes: Iterable[ValueChange]) -> list[SubscriptionKey]:
        return self.cache.apply_changes(changes, self.registry)

    def id_for(self, key: SubscriptionKey) -> int | None:
        return self.registry.id_for(key)

    def read(self, key: SubscriptionKey, default: Any = None) -> Any:
        return self.cache.get(key, default)

    def has_value(self, key: SubscriptionKey) -> bool:
        return self.cache.has(key)

    def remember_configuration(self, object_path: str, configuration: Mapping[str, Any]) -> None:
        """Store the effective configuration for *object_path* (last write wins)."""
        self._configurations[object_path] = dict(configuration)

    def configuration_for(self, object_path: str) -> dict[str, Any] | None:
        configuration = self._configurations.get(object_path)
        return dict(configuration) if configuration else None

    def snapshot_entries(self) -> list[SubscriptionEntry]:
        return list(self.registry.entries)

    def snapshot_values(self) -> dict[SubscriptionKey, Any]:
        return self.cache.snapshot()

    def group_by_object(self, keys: Iterable[SubscriptionKey]) -> dict[str, list[str]]:
        """Group *keys* into ``object_path -> [property_path, ...]`` without duplicates."""
        grouped: dict[str, list[str]] = {}
        for key in keys:
            paths = grouped.setdefault(key.object_path, [])
            if key.property_path not in paths:
                paths.append(key.property_path)
        return grouped
