"""Bidirectional key ↔ server id registry."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from liveupdate.models.subscription import SubscriptionEntry, SubscriptionKey

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryView:
    """Immutable mapping built from one snapshot."""

    entries: tuple[SubscriptionEntry, ...] = ()
    key_to_id: Mapping[SubscriptionKey, int] = field(default_factory=lambda: MappingProxyType({}))
    id_to_key: Mapping[int, SubscriptionKey] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_entries(cls, entries: Iterable[SubscriptionEntry]) -> RegistryView:
        entries = tuple(entries)
        key_to_id: dict[SubscriptionKey, int] = {}
        id_to_key: dict[int, SubscriptionKey] = {}
        for entry in entries:
            key = entry.key
            previous_id = key_to_id.get(key)
            if previous_id is not None and previous_id != entry.id:
                # Same key listed twice: the later id wins, the earlier is released.
                _logger.debug("Snapshot lists %s twice (ids %d, %d)", key, previous_id, entry.id)
                id_to_key.pop(previous_id, None)
            previous_key = id_to_key.get(entry.id)
            if previous_key is not None and previous_key != key:
                _logger.debug("Snapshot reuses id %d for %s and %s", entry.id, previous_key, key)
                key_to_id.pop(previous_key, None)
            key_to_id[key] = entry.id
            id_to_key[entry.id] = key
        return cls(
            entries=entries,
            key_to_id=MappingProxyType(key_to_id),
            id_to_key=MappingProxyType(id_to_key),
        )


class KeyRegistry:
    """Mirror of the remote service's latest subscription snapshot.

    There are no incremental updates: :meth:`replace` builds a fresh
    :class:`RegistryView` and swaps it in with a single assignment, so
    readers never see a half-applied snapshot.
    """

    def __init__(self) -> None:
        self._view = RegistryView()

    @property
    def view(self) -> RegistryView:
        return self._view

    @property
    def entries(self) -> tuple[SubscriptionEntry, ...]:
        return self._view.entries

    def replace(self, entries: Iterable[SubscriptionEntry]) -> RegistryView:
        """Discard the current mapping and rebuild it from *entries*."""
        self._view = RegistryView.from_entries(entries)
        return self._view

    def id_for(self, key: SubscriptionKey) -> int | None:
        return self._view.key_to_id.get(key)

    def key_for(self, server_id: int) -> SubscriptionKey | None:
        return self._view.id_to_key.get(server_id)

    def keys(self) -> list[SubscriptionKey]:
        """Registered keys in snapshot order."""
        return list(self._view.key_to_id)

    def ids(self) -> list[int]:
        return list(self._view.id_to_key)

    def __contains__(self, key: object) -> bool:
        return key in self._view.key_to_id

    def __len__(self) -> int:
        return len(self._view.key_to_id)

    def __iter__(self) -> Iterator[SubscriptionKey]:
        return iter(self._view.key_to_id)
