from __future__ import annotations

from liveupdate.models.messages import ValueChange
from liveupdate.models.subscription import SubscriptionEntry, SubscriptionKey
from liveupdate.state.cache import ValueCache
from liveupdate.state.registry import KeyRegistry
from liveupdate.state.store import SessionStore

OFFSET = SubscriptionKey("screen2:surface_1", "object.offset")
ROTATION = SubscriptionKey("screen2:surface_1", "object.rotation")


def _entry(sub_id: int, key: SubscriptionKey) -> SubscriptionEntry:
    return SubscriptionEntry(id=sub_id, object_path=key.object_path, property_path=key.property_path)


def test_registry_maps_are_mutual_inverses() -> None:
    registry = KeyRegistry()
    registry.replace([_entry(0, OFFSET), _entry(1, ROTATION)])

    assert registry.id_for(OFFSET) == 0
    assert registry.id_for(ROTATION) == 1
    for key in registry:
        assert registry.key_for(registry.id_for(key)) == key  # type: ignore[arg-type]


def test_registry_replace_drops_previous_ids() -> None:
    registry = KeyRegistry()
    registry.replace([_entry(0, OFFSET), _entry(1, ROTATION)])
    registry.replace([_entry(7, ROTATION)])

    assert registry.ids() == [7]
    assert registry.keys() == [ROTATION]
    assert registry.id_for(OFFSET) is None
    assert registry.key_for(0) is None
    assert registry.key_for(1) is None


def test_registry_view_is_swapped_not_patched() -> None:
    registry = KeyRegistry()
    first = registry.replace([_entry(0, OFFSET)])
    registry.replace([])

    # Readers holding the old view still see a complete snapshot.
    assert dict(first.key_to_id) == {OFFSET: 0}
    assert len(registry) == 0


def test_registry_duplicate_key_keeps_later_id() -> None:
    registry = KeyRegistry()
    registry.replace([_entry(0, OFFSET), _entry(3, OFFSET)])

    assert registry.id_for(OFFSET) == 3
    assert registry.key_for(0) is None
    assert registry.ids() == [3]


def test_cache_drops_values_for_unknown_ids() -> None:
    registry = KeyRegistry()
    registry.replace([_entry(0, OFFSET)])
    cache = ValueCache()

    written = cache.apply_changes(
        [ValueChange(id=0, value={"x": 1}), ValueChange(id=9, value="ignored")],
        registry,
    )

    assert written == [OFFSET]
    assert cache.snapshot() == {OFFSET: {"x": 1}}


def test_cache_keeps_explicit_none_values() -> None:
    registry = KeyRegistry()
    registry.replace([_entry(0, OFFSET)])
    cache = ValueCache()
    cache.apply_changes([ValueChange(id=0, value=None)], registry)

    assert cache.has(OFFSET)
    assert cache.get(OFFSET, "default") is None


def test_store_prunes_cache_with_each_snapshot() -> None:
    store = SessionStore()
    store.apply_snapshot([_entry(0, OFFSET), _entry(1, ROTATION)])
    store.apply_changes([ValueChange(id=0, value=1), ValueChange(id=1, value=2)])

    change = store.apply_snapshot([_entry(2, ROTATION)])

    assert change.removed == (OFFSET,)
    assert change.pruned == (OFFSET,)
    assert change.added == ()
    assert store.snapshot_values() == {ROTATION: 2}
    assert [entry.id for entry in store.snapshot_entries()] == [2]
    assert not store.has_value(OFFSET)


def test_store_configuration_last_write_wins() -> None:
    store = SessionStore()
    store.remember_configuration("a", {"updateFrequencyMs": 100})
    store.remember_configuration("a", {"updateFrequencyMs": 250})

    assert store.configuration_for("a") == {"updateFrequencyMs": 250}
    assert store.configuration_for("b") is None


def test_store_groups_keys_by_object() -> None:
    store = SessionStore()
    keys = [
        SubscriptionKey("a", "object.x"),
        SubscriptionKey("b", "object.x"),
        SubscriptionKey("a", "object.y"),
        SubscriptionKey("a", "object.x"),
    ]

    assert store.group_by_object(keys) == {"a": ["object.x", "object.y"], "b": ["object.x"]}
