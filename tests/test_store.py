"""
Tests for the store layer.

Tests for:
- InMemorySharedStore
- CollectionStoreAdapter (data, load state, mutation tracking)
- LoadState
"""

import pytest

from lazydata.errors import ErrorKind
from lazydata.store import CollectionStoreAdapter, InMemorySharedStore, LoadState, TrackingStore


class PlainStore:
    """Minimal non-tracking shared store."""

    def __init__(self):
        self.values = {}

    def get_shared(self, name):
        return self.values.get(name)

    def set_shared(self, name, raw):
        self.values[name] = raw


# =============================================================================
# InMemorySharedStore
# =============================================================================


class TestInMemorySharedStore:
    def test_get_set(self):
        store = InMemorySharedStore({"a": 1})
        assert store.get_shared("a") == 1
        assert store.get_shared("missing") is None

        store.set_shared("b", [1])
        assert "b" in store
        assert len(store) == 2
        assert store.version == 1

    def test_set_none_removes(self):
        store = InMemorySharedStore({"a": 1})
        store.set_shared("a", None)
        assert "a" not in store

    def test_track_notifies_observers(self):
        store = InMemorySharedStore()
        seen = []
        store.add_observer(seen.append)

        store.track("items")
        store.remove_observer(seen.append)
        store.track("items")

        assert seen == ["items"]

    def test_is_tracking_store(self):
        assert isinstance(InMemorySharedStore(), TrackingStore)
        assert not isinstance(PlainStore(), TrackingStore)


# =============================================================================
# CollectionStoreAdapter
# =============================================================================


class TestCollectionStoreAdapter:
    def test_write_sets_ready_and_notifies(self):
        adapter = CollectionStoreAdapter(InMemorySharedStore())
        invalidated = []
        adapter.add_invalidation_listener(invalidated.append)

        adapter.write("items", [{"id": 1}])

        assert adapter.get_raw("items") == [{"id": 1}]
        assert adapter.get_load_state("items").ready is True
        assert invalidated == ["items"]

    def test_write_ready_override(self):
        adapter = CollectionStoreAdapter(InMemorySharedStore())
        adapter.write("items", [], ready=False)
        assert adapter.get_load_state("items").ready is False

    def test_load_state_created_once(self):
        adapter = CollectionStoreAdapter(InMemorySharedStore({"a": [1]}))
        state = adapter.get_load_state("a")
        assert state.ready is True
        assert adapter.get_load_state("a") is state

    def test_set_load_state_patch(self):
        adapter = CollectionStoreAdapter(InMemorySharedStore())
        state = adapter.set_load_state("a", loading=True)
        assert state.loading is True

        with pytest.raises(AttributeError):
            adapter.set_load_state("a", bogus=True)

    def test_mark_loading_clears_error(self):
        adapter = CollectionStoreAdapter(InMemorySharedStore(), clock=lambda: 50.0)
        adapter.mark_failed("a", "boom")

        state = adapter.mark_loading("a")

        assert state.loading is True
        assert state.error is None
        assert state.error_at is None
        assert state.attempts == 1

    def test_mark_failed_records_kind_and_time(self):
        adapter = CollectionStoreAdapter(InMemorySharedStore(), clock=lambda: 50.0)
        state = adapter.mark_failed("a", "boom")

        assert state.error == "boom"
        assert state.error_kind is ErrorKind.LOAD_FAILURE
        assert state.error_at == 50.0
        assert state.loading is False

    def test_has_recent_error_respects_cooldown(self):
        now = [100.0]
        adapter = CollectionStoreAdapter(InMemorySharedStore(), clock=lambda: now[0])
        adapter.mark_failed("a", "boom")

        assert adapter.has_recent_error("a", 10.0) is True
        now[0] += 10.5
        assert adapter.has_recent_error("a", 10.0) is False
        assert adapter.has_recent_error("never-seen", 10.0) is False

    def test_subscribe_only_tracks_on_tracking_stores(self):
        tracked = []
        store = InMemorySharedStore()
        store.add_observer(tracked.append)

        CollectionStoreAdapter(store).subscribe("a")
        CollectionStoreAdapter(PlainStore()).subscribe("a")

        assert tracked == ["a"]

    def test_collections_with_data(self):
        adapter = CollectionStoreAdapter(InMemorySharedStore())
        adapter.write("a", [1])
        adapter.get_load_state("b")
        assert adapter.collections_with_data() == ["a"]

    def test_mutation_tracking(self):
        adapter = CollectionStoreAdapter(InMemorySharedStore())
        adapter.begin_mutation("tasks", 1)
        assert adapter.is_mutating("tasks", 1)
        assert not adapter.is_mutating("tasks", 2)

        adapter.end_mutation("tasks", 1)
        assert not adapter.is_mutating("tasks", 1)


class TestLoadState:
    def test_to_dict(self):
        state = LoadState(error="boom", error_kind=ErrorKind.LOAD_FAILURE, error_at=1.0)
        data = state.to_dict()
        assert data["error_kind"] == "load_failure"
        assert data["ready"] is False

    def test_no_error_is_never_recent(self):
        assert LoadState().has_recent_error(10.0, 0.0) is False
