"""
Tests for the single-flight loader.
"""

import asyncio
import logging

import pytest

from lazydata.observability import AccessorMetrics
from lazydata.runtime import MemoryCollectionLoader, SingleFlightLoader
from lazydata.store import CollectionStoreAdapter, InMemorySharedStore


@pytest.fixture
def adapter():
    return CollectionStoreAdapter(InMemorySharedStore())


class TestSingleFlightLoader:
    @pytest.mark.asyncio
    async def test_fifty_concurrent_triggers_load_once(self, adapter):
        loader = MemoryCollectionLoader({"x": [1, 2]}, delay=0.01)
        flight = SingleFlightLoader(loader, adapter, grace_seconds=0.05)

        tasks = [flight.ensure_loading("x", "en") for _ in range(50)]

        assert all(task is tasks[0] for task in tasks)
        assert await tasks[0] is True
        assert loader.call_count("x") == 1
        assert adapter.get_raw("x") == [1, 2]
        flight.close()

    @pytest.mark.asyncio
    async def test_concurrent_gather_loads_once(self, adapter):
        loader = MemoryCollectionLoader({"x": [1]}, delay=0.01)
        flight = SingleFlightLoader(loader, adapter, grace_seconds=0.05)

        async def trigger():
            return await flight.ensure_loading("x", "en")

        results = await asyncio.gather(*(trigger() for _ in range(50)))

        assert results == [True] * 50
        assert loader.call_count("x") == 1
        flight.close()

    @pytest.mark.asyncio
    async def test_loading_flag_lifecycle(self, adapter):
        loader = MemoryCollectionLoader({"x": [1]}, delay=0.01)
        flight = SingleFlightLoader(loader, adapter, grace_seconds=0)

        task = flight.ensure_loading("x", "en")
        state = adapter.get_load_state("x")
        assert state.loading is True
        assert state.ready is False

        await task
        assert state.loading is False
        assert state.ready is True
        assert state.attempts == 1

    @pytest.mark.asyncio
    async def test_grace_period_absorbs_repeat_triggers(self, adapter):
        loader = MemoryCollectionLoader({"x": [1]})
        flight = SingleFlightLoader(loader, adapter, grace_seconds=0.05)

        first = flight.ensure_loading("x", "en")
        await first
        again = flight.ensure_loading("x", "en")

        assert again is first
        assert loader.call_count("x") == 1

        await asyncio.sleep(0.1)
        assert flight.is_pending("x") is False

    @pytest.mark.asyncio
    async def test_force_restarts_settled_load(self, adapter):
        loader = MemoryCollectionLoader({"x": [1]})
        flight = SingleFlightLoader(loader, adapter, grace_seconds=1.0)

        first = flight.ensure_loading("x", "en")
        await first
        second = flight.ensure_loading("x", "en", force=True)

        assert second is not first
        await second
        assert loader.call_count("x") == 2
        flight.close()

    @pytest.mark.asyncio
    async def test_force_joins_running_load(self, adapter):
        loader = MemoryCollectionLoader({"x": [1]}, delay=0.01)
        flight = SingleFlightLoader(loader, adapter, grace_seconds=0)

        first = flight.ensure_loading("x", "en")
        second = flight.ensure_loading("x", "en", force=True)

        assert second is first
        await first

    @pytest.mark.asyncio
    async def test_force_for_new_locale_queues_after_running_load(self, adapter):
        loader = MemoryCollectionLoader(
            {"x": [{"t": "en"}]}, localized={"fr": {"x": [{"t": "fr"}]}}, delay=0.01
        )
        flight = SingleFlightLoader(loader, adapter, grace_seconds=0)

        first = flight.ensure_loading("x", "en")
        second = flight.ensure_loading("x", "fr", force=True)
        third = flight.ensure_loading("x", "fr", force=True)

        assert second is not first
        assert third is second
        assert flight.pending("x") is second
        assert await second is True
        assert first.done()
        assert loader.calls == [("x", "en"), ("x", "fr")]
        assert adapter.get_raw("x") == [{"t": "fr"}]
        assert adapter.get_load_state("x").loading is False

    @pytest.mark.asyncio
    async def test_failure_is_recorded_not_raised(self, adapter, caplog):
        loader = MemoryCollectionLoader()
        loader.fail("x", RuntimeError("backend down"))
        metrics = AccessorMetrics()
        flight = SingleFlightLoader(loader, adapter, grace_seconds=0, metrics=metrics)

        with caplog.at_level(logging.WARNING):
            result = await flight.ensure_loading("x", "en")

        state = adapter.get_load_state("x")
        assert result is False
        assert state.error == "backend down"
        assert state.loading is False
        assert state.ready is False
        assert metrics.loads_failed == 1
        assert "Load failed" in caplog.text

    @pytest.mark.asyncio
    async def test_callback_that_writes_store_itself(self, adapter):
        async def load(name, locale):
            adapter.store.set_shared(name, {"written": True})
            return None

        invalidated = []
        adapter.add_invalidation_listener(invalidated.append)
        flight = SingleFlightLoader(load, adapter, grace_seconds=0)

        await flight.ensure_loading("doc", "en")

        assert adapter.get_raw("doc") == {"written": True}
        assert adapter.get_load_state("doc").ready is True
        assert invalidated == ["doc"]

    def test_no_running_loop_returns_none(self, adapter):
        flight = SingleFlightLoader(MemoryCollectionLoader({"x": [1]}), adapter)

        assert flight.ensure_loading("x", "en") is None
        assert adapter.get_load_state("x").loading is False

    @pytest.mark.asyncio
    async def test_drain_waits_without_cancelling(self, adapter):
        loader = MemoryCollectionLoader({"x": [1]}, delay=0.02)
        flight = SingleFlightLoader(loader, adapter, grace_seconds=0.05)

        task = flight.ensure_loading("x", "en")
        await flight.drain()

        assert task.done() and not task.cancelled()
        assert adapter.get_raw("x") == [1]
        flight.close()
        assert flight.is_pending("x") is False

    @pytest.mark.asyncio
    async def test_metrics(self, adapter):
        metrics = AccessorMetrics()
        loader = MemoryCollectionLoader({"x": [1]}, delay=0.01)
        flight = SingleFlightLoader(loader, adapter, grace_seconds=0, metrics=metrics)

        task = flight.ensure_loading("x", "en")
        flight.ensure_loading("x", "en")
        await task

        assert metrics.loads_started == 1
        assert metrics.loads_joined == 1
        assert len(metrics.load_durations_ms) == 1
