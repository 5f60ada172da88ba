"""Collector lock and the standalone worker."""
import asyncio

import pytest

from clustermetrics.background_worker import run_background_worker
from clustermetrics.core.collector_lock import CollectorLock
from clustermetrics.db import create_engine, create_session_factory
from clustermetrics.services.store import MetricStore


class TestCollectorLock:
    def test_second_holder_is_refused(self, tmp_path):
        path = str(tmp_path / "collector.lock")
        first = CollectorLock(path)
        second = CollectorLock(path)

        assert first.acquire() is True
        assert second.acquire() is False
        first.release()
        assert second.acquire() is True
        second.release()

    def test_acquire_is_reentrant_and_release_idempotent(self, tmp_path):
        lock = CollectorLock(str(tmp_path / "collector.lock"))
        assert lock.acquire() is True
        assert lock.acquire() is True
        assert lock.held
        lock.release()
        lock.release()
        assert not lock.held

    def test_unwritable_path_is_refused(self, tmp_path):
        lock = CollectorLock(str(tmp_path / "missing" / "collector.lock"))
        assert lock.acquire() is False


async def _count_rows(settings) -> int:
    engine = create_engine(settings)
    try:
        return len(await MetricStore(create_session_factory(engine)).query_all())
    finally:
        await engine.dispose()


class TestBackgroundWorker:
    async def test_collects_until_stopped(self, settings, provider):
        stop_event = asyncio.Event()
        worker = asyncio.create_task(run_background_worker(settings, provider, stop_event))

        await asyncio.sleep(0.1)
        stop_event.set()
        await asyncio.wait_for(worker, timeout=5)

        assert provider.list_calls >= 1
        assert await _count_rows(settings) >= 2
        # lock released on exit
        lock = CollectorLock(settings.collector_lockfile)
        assert lock.acquire() is True
        lock.release()

    async def test_does_not_collect_when_lock_held(self, settings, provider):
        lock = CollectorLock(settings.collector_lockfile)
        assert lock.acquire()
        try:
            await asyncio.wait_for(run_background_worker(settings, provider), timeout=5)
        finally:
            lock.release()

        assert provider.list_calls == 0
        assert await _count_rows(settings) == 0


@pytest.mark.parametrize("enabled", [True, False])
async def test_app_lifespan_starts_collector_when_enabled(settings, provider, enabled):
    from clustermetrics.main import create_app

    app = create_app(settings.model_copy(update={"collector_enabled": enabled}), provider=provider)

    async with app.router.lifespan_context(app):
        container = app.state.container
        await asyncio.sleep(0.05)
        assert container.scheduler.running is enabled

    assert container.scheduler.running is False
    assert (provider.list_calls > 0) is enabled
