from __future__ import annotations

from dataclasses import dataclass

import structlog
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from clustermetrics.config import Settings
from clustermetrics.core.collector_lock import CollectorLock
from clustermetrics.db import create_engine, create_session_factory, init_db
from clustermetrics.services.collector import MetricsCollector
from clustermetrics.services.provider import KubernetesMetricsProvider, NodeMetricsProvider
from clustermetrics.services.store import MetricStore
from clustermetrics.workers.scheduler import PeriodicTask

logger = structlog.get_logger(__name__)


@dataclass
class ServiceContainer:
    """Everything the API and the worker share, built once at startup."""

    settings: Settings
    engine: AsyncEngine
    store: MetricStore
    provider: NodeMetricsProvider
    collector: MetricsCollector
    scheduler: PeriodicTask
    lock: CollectorLock

    @classmethod
    async def build(cls, settings: Settings, provider: NodeMetricsProvider | None = None) -> ServiceContainer:
        """Open storage and cluster access. Raises ``StartupFailure``."""
        engine = create_engine(settings)
        try:
            await init_db(engine)
            provider = provider or KubernetesMetricsProvider.from_settings(settings)
        except Exception:
            await engine.dispose()
            raise

        store = MetricStore(create_session_factory(engine))
        collector = MetricsCollector(provider, store)
        scheduler = PeriodicTask(settings.collect_interval_seconds, collector.run_cycle, name="metrics_collector")
        return cls(
            settings=settings,
            engine=engine,
            store=store,
            provider=provider,
            collector=collector,
            scheduler=scheduler,
            lock=CollectorLock(settings.collector_lockfile),
        )

    def start_collector(self) -> bool:
        """Start the collection loop if this process wins the collector lock."""
        if not self.lock.acquire():
            logger.info("collector.not_started", reason="lock_held", lockfile=self.lock.path)
            return False
        self.scheduler.start()
        return True

    async def aclose(self) -> None:
        await self.scheduler.stop(timeout=self.settings.shutdown_timeout_seconds)
        self.lock.release()
        await self.engine.dispose()


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_store(request: Request) -> MetricStore:
    return get_container(request).store


def get_collector(request: Request) -> MetricsCollector:
    return get_container(request).collector
