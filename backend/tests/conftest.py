"""
Shared test fixtures.

Each test gets its own SQLite file under tmp_path and an in-memory node
metrics provider, so nothing talks to a real cluster.
"""
from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from clustermetrics.config import Settings
from clustermetrics.db import create_engine, create_session_factory, init_db
from clustermetrics.dependencies import ServiceContainer
from clustermetrics.exceptions import ProviderUnavailable
from clustermetrics.models import MetricSample
from clustermetrics.services.aggregation import NodeUsage
from clustermetrics.services.store import MetricStore


class FakeProvider:
    """In-memory NodeMetricsProvider.

    ``nodes`` maps node name to (cpu_used_mcores, memory_used_bytes, cpu_capacity_mcores).
    """

    def __init__(self, nodes: dict[str, tuple[int, int, int]] | None = None) -> None:
        self.nodes = dict(nodes or {})
        self.list_error: str | None = None
        self.capacity_errors: set[str] = set()
        self.list_calls = 0

    async def list_node_usage(self) -> list[NodeUsage]:
        self.list_calls += 1
        if self.list_error:
            raise ProviderUnavailable(self.list_error)
        return [
            NodeUsage(node_name=name, cpu_used_mcores=used, memory_used_bytes=memory)
            for name, (used, memory, _) in self.nodes.items()
        ]

    async def get_node_capacity(self, node_name: str) -> int:
        if node_name in self.capacity_errors:
            raise ProviderUnavailable(f"node {node_name} not found")
        return self.nodes[node_name][2]


def make_sample(
    node_name: str = "node-a",
    *,
    timestamp: datetime | None = None,
    cpu_usage: float = 50.0,
    memory_usage: int = 1024,
    is_benchmark: bool = False,
    cluster_cpu_usage: float = 40.0,
    cluster_total_cpu: int = 4000,
) -> MetricSample:
    return MetricSample(
        timestamp=timestamp or datetime.now(timezone.utc),
        node_name=node_name,
        cpu_usage=cpu_usage,
        memory_usage=memory_usage,
        is_benchmark=is_benchmark,
        cluster_cpu_usage=cluster_cpu_usage,
        cluster_total_cpu=cluster_total_cpu,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        app_env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'metrics.db'}",
        collector_enabled=False,
        collect_interval_seconds=0.01,
        shutdown_timeout_seconds=2.0,
        collector_lockfile=str(tmp_path / "collector.lock"),
        kube_in_cluster=False,
    )


@pytest_asyncio.fixture
async def engine(settings: Settings):
    engine = create_engine(settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def store(engine) -> MetricStore:
    return MetricStore(create_session_factory(engine))


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider({"node-a": (500, 2 * 1024**3, 1000), "node-b": (500, 4 * 1024**3, 2000)})


@pytest_asyncio.fixture
async def container(settings: Settings, provider: FakeProvider) -> AsyncGenerator[ServiceContainer, None]:
    container = await ServiceContainer.build(settings, provider=provider)
    yield container
    await container.aclose()


@pytest_asyncio.fixture
async def client(settings: Settings, container: ServiceContainer) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against an app wired to the test container.

    ASGITransport does not run the lifespan, so the container is attached directly.
    """
    from clustermetrics.main import create_app

    app = create_app(settings, provider=container.provider)
    app.state.container = container

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
