"""Per-node and cluster CPU percentages."""
import pytest

from clustermetrics.services.aggregation import NodeReading, NodeUsage, aggregate_cluster


def _reading(name: str, used: int, capacity: int) -> NodeReading:
    return NodeReading.from_usage(NodeUsage(node_name=name, cpu_used_mcores=used, memory_used_bytes=0), capacity)


class TestAggregation:
    def test_two_node_example(self):
        readings = [_reading("a", 500, 1000), _reading("b", 500, 2000)]

        aggregate = aggregate_cluster(readings)

        assert readings[0].cpu_usage == pytest.approx(50.0)
        assert readings[1].cpu_usage == pytest.approx(25.0)
        assert aggregate is not None
        assert aggregate.total_cpu_mcores == 3000
        assert aggregate.used_cpu_mcores == 1000
        assert aggregate.cpu_usage == pytest.approx(100 / 3, abs=1e-9)

    def test_cluster_usage_is_capacity_weighted(self):
        readings = [_reading("a", 3000, 4000), _reading("b", 100, 1000), _reading("c", 0, 3000)]

        aggregate = aggregate_cluster(readings)

        assert aggregate.cpu_usage == pytest.approx(100 * 3100 / 8000, abs=1e-9)

    def test_no_readings(self):
        assert aggregate_cluster([]) is None

    def test_accepts_generator(self):
        aggregate = aggregate_cluster(_reading(f"n{i}", 100, 1000) for i in range(4))
        assert aggregate.total_cpu_mcores == 4000
        assert aggregate.cpu_usage == pytest.approx(10.0)
