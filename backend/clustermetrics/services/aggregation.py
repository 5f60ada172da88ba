from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


def cpu_percentage(used_mcores: int, total_mcores: int) -> float:
    return used_mcores / total_mcores * 100


@dataclass(frozen=True)
class NodeUsage:
    """Live usage of one node as reported by the metrics API."""

    node_name: str
    cpu_used_mcores: int
    memory_used_bytes: int


@dataclass(frozen=True)
class NodeReading:
    """A node whose CPU capacity resolved during the current cycle."""

    node_name: str
    cpu_used_mcores: int
    memory_used_bytes: int
    cpu_capacity_mcores: int

    @classmethod
    def from_usage(cls, usage: NodeUsage, cpu_capacity_mcores: int) -> NodeReading:
        return cls(
            node_name=usage.node_name,
            cpu_used_mcores=usage.cpu_used_mcores,
            memory_used_bytes=usage.memory_used_bytes,
            cpu_capacity_mcores=cpu_capacity_mcores,
        )

    @property
    def cpu_usage(self) -> float:
        return cpu_percentage(self.cpu_used_mcores, self.cpu_capacity_mcores)


@dataclass(frozen=True)
class ClusterAggregate:
    total_cpu_mcores: int
    used_cpu_mcores: int

    @property
    def cpu_usage(self) -> float:
        return cpu_percentage(self.used_cpu_mcores, self.total_cpu_mcores)


def aggregate_cluster(readings: Iterable[NodeReading]) -> ClusterAggregate | None:
    """Sum usage and capacity over the resolved nodes.

    Returns None when there is no capacity to divide by, in which case the
    cycle has nothing to record.
    """
    total = 0
    used = 0
    for reading in readings:
        total += reading.cpu_capacity_mcores
        used += reading.cpu_used_mcores
    if total <= 0:
        return None
    return ClusterAggregate(total_cpu_mcores=total, used_cpu_mcores=used)
