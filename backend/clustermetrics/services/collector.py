from __future__ import annotations

from datetime import datetime, timezone

import structlog

from clustermetrics.exceptions import PersistenceWriteFailure, ProviderUnavailable
from clustermetrics.models import MetricSample
from clustermetrics.observability import CollectorStats, CycleReport
from clustermetrics.services.aggregation import ClusterAggregate, NodeReading, aggregate_cluster
from clustermetrics.services.provider import NodeMetricsProvider
from clustermetrics.services.store import MetricStore

logger = structlog.get_logger(__name__)


class MetricsCollector:
    """Runs collection cycles: provider -> aggregates -> one row per node."""

    def __init__(
        self,
        provider: NodeMetricsProvider,
        store: MetricStore,
        stats: CollectorStats | None = None,
    ) -> None:
        self.provider = provider
        self.store = store
        self.stats = stats or CollectorStats()

    async def run_cycle(self) -> CycleReport:
        report = CycleReport(started_at=datetime.now(timezone.utc))
        try:
            await self._collect(report)
        finally:
            self.stats.record(report.finish())
        return report

    async def _collect(self, report: CycleReport) -> None:
        try:
            usages = await self.provider.list_node_usage()
        except ProviderUnavailable as exc:
            report.skipped_reason = "provider_unavailable"
            report.error = exc.message
            logger.warning("collector.cycle_skipped", reason=report.skipped_reason, error=exc.message)
            return
        report.nodes_listed = len(usages)

        readings: list[NodeReading] = []
        for usage in usages:
            try:
                capacity = await self.provider.get_node_capacity(usage.node_name)
            except ProviderUnavailable as exc:
                report.nodes_skipped += 1
                report.error = exc.message
                logger.warning("collector.node_skipped", node=usage.node_name, error=exc.message)
                continue
            if capacity <= 0:
                report.nodes_skipped += 1
                logger.warning("collector.node_skipped", node=usage.node_name, error="no cpu capacity")
                continue
            readings.append(NodeReading.from_usage(usage, capacity))
        report.nodes_resolved = len(readings)

        aggregate = aggregate_cluster(readings)
        if aggregate is None:
            report.skipped_reason = "no_nodes_resolved"
            logger.info("collector.cycle_empty", nodes_listed=report.nodes_listed)
            return
        report.cluster_cpu_usage = aggregate.cpu_usage
        report.cluster_total_cpu = aggregate.total_cpu_mcores

        for reading in readings:
            sample = self._build_sample(reading, aggregate)
            try:
                await self.store.append(sample)
            except PersistenceWriteFailure as exc:
                report.write_failures += 1
                report.error = exc.message
                logger.warning("collector.write_failed", node=reading.node_name, error=exc.message)
                continue
            report.rows_written += 1

        logger.debug(
            "collector.cycle_done",
            rows_written=report.rows_written,
            nodes_skipped=report.nodes_skipped,
            write_failures=report.write_failures,
            cluster_cpu_usage=round(aggregate.cpu_usage, 2),
            cluster_total_cpu=aggregate.total_cpu_mcores,
        )

    @staticmethod
    def _build_sample(reading: NodeReading, aggregate: ClusterAggregate) -> MetricSample:
        return MetricSample(
            timestamp=datetime.now(timezone.utc),
            node_name=reading.node_name,
            cpu_usage=reading.cpu_usage,
            memory_usage=reading.memory_used_bytes,
            is_benchmark=False,
            cluster_cpu_usage=aggregate.cpu_usage,
            cluster_total_cpu=aggregate.total_cpu_mcores,
        )
