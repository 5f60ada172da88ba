from clustermetrics.schemas.metrics import CollectorStatus, CycleReportOut, MetricSampleOut

__all__ = [
    "CollectorStatus",
    "CycleReportOut",
    "MetricSampleOut",
]
