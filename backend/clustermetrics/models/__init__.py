from clustermetrics.models.metric_sample import MetricSample

__all__ = [
    "MetricSample",
]
