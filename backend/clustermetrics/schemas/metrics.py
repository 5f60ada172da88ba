from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class MetricSampleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    timestamp: datetime
    node_name: str
    cpu_usage: float
    memory_usage: int
    is_benchmark: bool
    cluster_cpu_usage: float
    cluster_total_cpu: int

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite drops tzinfo; rows are always written in UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class CycleReportOut(BaseModel):
    started_at: datetime
    finished_at: datetime | None = None
    nodes_listed: int
    nodes_resolved: int
    nodes_skipped: int
    rows_written: int
    write_failures: int
    cluster_cpu_usage: float | None = None
    cluster_total_cpu: int | None = None
    skipped_reason: str | None = None
    error: str | None = None


class CollectorStatus(BaseModel):
    running: bool
    interval_seconds: float
    cycles_total: int
    cycles_skipped: int
    rows_written_total: int
    nodes_skipped_total: int
    write_failures_total: int
    last_error: str | None = None
    last_error_at: datetime | None = None
    last_cycle: CycleReportOut | None = None

    @classmethod
    def from_snapshot(cls, snapshot: dict[str, Any], *, running: bool, interval_seconds: float) -> "CollectorStatus":
        return cls(running=running, interval_seconds=interval_seconds, **snapshot)
