"""
Collector bookkeeping without external dependencies.

- Records the outcome of every collection cycle
- Provides a snapshot for the status endpoint
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, Optional


@dataclass
class CycleReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    nodes_listed: int = 0
    nodes_resolved: int = 0
    nodes_skipped: int = 0
    rows_written: int = 0
    write_failures: int = 0
    cluster_cpu_usage: Optional[float] = None
    cluster_total_cpu: Optional[int] = None
    skipped_reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None

    def finish(self) -> "CycleReport":
        self.finished_at = datetime.now(timezone.utc)
        return self


class CollectorStats:
    def __init__(self) -> None:
        self._lock = Lock()
        self._cycles_total = 0
        self._cycles_skipped = 0
        self._rows_written_total = 0
        self._nodes_skipped_total = 0
        self._write_failures_total = 0
        self._last_error: Optional[str] = None
        self._last_error_at: Optional[datetime] = None
        self._last_cycle: Optional[CycleReport] = None

    def record(self, report: CycleReport) -> None:
        with self._lock:
            self._cycles_total += 1
            if report.skipped:
                self._cycles_skipped += 1
            self._rows_written_total += report.rows_written
            self._nodes_skipped_total += report.nodes_skipped
            self._write_failures_total += report.write_failures
            if report.error:
                self._last_error = report.error
                self._last_error_at = report.finished_at or report.started_at
            self._last_cycle = report

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            last_cycle = asdict(self._last_cycle) if self._last_cycle else None
            return {
                "cycles_total": self._cycles_total,
                "cycles_skipped": self._cycles_skipped,
                "rows_written_total": self._rows_written_total,
                "nodes_skipped_total": self._nodes_skipped_total,
                "write_failures_total": self._write_failures_total,
                "last_error": self._last_error,
                "last_error_at": self._last_error_at,
                "last_cycle": last_cycle,
            }
