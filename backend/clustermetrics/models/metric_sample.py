from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from clustermetrics.db import Base


class MetricSample(Base):
    """One node's CPU/memory reading, stamped with the aggregate of its cycle."""

    __tablename__ = "metrics"
    # AUTOINCREMENT keeps the id sequence in sqlite_sequence, which reset rewinds
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    node_name: Mapped[str] = mapped_column(String(255), nullable=False)
    cpu_usage: Mapped[float] = mapped_column(Float, nullable=False)
    memory_usage: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_benchmark: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cluster_cpu_usage: Mapped[float] = mapped_column(Float, nullable=False)
    cluster_total_cpu: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def copy_as_benchmark(self) -> MetricSample:
        return MetricSample(
            timestamp=self.timestamp,
            node_name=self.node_name,
            cpu_usage=self.cpu_usage,
            memory_usage=self.memory_usage,
            is_benchmark=True,
            cluster_cpu_usage=self.cluster_cpu_usage,
            cluster_total_cpu=self.cluster_total_cpu,
        )

    def __repr__(self) -> str:
        return f"<MetricSample id={self.id} node={self.node_name} benchmark={self.is_benchmark}>"
