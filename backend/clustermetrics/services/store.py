from __future__ import annotations

import asyncio

import structlog
from sqlalchemy import delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clustermetrics.exceptions import PersistenceError, PersistenceTransactionFailure, PersistenceWriteFailure
from clustermetrics.models import MetricSample

logger = structlog.get_logger(__name__)


class MetricStore:
    """Append-only metrics history with snapshot and reset.

    Writers share one lock so a reset never interleaves with an append or a
    benchmark copy. Reads go straight to the database.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._write_lock = asyncio.Lock()

    async def append(self, sample: MetricSample) -> int:
        async with self._write_lock:
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        session.add(sample)
                        await session.flush()
                        sample_id = sample.id
            except SQLAlchemyError as exc:
                logger.warning("store.append_failed", node=sample.node_name, error=str(exc))
                raise PersistenceWriteFailure(f"failed to write sample for {sample.node_name}") from exc
        return sample_id

    async def query_all(self) -> list[MetricSample]:
        stmt = select(MetricSample).order_by(MetricSample.timestamp.desc(), MetricSample.id.desc())
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.warning("store.query_failed", error=str(exc))
            raise PersistenceError("failed to read metrics") from exc

    async def mark_benchmark(self) -> MetricSample | None:
        """Copy the most recently inserted collected row as a benchmark.

        Returns the inserted copy, or None when there is nothing to copy.
        """
        stmt = (
            select(MetricSample)
            .where(MetricSample.is_benchmark.is_(False))
            .order_by(MetricSample.id.desc())
            .limit(1)
        )
        async with self._write_lock:
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        source = (await session.execute(stmt)).scalar_one_or_none()
                        if source is None:
                            logger.info("store.benchmark_noop")
                            return None
                        copy = source.copy_as_benchmark()
                        session.add(copy)
                        await session.flush()
            except SQLAlchemyError as exc:
                logger.warning("store.benchmark_failed", error=str(exc))
                raise PersistenceWriteFailure("failed to create benchmark") from exc
        logger.info("store.benchmark_created", source_id=source.id, benchmark_id=copy.id, node=copy.node_name)
        return copy

    async def reset(self) -> None:
        """Delete every row and rewind the id sequence, atomically."""
        async with self._write_lock:
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        result = await session.execute(delete(MetricSample))
                        await self._rewind_sequence(session)
            except SQLAlchemyError as exc:
                logger.error("store.reset_failed", error=str(exc))
                raise PersistenceTransactionFailure("failed to reset metrics") from exc
        logger.info("store.reset", rows_deleted=result.rowcount)

    async def _rewind_sequence(self, session: AsyncSession) -> None:
        dialect = session.bind.dialect.name if session.bind is not None else ""
        table = MetricSample.__tablename__
        if dialect == "sqlite":
            await session.execute(text("DELETE FROM sqlite_sequence WHERE name = :name"), {"name": table})
        elif dialect == "postgresql":
            await session.execute(text(f"ALTER SEQUENCE {table}_id_seq RESTART WITH 1"))
        else:
            logger.warning("store.sequence_rewind_unsupported", dialect=dialect)
