import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class PeriodicTask:
    """Runs ``action`` every ``interval_seconds`` until stopped.

    Stopping lets the in-flight run finish; it is only cancelled when it
    outlives the stop timeout.
    """

    def __init__(self, interval_seconds: float, action: Callable[[], Awaitable[Any]], name: str) -> None:
        self.interval_seconds = interval_seconds
        self.action = action
        self.name = name
        self._task: asyncio.Task[Any] | None = None
        self._stopped = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stopped.clear()
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.info("scheduler.task_started", task=self.name, interval_seconds=self.interval_seconds)

    async def stop(self, timeout: float | None = None) -> None:
        if not self._task:
            return
        self._stopped.set()
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("scheduler.task_stop_timeout", task=self.name, timeout=timeout)
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                logger.info("scheduler.task_cancelled", task=self.name)
        finally:
            self._task = None
        logger.info("scheduler.task_stopped", task=self.name)

    async def _run(self) -> None:
        while not self._stopped.is_set():
            started = time.monotonic()
            try:
                await self.action()
            except Exception as exc:
                logger.warning("scheduler.task_error", task=self.name, error=str(exc))
            delay = max(0.0, self.interval_seconds - (time.monotonic() - started))
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=delay)
            except asyncio.TimeoutError:
                continue
