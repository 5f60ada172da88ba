"""
Standalone collector worker.

Runs the collection loop outside the FastAPI web process, for deployments where
the API is started with COLLECTOR_ENABLED=false.
"""

from __future__ import annotations

import asyncio
import signal

from .config import Settings, get_settings
from .core.logging import get_logger
from .dependencies import ServiceContainer
from .services.provider import NodeMetricsProvider


async def run_background_worker(
    settings: Settings | None = None,
    provider: NodeMetricsProvider | None = None,
    stop_event: asyncio.Event | None = None,
) -> None:
    logger = get_logger(__name__)
    settings = settings or get_settings()

    container = await ServiceContainer.build(settings, provider)
    if not container.start_collector():
        logger.info("Background worker not started: collector lock already held by another process")
        await container.aclose()
        return

    stop_event = stop_event or asyncio.Event()

    def _request_stop() -> None:
        if not stop_event.is_set():
            logger.info("Background worker stop requested")
            stop_event.set()

    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_stop)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no add_signal_handler
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(_request_stop))

    try:
        logger.info("Background worker started (interval=%ss)", settings.collect_interval_seconds)
        await stop_event.wait()
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        await container.aclose()
        logger.info("Background worker stopped")
