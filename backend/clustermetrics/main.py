import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request

from clustermetrics import __version__
from clustermetrics.api.router import api_router
from clustermetrics.config import Settings, get_settings
from clustermetrics.core.logging import get_logger, setup_logging
from clustermetrics.core.request_context import request_id_var
from clustermetrics.dependencies import ServiceContainer
from clustermetrics.exceptions import register_exception_handlers
from clustermetrics.services.provider import NodeMetricsProvider


def create_app(settings: Settings | None = None, provider: NodeMetricsProvider | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Initializing storage and cluster access...")
        container = await ServiceContainer.build(settings, provider)
        app.state.container = container
        logger.info("Storage ready: %s", settings.database_url)

        if settings.collector_enabled:
            if container.start_collector():
                logger.info("Collector started (interval=%ss)", settings.collect_interval_seconds)
        else:
            logger.info("Collector disabled in this process")

        yield

        logger.info("Shutting down...")
        await container.aclose()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Cluster Metrics Recorder",
        description="Records Kubernetes node CPU/memory utilization history",
        version=__version__,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
            request_id_var.reset(token)

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()
