from fastapi import APIRouter

from clustermetrics.api.routes import collector, metrics

api_router = APIRouter()
api_router.include_router(metrics.router)
api_router.include_router(collector.router)
