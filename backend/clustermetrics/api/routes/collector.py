from fastapi import APIRouter, Depends

from clustermetrics.dependencies import ServiceContainer, get_container
from clustermetrics.schemas import CollectorStatus


router = APIRouter(prefix="/collector", tags=["collector"])


@router.get("/status", response_model=CollectorStatus, summary="Collection loop statistics")
async def collector_status(container: ServiceContainer = Depends(get_container)) -> CollectorStatus:
    return CollectorStatus.from_snapshot(
        container.collector.stats.snapshot(),
        running=container.scheduler.running,
        interval_seconds=container.scheduler.interval_seconds,
    )
