from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from clustermetrics.dependencies import get_store
from clustermetrics.schemas import MetricSampleOut
from clustermetrics.services.store import MetricStore


router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("", response_model=list[MetricSampleOut], summary="All recorded samples, newest first")
async def list_metrics(store: MetricStore = Depends(get_store)) -> list[MetricSampleOut]:
    samples = await store.query_all()
    return [MetricSampleOut.model_validate(sample) for sample in samples]


@router.post(
    "/benchmark",
    status_code=status.HTTP_201_CREATED,
    response_class=Response,
    summary="Copy the latest collected sample as a benchmark",
)
async def create_benchmark(store: MetricStore = Depends(get_store)) -> Response:
    await store.mark_benchmark()
    return Response(status_code=status.HTTP_201_CREATED)


@router.post(
    "/reset",
    status_code=status.HTTP_200_OK,
    response_class=Response,
    summary="Delete all samples and restart ids",
)
async def reset_metrics(store: MetricStore = Depends(get_store)) -> Response:
    await store.reset()
    return Response(status_code=status.HTTP_200_OK)
