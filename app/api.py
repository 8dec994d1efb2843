"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.schemas import (
    CacheMetrics,
    EnrichedPoint,
    EnrichRequest,
    EnrichResponse,
    ErrorPayload,
    MetricsResponse,
    PointPayload,
    ReloadResponse,
)
from models.errors import ErrorRecord
from models.points import Point
from services.pipeline import SideloadService, build_default_service

router = APIRouter()


def get_service() -> SideloadService:
    return build_default_service()


def point_from_payload(payload: PointPayload) -> Point:
    return Point(
        measurement=payload.measurement,
        time=payload.time,
        tags=dict(payload.tags),
        fields=dict(payload.fields),
    )


def payload_from_point(point: Point) -> PointPayload:
    return PointPayload(
        measurement=point.measurement,
        time=point.time,
        tags=dict(point.tags),
        fields=dict(point.fields),
    )


def payload_from_error(record: ErrorRecord) -> ErrorPayload:
    return ErrorPayload(
        kind=record.kind.value,
        message=record.message,
        path=record.path,
        key=record.key,
        template=record.template,
    )


@router.post(
    "/enrich",
    response_model=EnrichResponse,
    summary="Enrich points with sideloaded fields and tags.",
)
def enrich_points(
    request: EnrichRequest,
    service: SideloadService = Depends(get_service),
) -> EnrichResponse:
    results = service.enrich(point_from_payload(item) for item in request.points)
    return EnrichResponse(
        results=[
            EnrichedPoint(
                point=payload_from_point(result.point),
                errors=[payload_from_error(record) for record in result.errors],
            )
            for result in results
        ]
    )


@router.post(
    "/reload",
    response_model=ReloadResponse,
    summary="Drop cached documents so the next lookup reads the source again.",
)
def reload_documents(service: SideloadService = Depends(get_service)) -> ReloadResponse:
    return ReloadResponse(dropped=service.reload())


@router.get(
    "/metrics",
    response_model=MetricsResponse,
    summary="Error counters and document cache gauges.",
)
def metrics(service: SideloadService = Depends(get_service)) -> MetricsResponse:
    snapshot = service.node.stats()
    cache = None
    if snapshot.cache is not None:
        cache = CacheMetrics(
            entries=snapshot.cache.entries,
            hits=snapshot.cache.hits,
            misses=snapshot.cache.misses,
            reloads=snapshot.cache.reloads,
        )
    return MetricsResponse(
        errors=snapshot.errors,
        points_processed=snapshot.points_processed,
        cache=cache,
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
