"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import (
    MetricResult,
    RateResponse,
    RateUpdate,
    TimezoneResponse,
    TimezoneUpdate,
)
from models.metrics import Metric
from models.samples import Granularity
from services.aggregator import Aggregator, build_default_aggregator
from services.errors import (
    ConfigurationError,
    NoSamplesError,
    RateNotConfiguredError,
    SensorResponseError,
)

router = APIRouter()


def get_aggregator() -> Aggregator:
    try:
        return build_default_aggregator()
    except ConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc


@router.get(
    "/metrics/{metric}",
    response_model=MetricResult,
    summary="Compute a derived metric for a time range.",
)
def get_metric(
    metric: Metric,
    start: str = Query(..., description="ISO-8601 start of the range."),
    granularity: Granularity = Query(..., description="Sampling resolution."),
    end: Optional[str] = Query(None, description="ISO-8601 end of the range."),
    frequency: Optional[int] = Query(None, ge=1, description="Sampling stride."),
    aggregator: Aggregator = Depends(get_aggregator),
) -> MetricResult:
    operation = getattr(aggregator, metric.operation)
    try:
        value = operation(start, granularity, end, frequency)
    except ConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except NoSamplesError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except RateNotConfiguredError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except (httpx.HTTPError, SensorResponseError) as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Sensor API request failed: {exc}",
        ) from exc
    return MetricResult(
        metric=metric,
        value=value,
        unit=metric.unit,
        start=start,
        end=end,
        granularity=granularity.value,
        frequency=frequency,
    )


@router.get("/rate", response_model=RateResponse, summary="Current flat rate per kWh.")
async def get_rate(aggregator: Aggregator = Depends(get_aggregator)) -> RateResponse:
    rate = aggregator.get_rate()
    return RateResponse(rate=rate, configured=rate != 0)


@router.put("/rate", response_model=RateResponse, summary="Set the flat rate per kWh.")
async def put_rate(
    update: RateUpdate,
    aggregator: Aggregator = Depends(get_aggregator),
) -> RateResponse:
    try:
        aggregator.set_rate(update.rate)
    except ConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    rate = aggregator.get_rate()
    return RateResponse(rate=rate, configured=rate != 0)


@router.get("/timezone", response_model=TimezoneResponse, summary="Current request timezone.")
async def get_timezone(aggregator: Aggregator = Depends(get_aggregator)) -> TimezoneResponse:
    return TimezoneResponse(timezone=aggregator.get_timezone())


@router.put("/timezone", response_model=TimezoneResponse, summary="Set the request timezone.")
async def put_timezone(
    update: TimezoneUpdate,
    aggregator: Aggregator = Depends(get_aggregator),
) -> TimezoneResponse:
    return TimezoneResponse(timezone=aggregator.set_timezone(update.offset_minutes))


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
