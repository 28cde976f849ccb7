"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from models.metrics import Metric


class MetricResult(BaseModel):
    """A single derived metric for a time range."""

    metric: Metric
    value: float
    unit: str
    start: str
    end: Optional[str] = None
    granularity: str
    frequency: Optional[int] = None


class RateUpdate(BaseModel):
    rate: float = Field(..., description="Flat price per kWh; 0 clears the rate.")


class RateResponse(BaseModel):
    rate: float
    configured: bool


class TimezoneUpdate(BaseModel):
    offset_minutes: Optional[int] = Field(
        default=None,
        description="Minutes east of UTC; omit to use the server's local offset.",
    )


class TimezoneResponse(BaseModel):
    timezone: str = Field(..., pattern=r"^[+-]\d{2}:\d{2}$")
