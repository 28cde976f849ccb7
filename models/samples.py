"""Domain models shared across the client, aggregator and service layers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional


class Granularity(str, Enum):
    """Sampling resolutions understood by the sensor API."""

    seconds = "seconds"
    minutes = "minutes"
    hours = "hours"
    days = "days"
    weeks = "weeks"
    months = "months"


@dataclass(slots=True)
class Sample:
    """One measurement record reported by the sensor for a time range.

    Every numeric field is optional; the vendor omits fields the sensor does
    not measure (e.g. generation on a consumption-only install).
    """

    timestamp: Optional[str] = None
    consumption_power: Optional[float] = None
    consumption_energy: Optional[float] = None
    generation_power: Optional[float] = None
    generation_energy: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Sample":
        return cls(
            timestamp=payload.get("timestamp") or payload.get("start"),
            consumption_power=_optional_float(payload.get("consumptionPower")),
            consumption_energy=_optional_float(payload.get("consumptionEnergy")),
            generation_power=_optional_float(payload.get("generationPower")),
            generation_energy=_optional_float(payload.get("generationEnergy")),
        )


@dataclass(frozen=True)
class TimeRange:
    """Query window handed through to the sensor client."""

    start: str
    granularity: Granularity | str
    end: Optional[str] = None
    frequency: Optional[int] = None

    @property
    def granularity_value(self) -> str:
        if isinstance(self.granularity, Granularity):
            return self.granularity.value
        return str(self.granularity)

    def duration_seconds(self, now: Optional[datetime] = None) -> float:
        """Elapsed seconds between ``start`` and ``end`` (or ``now`` when open-ended)."""
        started = parse_timestamp(self.start)
        if self.end is not None:
            ended = parse_timestamp(self.end)
        else:
            ended = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
        return (ended - started).total_seconds()

    def as_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "start": self.start,
            "granularity": self.granularity_value,
        }
        if self.end is not None:
            params["end"] = self.end
        if self.frequency is not None:
            params["frequency"] = self.frequency
        return params


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError(f"Invalid timestamp format: {value!r}") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)
