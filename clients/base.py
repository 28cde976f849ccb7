"""Contract between the aggregator and whatever fetches sensor data."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from models.samples import Granularity, Sample


class SensorClient(Protocol):
    """Anything that can fetch sample series for a sensor.

    Implementations don't need to inherit; matching signatures is enough.
    Entries of the returned sequence may be ``None``; consumers stop reading
    at the first one.
    """

    def fetch_samples(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
    ) -> Sequence[Optional[Sample]]:
        ...

    def fetch_energy_stats(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
        page_size: Optional[int] = None,
        page_limit: Optional[int] = None,
    ) -> Sequence[Optional[Sample]]:
        ...
