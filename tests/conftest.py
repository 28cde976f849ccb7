from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterator, List, Optional, Sequence

import pytest

from models.samples import Sample
from services.aggregator import build_default_aggregator
from settings import get_settings

START = "2014-06-24T00:00:00+00:00"
ONE_HOUR_LATER = "2014-06-24T01:00:00+00:00"

_NEURIO_ENV = (
    "NEURIO_API_BASE_URL",
    "NEURIO_SENSOR_ID",
    "NEURIO_ACCESS_TOKEN",
    "NEURIO_RATE",
    "NEURIO_TIMEZONE_OFFSET",
    "NEURIO_HTTP_TIMEOUT",
    "NEURIO_STATS_PAGE_SIZE",
    "NEURIO_STATS_PAGE_LIMIT",
    "NEURIO_DEBUG",
)


class StubSensorClient:
    """In-memory sensor client returning canned sample series."""

    def __init__(
        self,
        samples: Sequence[Optional[Sample]] = (),
        stats: Sequence[Optional[Sample]] = (),
        error: Exception | None = None,
    ) -> None:
        self.samples = list(samples)
        self.stats = list(stats)
        self.error = error
        self.sample_calls: List[tuple[Any, ...]] = []
        self.stats_calls: List[tuple[Any, ...]] = []
        self.closed = False

    def fetch_samples(self, start, granularity, end=None, frequency=None):
        self.sample_calls.append((start, granularity, end, frequency))
        if self.error is not None:
            raise self.error
        return list(self.samples)

    def fetch_energy_stats(
        self, start, granularity, end=None, frequency=None, page_size=None, page_limit=None
    ):
        self.stats_calls.append((start, granularity, end, frequency, page_size, page_limit))
        if self.error is not None:
            raise self.error
        return list(self.stats)

    def close(self) -> None:
        self.closed = True


def power(*values: Optional[float]) -> List[Sample]:
    return [Sample(consumption_power=value) for value in values]


def energy(*values: Optional[float]) -> List[Sample]:
    return [Sample(consumption_energy=value) for value in values]


def fixed_clock(moment: datetime):
    return lambda: moment


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch) -> Iterator[None]:
    for name in _NEURIO_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    build_default_aggregator.cache_clear()
    yield
    get_settings.cache_clear()
    build_default_aggregator.cache_clear()


@pytest.fixture
def utc_clock():
    return fixed_clock(datetime(2014, 6, 24, 2, 0, tzinfo=timezone.utc))
