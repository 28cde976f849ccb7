"""Derived energy metrics computed from sensor sample series."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from numbers import Real
from typing import Callable, Iterable, Optional

from clients.base import SensorClient
from clients.neurio import NeurioClient
from models.samples import Granularity, Sample, TimeRange
from services.errors import ConfigurationError, NoSamplesError, RateNotConfiguredError
from settings import get_settings

logger = logging.getLogger(__name__)

WATTS_PER_KILOWATT = 1000.0
SECONDS_PER_HOUR = 3600.0
JOULES_PER_KWH = WATTS_PER_KILOWATT * SECONDS_PER_HOUR

DEFAULT_TIMEZONE = "+00:00"


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class SampleTotals:
    """Sum of one field across a sample series."""

    total: float = 0.0
    count: int = 0


def sum_field(samples: Iterable[Optional[Sample]], field: str) -> SampleTotals:
    """Sum ``field`` over ``samples``, stopping at the first missing entry.

    Samples lacking the field still count towards ``count`` and add nothing.
    """
    totals = SampleTotals()
    for sample in samples:
        if sample is None:
            break
        totals.count += 1
        value = getattr(sample, field, None)
        if value is not None:
            totals.total += value
    return totals


def local_offset_minutes(clock: Optional[Callable[[], datetime]] = None) -> int:
    """Current difference between local wall-clock time and UTC, in minutes."""
    offset = (clock or _local_now)().utcoffset() or timedelta(0)
    return int(offset.total_seconds() // 60)


def format_offset(total_minutes: int) -> str:
    """Render a minute offset from UTC as ``+HH:MM`` / ``-HH:MM``."""
    sign = "-" if total_minutes < 0 else "+"
    hours, minutes = divmod(abs(int(total_minutes)), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


class Aggregator:
    """Reduces sample series fetched from a sensor into energy and cost figures.

    The rate is a flat price per kWh; ``0`` means no rate has been configured.
    """

    def __init__(
        self,
        client: Optional[SensorClient],
        debug: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if client is None:
            logger.warning("Aggregator created without a sensor client", extra={"reason": "missing client"})
            raise ConfigurationError("A connected sensor client is required.")
        self.client = client
        self.debug = debug
        self._clock = clock or _local_now
        self._rate: float = 0
        self._timezone = DEFAULT_TIMEZONE
        self._log_level = logging.INFO if debug else logging.DEBUG

    @classmethod
    def connect(
        cls,
        sensor_id: str,
        access_token: str,
        base_url: Optional[str] = None,
        debug: bool = False,
    ) -> "Aggregator":
        """Build an aggregator over a fresh :class:`NeurioClient`."""
        settings = get_settings()
        client = NeurioClient(
            sensor_id=sensor_id,
            access_token=access_token,
            base_url=base_url or settings.base_url,
            timeout=settings.http_timeout,
            page_size=settings.stats_page_size,
            page_limit=settings.stats_page_limit,
        )
        return cls(client, debug=debug)

    # ============ Configuration ============

    def set_rate(self, rate: Optional[float]) -> None:
        if rate is None or isinstance(rate, bool) or not isinstance(rate, Real):
            logger.warning("Rejected flat rate", extra={"rate": rate, "reason": "not a number"})
            raise ConfigurationError("A numeric rate per kWh is required.")
        if not math.isfinite(rate):
            logger.warning("Rejected flat rate", extra={"rate": rate, "reason": "not finite"})
            raise ConfigurationError("The rate per kWh must be finite.")
        self._rate = rate

    def get_rate(self) -> float:
        return self._rate

    def set_timezone(self, offset_minutes: Optional[int] = None) -> str:
        """Store the UTC offset used when formatting request timestamps.

        Without an explicit offset, the clock's current UTC offset is used.
        Returns the formatted offset.
        """
        if offset_minutes is None:
            offset_minutes = local_offset_minutes(self._clock)
        self._timezone = format_offset(offset_minutes)
        logger.log(self._log_level, "Timezone set", extra={"timezone": self._timezone})
        return self._timezone

    def get_timezone(self) -> str:
        return self._timezone

    def format_timestamp(self, moment: datetime | date) -> str:
        """Render ``moment`` as an ISO-8601 request timestamp in the stored offset."""
        if not isinstance(moment, datetime):
            moment = datetime.combine(moment, time.min)
        if moment.tzinfo is not None:
            moment = moment.astimezone(self._tzinfo()).replace(tzinfo=None)
        return moment.strftime("%Y-%m-%dT%H:%M:%S") + self._timezone

    def _tzinfo(self) -> timezone:
        sign = -1 if self._timezone.startswith("-") else 1
        hours, minutes = self._timezone[1:].split(":")
        return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes)))

    # ============ Power based metrics ============

    def get_kwh(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
    ) -> float:
        """Estimate consumed kWh from the average consumption power over the window."""
        return self._power_kwh("kwh", "consumption_power", start, granularity, end, frequency)

    def get_kwh_generated(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
    ) -> float:
        return self._power_kwh("kwh_generated", "generation_power", start, granularity, end, frequency)

    def get_power_consumed(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
    ) -> float:
        """Raw sum of ``consumptionPower`` across the samples, in watts."""
        window = TimeRange(start=start, granularity=granularity, end=end, frequency=frequency)
        return self._sample_totals("power_consumed", "consumption_power", window).total

    def get_average_power(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
    ) -> float:
        return self._average_power("average_power", "consumption_power", start, granularity, end, frequency)

    def get_average_power_generated(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
    ) -> float:
        return self._average_power(
            "average_power_generated", "generation_power", start, granularity, end, frequency
        )

    # ============ Energy based metrics ============

    def get_energy_consumed(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
    ) -> float:
        """Raw sum of ``consumptionEnergy`` from the energy stats, in watt-seconds."""
        window = TimeRange(start=start, granularity=granularity, end=end, frequency=frequency)
        return self._energy_totals("energy_consumed", window).total

    def get_kwh_consumed(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
    ) -> float:
        window = TimeRange(start=start, granularity=granularity, end=end, frequency=frequency)
        return self._energy_totals("kwh_consumed", window).total / JOULES_PER_KWH

    # ============ Cost ============

    def get_cost(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
    ) -> float:
        self._require_rate("cost")
        return self.get_kwh(start, granularity, end, frequency) * self._rate

    def get_flat_cost(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
    ) -> float:
        self._require_rate("flat_cost")
        return self.get_kwh_consumed(start, granularity, end, frequency) * self._rate

    # ============ Internals ============

    def _require_rate(self, metric: str) -> None:
        if self._rate == 0:
            logger.warning("Cost requested without a rate", extra={"metric": metric, "rate": self._rate})
            raise RateNotConfiguredError("Set a rate per kWh before requesting a cost.")

    def _power_kwh(
        self,
        metric: str,
        field: str,
        start: str,
        granularity: Granularity | str,
        end: Optional[str],
        frequency: Optional[int],
    ) -> float:
        window = TimeRange(start=start, granularity=granularity, end=end, frequency=frequency)
        duration = self._duration_seconds(window)
        totals = self._sample_totals(metric, field, window)
        self._require_samples(metric, totals)
        # Average power over the window times its length; not an integral.
        return (totals.total / WATTS_PER_KILOWATT) * (duration / SECONDS_PER_HOUR) / totals.count

    def _average_power(
        self,
        metric: str,
        field: str,
        start: str,
        granularity: Granularity | str,
        end: Optional[str],
        frequency: Optional[int],
    ) -> float:
        window = TimeRange(start=start, granularity=granularity, end=end, frequency=frequency)
        totals = self._sample_totals(metric, field, window)
        self._require_samples(metric, totals)
        return totals.total / totals.count

    def _sample_totals(self, metric: str, field: str, window: TimeRange) -> SampleTotals:
        samples = self.client.fetch_samples(window.start, window.granularity, window.end, window.frequency)
        totals = sum_field(samples, field)
        self._log_fetch(metric, window, totals)
        return totals

    def _energy_totals(self, metric: str, window: TimeRange) -> SampleTotals:
        samples = self.client.fetch_energy_stats(
            window.start, window.granularity, window.end, window.frequency
        )
        totals = sum_field(samples, "consumption_energy")
        self._log_fetch(metric, window, totals)
        return totals

    def _duration_seconds(self, window: TimeRange) -> float:
        try:
            duration = window.duration_seconds(now=self._clock())
        except ValueError as exc:
            logger.warning(
                "Unparseable range", extra={"start": window.start, "end": window.end, "reason": str(exc)}
            )
            raise ConfigurationError(str(exc)) from exc
        if duration < 0:
            logger.warning(
                "Range ends before it starts", extra={"start": window.start, "end": window.end}
            )
            raise ConfigurationError("The end of the range must not precede its start.")
        return duration

    def _require_samples(self, metric: str, totals: SampleTotals) -> None:
        if totals.count == 0:
            logger.warning("No samples in range", extra={"metric": metric, "sample_count": 0})
            raise NoSamplesError("The sensor returned no samples for the requested range.")

    def _log_fetch(self, metric: str, window: TimeRange, totals: SampleTotals) -> None:
        logger.log(
            self._log_level,
            "Aggregated samples",
            extra={
                "metric": metric,
                "start": window.start,
                "end": window.end,
                "granularity": window.granularity_value,
                "sample_count": totals.count,
            },
        )


@lru_cache
def build_default_aggregator() -> Aggregator:
    """Factory that wires an aggregator from environment settings."""
    settings = get_settings()
    if not settings.sensor_id or not settings.access_token:
        raise ConfigurationError(
            "NEURIO_SENSOR_ID and NEURIO_ACCESS_TOKEN must be set to reach the sensor."
        )
    aggregator = Aggregator.connect(
        sensor_id=settings.sensor_id,
        access_token=settings.access_token,
        base_url=settings.base_url,
        debug=settings.debug,
    )
    if settings.rate:
        aggregator.set_rate(settings.rate)
    if settings.timezone_offset is not None:
        aggregator.set_timezone(settings.timezone_offset)
    return aggregator
