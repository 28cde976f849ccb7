from __future__ import annotations

from datetime import datetime, timezone

import pytest

from models.metrics import Metric
from models.samples import Granularity, Sample, TimeRange, parse_timestamp


def test_parse_timestamp_accepts_z_suffix_and_offsets() -> None:
    assert parse_timestamp("2014-06-24T00:00:00Z") == datetime(2014, 6, 24, tzinfo=timezone.utc)
    assert parse_timestamp("2014-06-24T01:30:00+01:30") == datetime(2014, 6, 24, tzinfo=timezone.utc)


def test_parse_timestamp_treats_naive_values_as_utc() -> None:
    assert parse_timestamp("2014-06-24T05:00:00") == datetime(2014, 6, 24, 5, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["", "   ", "24/06/2014"])
def test_parse_timestamp_rejects_garbage(value: str) -> None:
    with pytest.raises(ValueError):
        parse_timestamp(value)


def test_time_range_duration_across_offsets() -> None:
    window = TimeRange(
        start="2014-06-24T00:00:00-05:00",
        granularity=Granularity.hours,
        end="2014-06-24T06:00:00+00:00",
    )

    assert window.duration_seconds() == 3600.0


def test_time_range_params_pass_granularity_through() -> None:
    window = TimeRange(start="s", granularity="weeks", frequency=2)

    assert window.as_params() == {"start": "s", "granularity": "weeks", "frequency": 2}
    assert TimeRange(start="s", granularity=Granularity.days).as_params()["granularity"] == "days"


def test_sample_from_stats_payload_uses_start_as_timestamp() -> None:
    sample = Sample.from_payload({"start": "2014-06-24T00:00:00Z", "consumptionEnergy": 42})

    assert sample.timestamp == "2014-06-24T00:00:00Z"
    assert sample.consumption_energy == 42.0
    assert sample.consumption_power is None


def test_metric_operations_exist_on_aggregator() -> None:
    from services.aggregator import Aggregator

    for metric in Metric:
        assert callable(getattr(Aggregator, metric.operation))
        assert metric.unit
