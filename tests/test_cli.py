from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest
from typer.testing import CliRunner

from cli.app import app
from conftest import ONE_HOUR_LATER, START, StubSensorClient, power

CREDENTIALS = ["--sensor-id", "sensor-1", "--token", "token-1"]


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub() -> StubSensorClient:
    return StubSensorClient(samples=power(100, 200, 300))


@pytest.fixture()
def client_kwargs(monkeypatch, stub: StubSensorClient) -> List[Dict[str, Any]]:
    calls: List[Dict[str, Any]] = []

    def factory(**kwargs):
        calls.append(kwargs)
        return stub

    monkeypatch.setattr("services.aggregator.NeurioClient", factory)
    return calls


def test_metric_command(runner: CliRunner, stub: StubSensorClient, client_kwargs) -> None:
    result = runner.invoke(
        app,
        [*CREDENTIALS, "metric", "kwh", "--start", START, "--end", ONE_HOUR_LATER, "-g", "minutes"],
    )

    assert result.exit_code == 0, result.output
    assert "kwh: 0.2 kWh" in result.output
    assert f"start: {START}" in result.output
    assert client_kwargs[0]["sensor_id"] == "sensor-1"
    assert client_kwargs[0]["access_token"] == "token-1"
    assert stub.closed is True


def test_cost_without_rate_fails(runner: CliRunner, client_kwargs) -> None:
    result = runner.invoke(app, [*CREDENTIALS, "metric", "cost", "--start", START, "--end", ONE_HOUR_LATER])

    assert result.exit_code == 1
    assert "Set a rate per kWh" in result.output


def test_cost_with_rate(runner: CliRunner, client_kwargs) -> None:
    result = runner.invoke(
        app,
        [*CREDENTIALS, "--rate", "0.1", "metric", "cost", "--start", START, "--end", ONE_HOUR_LATER],
    )

    assert result.exit_code == 0, result.output
    assert "cost: 0.02 currency" in result.output


def test_date_option_uses_timezone(runner: CliRunner, stub: StubSensorClient, client_kwargs) -> None:
    result = runner.invoke(
        app,
        [*CREDENTIALS, "--tz-offset", "90", "metric", "power-consumed", "--date", "2014-06-24"],
    )

    assert result.exit_code == 0, result.output
    start, _granularity, end, _frequency = stub.sample_calls[0]
    assert start == "2014-06-24T00:00:00+01:30"
    assert end == "2014-06-25T00:00:00+01:30"


def test_metric_requires_start_or_date(runner: CliRunner, client_kwargs) -> None:
    result = runner.invoke(app, [*CREDENTIALS, "metric", "kwh"])

    assert result.exit_code == 2


def test_missing_credentials(runner: CliRunner, client_kwargs) -> None:
    result = runner.invoke(app, ["metric", "kwh", "--start", START])

    assert result.exit_code == 2
    assert not client_kwargs


def test_credentials_from_environment(monkeypatch, runner: CliRunner, client_kwargs) -> None:
    monkeypatch.setenv("NEURIO_SENSOR_ID", "env-sensor")
    monkeypatch.setenv("NEURIO_ACCESS_TOKEN", "env-token")

    result = runner.invoke(app, ["metric", "kwh", "--start", START, "--end", ONE_HOUR_LATER])

    assert result.exit_code == 0, result.output
    assert client_kwargs[0]["sensor_id"] == "env-sensor"


def test_timezone_command(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--tz-offset=-90", "timezone"])

    assert result.exit_code == 0
    assert result.output.strip() == "-01:30"


def test_client_built_from_settings(monkeypatch, runner: CliRunner, client_kwargs) -> None:
    monkeypatch.setenv("NEURIO_HTTP_TIMEOUT", "5")
    monkeypatch.setenv("NEURIO_STATS_PAGE_SIZE", "50")

    result = runner.invoke(app, [*CREDENTIALS, "metric", "kwh", "--start", START, "--end", ONE_HOUR_LATER])

    assert result.exit_code == 0, result.output
    assert client_kwargs[0]["timeout"] == 5.0
    assert client_kwargs[0]["page_size"] == 50


def test_date_option_defaults_to_local_offset(
    monkeypatch, runner: CliRunner, stub: StubSensorClient, client_kwargs
) -> None:
    eastern = datetime(2014, 6, 24, 12, 0, tzinfo=timezone(timedelta(hours=-4)))
    monkeypatch.setattr("services.aggregator._local_now", lambda: eastern)

    shown = runner.invoke(app, ["timezone"])
    result = runner.invoke(app, [*CREDENTIALS, "metric", "power-consumed", "--date", "2014-06-24"])

    assert shown.output.strip() == "-04:00"
    assert result.exit_code == 0, result.output
    start, _granularity, end, _frequency = stub.sample_calls[0]
    assert start == "2014-06-24T00:00:00-04:00"
    assert end == "2014-06-25T00:00:00-04:00"
