from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

import httpx
import typer

from cli.config import CLIConfig, load_config
from cli.render import render_error, render_metric
from logging_config import configure_logging
from models.metrics import Metric
from models.samples import Granularity
from services.aggregator import Aggregator, format_offset, local_offset_minutes
from services.errors import NeurioToolsError


@dataclass
class CLIState:
    config: CLIConfig
    aggregator: Optional[Aggregator] = field(default=None)


app = typer.Typer(
    help="Energy, power and cost figures derived from a Neurio sensor.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        render_error("CLI state is uninitialized.")
        raise typer.Exit(code=1)
    return state


def _get_aggregator(ctx: typer.Context) -> Aggregator:
    state = _get_state(ctx)
    if state.aggregator is not None:
        return state.aggregator

    config = state.config
    if not config.sensor_id or not config.access_token:
        render_error("A sensor id and access token are required (--sensor-id/--token or environment).")
        raise typer.Exit(code=2)

    aggregator = Aggregator.connect(
        sensor_id=config.sensor_id,
        access_token=config.access_token,
        base_url=config.base_url,
        debug=config.debug,
    )
    ctx.call_on_close(aggregator.client.close)
    if config.rate:
        aggregator.set_rate(config.rate)
    # None means the local offset.
    aggregator.set_timezone(config.timezone_offset)
    state.aggregator = aggregator
    return aggregator


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Sensor API base URL (defaults to NEURIO_API_BASE_URL env or https://api.neur.io/v1).",
    ),
    sensor_id: Optional[str] = typer.Option(None, "--sensor-id", "-s", help="Sensor identifier."),
    access_token: Optional[str] = typer.Option(None, "--token", help="API access token."),
    rate: Optional[float] = typer.Option(None, "--rate", "-r", help="Flat price per kWh."),
    tz_offset: Optional[int] = typer.Option(
        None,
        "--tz-offset",
        help="Minutes east of UTC used for request timestamps (defaults to the local offset).",
    ),
    debug: Optional[bool] = typer.Option(None, "--debug/--no-debug", help="Log each aggregation."),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        sensor_id=sensor_id,
        access_token=access_token,
        rate=rate,
        timezone_offset=tz_offset,
        debug=debug,
    )
    configure_logging("INFO" if config.debug else None)
    ctx.obj = CLIState(config=config)


@app.command("metric")
def metric_command(
    ctx: typer.Context,
    metric: Metric = typer.Argument(..., help="Metric to compute."),
    start: Optional[str] = typer.Option(None, "--start", help="ISO-8601 start of the range."),
    end: Optional[str] = typer.Option(None, "--end", help="ISO-8601 end of the range."),
    day: Optional[datetime] = typer.Option(
        None,
        "--date",
        formats=["%Y-%m-%d"],
        help="Whole local day to report on; replaces --start/--end.",
    ),
    granularity: Granularity = typer.Option(Granularity.minutes, "--granularity", "-g"),
    frequency: Optional[int] = typer.Option(None, "--frequency", min=1, help="Sampling stride."),
) -> None:
    """Compute a derived metric for a time range."""
    aggregator = _get_aggregator(ctx)
    if day is not None:
        start = aggregator.format_timestamp(day.date())
        end = aggregator.format_timestamp(day.date() + timedelta(days=1))
    if start is None:
        raise typer.BadParameter("Either --start or --date is required.", param_hint="--start")

    operation = getattr(aggregator, metric.operation)
    try:
        value = operation(start, granularity, end, frequency)
    except NeurioToolsError as exc:
        render_error(str(exc))
        raise typer.Exit(code=1)
    except httpx.HTTPStatusError as exc:
        render_error(
            f"Request failed with status {exc.response.status_code}: "
            f"{exc.response.text.strip() or 'no detail provided.'}"
        )
        raise typer.Exit(code=1)
    except httpx.HTTPError as exc:
        render_error(f"Request failed: {exc}")
        raise typer.Exit(code=1)

    render_metric(
        metric.value,
        value,
        metric.unit,
        start=start,
        granularity=granularity.value,
        end=end,
        frequency=frequency,
    )


@app.command("timezone")
def timezone_command(
    ctx: typer.Context,
) -> None:
    """Show the UTC offset used for request timestamps."""
    config = _get_state(ctx).config
    offset = config.timezone_offset
    if offset is None:
        offset = local_offset_minutes()
    typer.echo(format_offset(offset))
