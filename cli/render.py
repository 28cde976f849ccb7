from __future__ import annotations

from typing import Any, Iterable, Optional

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        if value is None:
            continue
        typer.echo(f"{key}: {value}")


def render_metric(
    metric: str,
    value: float,
    unit: str,
    start: str,
    granularity: str,
    end: Optional[str] = None,
    frequency: Optional[int] = None,
) -> None:
    echo_heading("Range")
    echo_key_values(
        [
            ("start", start),
            ("end", end or "now"),
            ("granularity", granularity),
            ("frequency", frequency),
        ]
    )
    typer.echo()
    echo_heading("Result")
    echo_key_values([(metric, f"{value:.6g} {unit}")])


def render_error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
