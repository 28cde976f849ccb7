"""Names and units of the derived metrics the aggregator can compute."""

from __future__ import annotations

from enum import Enum


class Metric(str, Enum):

    kwh = "kwh"
    kwh_consumed = "kwh-consumed"
    kwh_generated = "kwh-generated"
    energy_consumed = "energy-consumed"
    power_consumed = "power-consumed"
    average_power = "average-power"
    average_power_generated = "average-power-generated"
    cost = "cost"
    flat_cost = "flat-cost"

    @property
    def unit(self) -> str:
        return _UNITS[self]

    @property
    def operation(self) -> str:
        """Name of the aggregator method computing this metric."""
        return "get_" + self.name


_UNITS = {
    Metric.kwh: "kWh",
    Metric.kwh_consumed: "kWh",
    Metric.kwh_generated: "kWh",
    Metric.energy_consumed: "Ws",
    Metric.power_consumed: "W",
    Metric.average_power: "W",
    Metric.average_power_generated: "W",
    Metric.cost: "currency",
    Metric.flat_cost: "currency",
}
