"""Derive dashboard statistics from hour entries and external data."""

import math
import random
from collections import defaultdict
from typing import Iterable

from ..errors import CalculationError
from ..models import (
    ChartData,
    ChartPoint,
    CostPoint,
    DashboardStats,
    ExternalDataBundle,
    HourEntry,
)
from ..rounding import round_half_up

# 20°C is treated as the thermally optimal working temperature
OPTIMAL_TEMPERATURE_C = 20
BASE_EFFICIENCY = 90
MIN_EFFICIENCY = 60
MAX_EFFICIENCY = 100
DEFAULT_TEMPERATURE_C = 18

# Chart variation around the single real weather reading
TEMPERATURE_NOISE_C = 3
EFFICIENCY_NOISE = 2


def raw_efficiency(temperature: float) -> float:
    """Efficiency before clamping: 90 minus the distance from 20°C."""
    return BASE_EFFICIENCY - abs(OPTIMAL_TEMPERATURE_C - temperature)


def efficiency_score(temperature: float) -> int:
    """Efficiency clamped to [60, 100] and rounded."""
    return round_half_up(max(MIN_EFFICIENCY, min(MAX_EFFICIENCY, raw_efficiency(temperature))))


def hours_by_date(entries: Iterable[HourEntry]) -> dict[str, float]:
    """Sum hours per distinct date."""
    totals: dict[str, float] = defaultdict(float)
    for entry in entries:
        totals[entry.date] += entry.hours
    return dict(totals)


def _validate(entries: list[HourEntry], temperature: float, cost: float) -> None:
    for entry in entries:
        if not isinstance(entry.hours, (int, float)) or not math.isfinite(entry.hours) or entry.hours < 0:
            raise CalculationError(f"Invalid hours {entry.hours!r} for entry {entry.id}")
    if not math.isfinite(temperature):
        raise CalculationError(f"Invalid temperature {temperature!r}")
    if not math.isfinite(cost):
        raise CalculationError(f"Invalid electricity cost {cost!r}")


def build_chart_data(
    daily_hours: dict[str, float],
    current_temperature: float,
    electricity_cost: float,
    rng: random.Random | None = None,
) -> ChartData:
    """Per-date chart series, ascending by date.

    The efficiency/temperature series is synthetic: it scatters points around
    the current reading so the chart has visible variation. It is not a
    per-day measurement and differs between calls.
    """
    uniform = (rng or random).uniform
    dates = sorted(daily_hours)
    avg_cost_per_day = electricity_cost / len(dates) if dates else 0

    efficiency_vs_temp = []
    for day in dates:
        temperature = round_half_up(current_temperature + uniform(-TEMPERATURE_NOISE_C, TEMPERATURE_NOISE_C))
        efficiency = round_half_up(raw_efficiency(temperature) + uniform(-EFFICIENCY_NOISE, EFFICIENCY_NOISE))
        efficiency_vs_temp.append(ChartPoint(date=day, temperature=temperature, efficiency=efficiency))

    cost_per_hour = [
        CostPoint(
            date=day,
            cost=round_half_up(avg_cost_per_day / daily_hours[day], 2) if daily_hours[day] > 0 else 0,
            hours=round_half_up(daily_hours[day], 2),
        )
        for day in dates
    ]

    return ChartData(efficiency_vs_temp=efficiency_vs_temp, cost_per_hour=cost_per_hour)


def compute_stats(
    entries: Iterable[HourEntry],
    bundle: ExternalDataBundle,
    rng: random.Random | None = None,
) -> DashboardStats:
    """Combine hour entries with a fetched bundle into dashboard stats.

    Every field except the chart series is deterministic for fixed inputs.
    Raises CalculationError for negative or non-finite inputs.
    """
    entries = list(entries)

    temperature = bundle.weather.temperature
    current_temperature = DEFAULT_TEMPERATURE_C if temperature is None else temperature
    cost = bundle.utility.total_cost
    electricity_cost = 0 if cost is None else cost

    _validate(entries, current_temperature, electricity_cost)

    daily = hours_by_date(entries)
    total_hours = sum(entry.hours for entry in entries)
    days_with_data = len(daily) or 1
    average_hours_per_day = total_hours / days_with_data
    cost_per_hour = electricity_cost / total_hours if total_hours > 0 else 0

    return DashboardStats(
        total_hours=round_half_up(total_hours, 1),
        average_hours_per_day=round_half_up(average_hours_per_day, 1),
        current_temperature=current_temperature,
        electricity_cost=round_half_up(electricity_cost, 2),
        efficiency_score=efficiency_score(current_temperature),
        cost_per_hour=round_half_up(cost_per_hour, 2),
        chart_data=build_chart_data(daily, current_temperature, electricity_cost, rng),
        is_fallback=False,
    )


def format_stats_text(stats: DashboardStats) -> str:
    """Format dashboard stats as human-readable text."""
    lines = [
        "Dashboard Summary" + (" (fallback data)" if stats.is_fallback else ""),
        f"- Total hours: {stats.total_hours}",
        f"- Average per day: {stats.average_hours_per_day} h",
        f"- Current temperature: {stats.current_temperature}°C",
        f"- Electricity cost: {stats.electricity_cost:.2f}",
        f"- Efficiency score: {stats.efficiency_score}%",
        f"- Cost per hour: {stats.cost_per_hour:.2f}",
    ]

    if stats.chart_data.cost_per_hour:
        lines.extend(["", "Daily breakdown:"])
        for point in stats.chart_data.cost_per_hour:
            lines.append(f"  - {point.date}: {point.hours:g} h, {point.cost:.2f}/h")

    return "\n".join(lines)
