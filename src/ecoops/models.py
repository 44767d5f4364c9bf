"""Data models for hour entries, external snapshots and dashboard stats."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def utc_today() -> date:
    """Current date in UTC."""
    return datetime.now(timezone.utc).date()


@dataclass(frozen=True)
class HourEntry:
    """A logged block of staff work hours."""

    id: str
    staff_name: str
    hours: float
    date: str  # YYYY-MM-DD
    created_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staffName": self.staff_name,
            "hours": self.hours,
            "date": self.date,
            "createdAt": self.created_at,
        }


@dataclass
class WeatherSnapshot:
    """Current outside conditions for a location."""

    temperature: float | None
    humidity: float
    description: str
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "description": self.description,
            "timestamp": self.timestamp,
        }


@dataclass
class UtilitySnapshot:
    """Electricity billing figures for one period."""

    cost_per_kwh: float
    total_kwh: float
    total_cost: float | None
    period: str  # YYYY-MM

    def to_dict(self) -> dict:
        return {
            "costPerKwh": self.cost_per_kwh,
            "totalKwh": self.total_kwh,
            "totalCost": self.total_cost,
            "period": self.period,
        }


@dataclass(frozen=True)
class Ok:
    """A source that returned real data."""

    snapshot: WeatherSnapshot | UtilitySnapshot


@dataclass(frozen=True)
class Fallback:
    """A source that degraded to its fixed substitute."""

    snapshot: WeatherSnapshot | UtilitySnapshot
    reason: str


SourceResult = Ok | Fallback


@dataclass
class ExternalDataBundle:
    """Merged snapshot of every source for one fetch cycle."""

    weather: WeatherSnapshot
    utility: UtilitySnapshot
    synced_at: str
    used_fallback: bool = False

    def to_dict(self) -> dict:
        return {
            "weather": self.weather.to_dict(),
            "utility": self.utility.to_dict(),
            "syncedAt": self.synced_at,
            "usedFallback": self.used_fallback,
            "mock": self.used_fallback,
        }


@dataclass
class ChartPoint:
    date: str
    temperature: int
    efficiency: int


@dataclass
class CostPoint:
    date: str
    cost: float
    hours: float


@dataclass
class ChartData:
    efficiency_vs_temp: list[ChartPoint] = field(default_factory=list)
    cost_per_hour: list[CostPoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "efficiencyVsTemp": [
                {"date": p.date, "temperature": p.temperature, "efficiency": p.efficiency}
                for p in self.efficiency_vs_temp
            ],
            "costPerHour": [
                {"date": p.date, "cost": p.cost, "hours": p.hours}
                for p in self.cost_per_hour
            ],
        }


@dataclass
class DashboardStats:
    """Aggregated efficiency statistics shown on the dashboard."""

    total_hours: float
    average_hours_per_day: float
    current_temperature: float
    electricity_cost: float
    efficiency_score: int
    cost_per_hour: float
    chart_data: ChartData
    is_fallback: bool = False

    def to_dict(self) -> dict:
        return {
            "totalHours": self.total_hours,
            "averageHoursPerDay": self.average_hours_per_day,
            "currentTemperature": self.current_temperature,
            "electricityCost": self.electricity_cost,
            "efficiencyScore": self.efficiency_score,
            "costPerHour": self.cost_per_hour,
            "chartData": self.chart_data.to_dict(),
            "isFallback": self.is_fallback,
            "mock": self.is_fallback,
        }
