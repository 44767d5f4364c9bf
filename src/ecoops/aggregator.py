"""Dashboard aggregation.

Ties together the hour store, the multi-source fetcher and the stats
calculator. run() never raises: any failure in the pipeline is logged,
alerted once, and answered with a fixed fallback snapshot.
"""

import logging
import random
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable, Iterator, Protocol

import httpx

from .alerts import ErrorAlert
from .analysis.stats import compute_stats
from .collectors.base import FetchParams
from .config import DEFAULT_LOCATION, Settings
from .fetcher import MultiSourceFetcher
from .log import log_mock
from .models import ChartData, ChartPoint, CostPoint, DashboardStats, ExternalDataBundle, utc_today
from .storage import HourStore, MemoryHourStore, SqliteHourStore

logger = logging.getLogger(__name__)

WINDOW_DAYS = 7
ALERT_CONTEXT = "logic-data-aggregator"


class AlertSink(Protocol):
    def notify(self, error: BaseException, context: str) -> bool: ...


def fallback_stats() -> DashboardStats:
    """The canned snapshot served when aggregation fails or in mock mode."""
    return DashboardStats(
        total_hours=37.5,
        average_hours_per_day=7.5,
        current_temperature=18,
        electricity_cost=187.5,
        efficiency_score=85,
        cost_per_hour=5.0,
        chart_data=ChartData(
            efficiency_vs_temp=[
                ChartPoint("2025-11-18", 15, 82),
                ChartPoint("2025-11-19", 17, 84),
                ChartPoint("2025-11-20", 16, 83),
                ChartPoint("2025-11-21", 19, 86),
                ChartPoint("2025-11-22", 18, 85),
            ],
            cost_per_hour=[
                CostPoint("2025-11-18", 4.8, 16),
                CostPoint("2025-11-19", 5.1, 15.5),
                CostPoint("2025-11-20", 4.9, 8),
                CostPoint("2025-11-21", 5.2, 14),
                CostPoint("2025-11-22", 5.0, 15.5),
            ],
        ),
        is_fallback=True,
    )


@dataclass
class GuardOutcome:
    value: Any = None


@contextmanager
def fallback_guard(
    context: str,
    alert: AlertSink,
    make_fallback: Callable[[], Any],
) -> Iterator[GuardOutcome]:
    """Run a block, replacing any exception with a fallback value.

    The block stores its result on the yielded outcome. On failure the error
    is logged, the alert sink is notified once, and outcome.value is set to
    make_fallback().
    """
    outcome = GuardOutcome()
    try:
        yield outcome
    except Exception as e:
        logger.exception("Failed to aggregate dashboard data")
        try:
            alert.notify(e, context)
        except Exception:
            logger.exception("Alert sink raised while reporting %s", context)
        outcome.value = make_fallback()


class DashboardAggregator:
    """Produces DashboardStats for the trailing seven-day window."""

    def __init__(
        self,
        store: HourStore,
        fetcher: MultiSourceFetcher,
        alert: AlertSink,
        use_mock_data: bool = False,
        default_location: str = DEFAULT_LOCATION,
        today: Callable[[], date] = utc_today,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.fetcher = fetcher
        self.alert = alert
        self.use_mock_data = use_mock_data
        self.default_location = default_location
        self.today = today
        self.rng = rng

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: HourStore | None = None,
        client: httpx.Client | None = None,
    ) -> "DashboardAggregator":
        if store is None:
            store = MemoryHourStore() if settings.use_mock_data else SqliteHourStore(settings.database_path)
        return cls(
            store=store,
            fetcher=MultiSourceFetcher.from_settings(settings, client),
            alert=ErrorAlert(settings, client),
            use_mock_data=settings.use_mock_data,
            default_location=settings.default_location,
        )

    def close(self) -> None:
        self.fetcher.close()

    def window(self) -> tuple[date, date]:
        """Inclusive [today - 7 days, today]."""
        end = self.today()
        return end - timedelta(days=WINDOW_DAYS), end

    def run(self, location: str | None = None) -> DashboardStats:
        """Aggregate dashboard stats. Never raises."""
        if self.use_mock_data:
            log_mock("/api/dashboard/stats")
            return fallback_stats()

        with fallback_guard(ALERT_CONTEXT, self.alert, fallback_stats) as outcome:
            outcome.value = self._aggregate(location or self.default_location)
        return outcome.value

    def sync(self, location: str | None = None, period: str | None = None) -> ExternalDataBundle:
        """Fetch fresh external data. Never raises."""
        return self.fetcher.fetch(FetchParams(location or self.default_location, period))

    def _aggregate(self, location: str) -> DashboardStats:
        start, end = self.window()
        entries = self.store.get_entries_by_date_range(start, end)
        logger.debug("Loaded %d hour entries for %s to %s", len(entries), start, end)

        bundle = self.fetcher.fetch(FetchParams(location, end.strftime("%Y-%m")))
        if bundle.used_fallback:
            logger.warning("External data degraded; stats use fallback values for some sources")

        return compute_stats(entries, bundle, self.rng)
