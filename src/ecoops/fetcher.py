"""Multi-source fetcher for external weather and utility data.

Runs each configured source adapter in turn and merges the per-source
results into one ExternalDataBundle. A failing source is replaced by its
fixed fallback snapshot; the caller always gets a fully populated bundle.
"""

import logging
from typing import Mapping

import httpx

from .collectors.base import FetchParams, SourceAdapter
from .collectors.openweather import OpenWeatherAdapter, fallback_weather
from .collectors.utility import UtilityAdapter, fallback_utility
from .config import Settings
from .errors import ConfigurationError, UpstreamError
from .log import log_mock
from .models import ExternalDataBundle, Fallback, SourceResult, utc_now_iso

logger = logging.getLogger(__name__)

SLOT_FALLBACKS = {
    "weather": fallback_weather,
    "utility": fallback_utility,
}


def merge_results(results: Mapping[str, SourceResult], synced_at: str | None = None) -> ExternalDataBundle:
    """Combine per-slot results into a bundle.

    Slots with no result (the source was never configured) get their
    fallback snapshot without marking the bundle as degraded.
    """
    degraded = {slot: r.reason for slot, r in results.items() if isinstance(r, Fallback)}
    for slot, reason in degraded.items():
        logger.info("Using fallback %s data (%s)", slot, reason)

    snapshots = {}
    for slot, make_fallback in SLOT_FALLBACKS.items():
        result = results.get(slot)
        snapshots[slot] = result.snapshot if result is not None else make_fallback()

    return ExternalDataBundle(
        weather=snapshots["weather"],
        utility=snapshots["utility"],
        synced_at=synced_at or utc_now_iso(),
        used_fallback=bool(degraded),
    )


def mock_bundle() -> ExternalDataBundle:
    """The bundle served in mock mode."""
    return ExternalDataBundle(
        weather=fallback_weather(),
        utility=fallback_utility(),
        synced_at=utc_now_iso(),
        used_fallback=True,
    )


class MultiSourceFetcher:
    """Fetch every configured source, isolating failures per source."""

    def __init__(
        self,
        adapters: list[SourceAdapter],
        sources: list[str] | None = None,
        use_mock_data: bool = False,
    ):
        self.adapters = {adapter.name: adapter for adapter in adapters}
        self.sources = list(sources) if sources is not None else list(self.adapters)
        self.use_mock_data = use_mock_data
        self._owned_client: httpx.Client | None = None

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.Client | None = None) -> "MultiSourceFetcher":
        """Wire the weather and utility adapters from settings.

        A client created here is closed by close().
        """
        owned = client is None
        if owned:
            client = httpx.Client()

        adapters = [
            OpenWeatherAdapter(settings.openweather_api_key, client=client, timeout=settings.request_timeout),
            UtilityAdapter(
                settings.utility_api_url,
                settings.utility_api_token,
                client=client,
                timeout=settings.request_timeout,
            ),
        ]
        fetcher = cls(adapters, settings.sources, use_mock_data=settings.use_mock_data)
        if owned:
            fetcher._owned_client = client
        return fetcher

    def close(self) -> None:
        if self._owned_client is not None:
            self._owned_client.close()
            self._owned_client = None

    def __enter__(self) -> "MultiSourceFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch(self, params: FetchParams | None = None, sources: list[str] | None = None) -> ExternalDataBundle:
        """Fetch all sources into a bundle. Never raises."""
        params = params or FetchParams()

        if self.use_mock_data:
            log_mock("/api/data/sync")
            return mock_bundle()

        results: dict[str, SourceResult] = {}
        for source in self.sources if sources is None else sources:
            adapter = self.adapters.get(source)
            if adapter is None:
                logger.warning("Unknown endpoint: %s", source)
                continue
            results[adapter.slot] = self._resolve(adapter, params)

        return merge_results(results)

    def _resolve(self, adapter: SourceAdapter, params: FetchParams) -> SourceResult:
        try:
            return adapter.resolve(params)
        except (UpstreamError, ConfigurationError) as e:
            logger.error("Failed to fetch from %s: %s", adapter.name, e)
            reason = str(e)
        except Exception as e:
            logger.exception("Unexpected error fetching from %s", adapter.name)
            reason = f"unexpected error: {e}"
        return Fallback(adapter.fallback, reason)
