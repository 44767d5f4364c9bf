"""Utility billing collector.

Fetches electricity cost figures for a billing period (YYYY-MM) from a
configurable billing endpoint. The endpoint is optional: when it is not set,
the fixed fallback figures are used instead of raising.
"""

import logging

import httpx

from ..config import DEFAULT_TIMEOUT
from ..models import Fallback, SourceResult, UtilitySnapshot
from .base import FetchParams, SourceAdapter, coerce_number

logger = logging.getLogger(__name__)

SOURCE_NAME = "utility_api"

FALLBACK_COST_PER_KWH = 0.15
FALLBACK_TOTAL_KWH = 1250
FALLBACK_TOTAL_COST = 187.5
FALLBACK_PERIOD = "2025-11"


def fallback_utility() -> UtilitySnapshot:
    return UtilitySnapshot(
        cost_per_kwh=FALLBACK_COST_PER_KWH,
        total_kwh=FALLBACK_TOTAL_KWH,
        total_cost=FALLBACK_TOTAL_COST,
        period=FALLBACK_PERIOD,
    )


def parse_utility(data: dict, period: str, source: str = SOURCE_NAME) -> UtilitySnapshot:
    """Normalize a billing reply; missing figures default to 0."""
    return UtilitySnapshot(
        cost_per_kwh=coerce_number(data, "costPerKwh", source),
        total_kwh=coerce_number(data, "totalKwh", source),
        total_cost=coerce_number(data, "totalCost", source),
        period=str(data.get("period") or period),
    )


class UtilityAdapter(SourceAdapter):
    """Billing figures from the configured utility endpoint."""

    name = SOURCE_NAME
    slot = "utility"

    def __init__(
        self,
        url: str | None,
        token: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(client=client, timeout=timeout)
        self.url = url
        self.token = token

    @property
    def configured(self) -> bool:
        return bool(self.url)

    @property
    def fallback(self) -> UtilitySnapshot:
        return fallback_utility()

    def fetch(self, params: FetchParams) -> UtilitySnapshot:
        if not self.configured:
            logger.warning("UTILITY_API_URL not configured - returning fallback utility metrics")
            return self.fallback

        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        data = self.get_json(self.url, params={"period": params.period}, headers=headers)
        return parse_utility(data, params.period, self.name)

    def resolve(self, params: FetchParams) -> SourceResult:
        if not self.configured:
            logger.warning("UTILITY_API_URL not configured - returning fallback utility metrics")
            return Fallback(self.fallback, "endpoint not configured")
        return super().resolve(params)
