"""Common plumbing for external data source adapters.

An adapter performs one remote call for its source and normalizes the reply
into a snapshot. Transport failures, non-2xx replies, timeouts and malformed
bodies all surface as UpstreamError so the fetcher can treat them alike.
"""

import abc
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from ..config import DEFAULT_LOCATION, DEFAULT_TIMEOUT
from ..errors import UpstreamError
from ..models import Ok, SourceResult, UtilitySnapshot, WeatherSnapshot


def current_period() -> str:
    """The current billing period as YYYY-MM (UTC)."""
    return datetime.now(timezone.utc).strftime("%Y-%m")


@dataclass
class FetchParams:
    """Parameters shared by every source for one fetch cycle."""

    location: str = DEFAULT_LOCATION
    period: str | None = None

    def __post_init__(self):
        if not self.location:
            self.location = DEFAULT_LOCATION
        if not self.period:
            self.period = current_period()


def coerce_number(data: dict, key: str, source: str, default: float | None = 0) -> float | None:
    """Read a numeric field, substituting `default` when it is missing.

    Raises UpstreamError if the field is present but not numeric.
    """
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise UpstreamError(source, f"malformed body: {key} is not numeric")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise UpstreamError(source, f"malformed body: {key} is not numeric")
    if not math.isfinite(number):
        raise UpstreamError(source, f"malformed body: {key} is not finite")
    return number


class SourceAdapter(abc.ABC):
    """A single external data source."""

    name: str
    slot: str  # 'weather' or 'utility'

    def __init__(self, client: httpx.Client | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.client = client
        self.timeout = timeout

    @property
    @abc.abstractmethod
    def fallback(self) -> WeatherSnapshot | UtilitySnapshot:
        """Fixed substitute used when this source is unavailable."""

    @abc.abstractmethod
    def fetch(self, params: FetchParams) -> WeatherSnapshot | UtilitySnapshot:
        """Fetch and normalize one snapshot, raising UpstreamError on failure."""

    def resolve(self, params: FetchParams) -> SourceResult:
        """Fetch wrapped in a tagged result."""
        return Ok(self.fetch(params))

    def get_json(self, url: str, params: dict | None = None, headers: dict | None = None) -> dict[str, Any]:
        """GET a JSON object, mapping every failure mode to UpstreamError."""
        try:
            if self.client is not None:
                response = self.client.get(url, params=params, headers=headers, timeout=self.timeout)
            else:
                response = httpx.get(url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise UpstreamError(self.name, "timeout") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamError(self.name, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(self.name, f"request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(self.name, "malformed body: not JSON") from e

        if not isinstance(data, dict):
            raise UpstreamError(self.name, "malformed body: expected a JSON object")
        return data
