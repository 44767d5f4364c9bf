"""OpenWeather current conditions collector.

Fetches the current outside temperature for a location from the OpenWeather
API, in metric units, for correlation with staff hours and energy cost.
"""

import httpx

from ..config import DEFAULT_TIMEOUT
from ..errors import ConfigurationError, UpstreamError
from ..models import WeatherSnapshot, utc_now_iso
from ..rounding import round_half_up
from .base import FetchParams, SourceAdapter, coerce_number

SOURCE_NAME = "openweather"
API_BASE_URL = "https://api.openweathermap.org/data/2.5/weather"

FALLBACK_TEMPERATURE = 18
FALLBACK_HUMIDITY = 65
FALLBACK_DESCRIPTION = "Partly cloudy"


def fallback_weather() -> WeatherSnapshot:
    """Substitute conditions, stamped with the time they are issued."""
    return WeatherSnapshot(
        temperature=FALLBACK_TEMPERATURE,
        humidity=FALLBACK_HUMIDITY,
        description=FALLBACK_DESCRIPTION,
        timestamp=utc_now_iso(),
    )


def parse_weather(data: dict, source: str = SOURCE_NAME) -> WeatherSnapshot:
    """Normalize an OpenWeather reply.

    Example reply (trimmed):
        {"main": {"temp": 17.6, "humidity": 72},
         "weather": [{"description": "light rain"}]}
    """
    main = data.get("main")
    if not isinstance(main, dict) or main.get("temp") is None:
        raise UpstreamError(source, "malformed body: missing main.temp")

    temperature = round_half_up(coerce_number(main, "temp", source))
    humidity = coerce_number(main, "humidity", source)

    description = None
    conditions = data.get("weather")
    if isinstance(conditions, list) and conditions and isinstance(conditions[0], dict):
        description = conditions[0].get("description")

    return WeatherSnapshot(
        temperature=temperature,
        humidity=humidity,
        description=str(description) if description else "Unknown",
        timestamp=utc_now_iso(),
    )


class OpenWeatherAdapter(SourceAdapter):
    """Current weather for a named location."""

    name = SOURCE_NAME
    slot = "weather"

    def __init__(
        self,
        api_key: str | None,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = API_BASE_URL,
    ):
        super().__init__(client=client, timeout=timeout)
        self.api_key = api_key
        self.base_url = base_url

    @property
    def fallback(self) -> WeatherSnapshot:
        return fallback_weather()

    def fetch(self, params: FetchParams) -> WeatherSnapshot:
        if not self.api_key:
            raise ConfigurationError("OPENWEATHER_API_KEY is required for weather sync")

        data = self.get_json(
            self.base_url,
            params={"q": params.location, "appid": self.api_key, "units": "metric"},
        )
        return parse_weather(data, self.name)
