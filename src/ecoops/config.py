"""Runtime settings loaded from the environment and an optional YAML file."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "ecoops.yaml"
DEFAULT_SOURCES = ["openweather", "utility_api"]
DEFAULT_LOCATION = "London,UK"
DEFAULT_TIMEOUT = 5.0


@dataclass
class Settings:
    """Process-wide configuration for the dashboard backend."""

    app_name: str = "eco-ops-manager"
    use_mock_data: bool = True
    form_endpoint: str | None = None
    database_path: Path | None = None
    openweather_api_key: str | None = None
    utility_api_url: str | None = None
    utility_api_token: str | None = None
    environment: str = "development"
    request_timeout: float = DEFAULT_TIMEOUT
    default_location: str = DEFAULT_LOCATION
    sources: list[str] = field(default_factory=lambda: list(DEFAULT_SOURCES))

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def load_yaml_defaults(config_path: Path | None = None) -> dict:
    """Read optional defaults from YAML. A missing file yields an empty dict."""
    path = config_path or Path(os.environ.get("ECOOPS_CONFIG", DEFAULT_CONFIG_PATH))
    if not path.exists():
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def _env(name: str) -> str | None:
    # Empty strings count as unset
    value = os.environ.get(name)
    return value or None


def load_settings(config_path: Path | None = None, use_dotenv: bool = True) -> Settings:
    """Build Settings from YAML defaults, overridden by environment variables."""
    if use_dotenv:
        load_dotenv()

    defaults = load_yaml_defaults(config_path)
    settings = Settings()

    if "sources" in defaults:
        settings.sources = [str(s) for s in defaults["sources"]]
    if "default_location" in defaults:
        settings.default_location = str(defaults["default_location"])
    if "request_timeout" in defaults:
        try:
            settings.request_timeout = float(defaults["request_timeout"])
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"request_timeout must be a number, got {defaults['request_timeout']!r}"
            )
    if defaults.get("database_path"):
        settings.database_path = Path(defaults["database_path"]).expanduser()

    settings.app_name = _env("APP_NAME") or settings.app_name
    # Mock mode stays on unless explicitly disabled
    settings.use_mock_data = os.environ.get("USE_MOCK_DATA") != "false"
    settings.form_endpoint = _env("FORM_ENDPOINT")
    settings.openweather_api_key = _env("OPENWEATHER_API_KEY")
    settings.utility_api_url = _env("UTILITY_API_URL")
    settings.utility_api_token = _env("UTILITY_API_TOKEN")
    settings.environment = _env("APP_ENV") or settings.environment
    settings.default_location = _env("DEFAULT_LOCATION") or settings.default_location

    if _env("DATABASE_PATH"):
        settings.database_path = Path(_env("DATABASE_PATH")).expanduser()

    timeout = _env("REQUEST_TIMEOUT")
    if timeout:
        try:
            settings.request_timeout = float(timeout)
        except ValueError:
            raise ConfigurationError(f"REQUEST_TIMEOUT must be a number, got {timeout!r}")

    return settings


ENV_FIELDS = {
    "APP_NAME": "app_name",
    "FORM_ENDPOINT": "form_endpoint",
    "DATABASE_PATH": "database_path",
    "OPENWEATHER_API_KEY": "openweather_api_key",
    "UTILITY_API_URL": "utility_api_url",
    "UTILITY_API_TOKEN": "utility_api_token",
}


def assert_env(settings: Settings, keys: list[str]) -> None:
    """Raise ConfigurationError naming every key in `keys` that has no value."""
    missing = [key for key in keys if not getattr(settings, ENV_FIELDS[key], None)]
    if missing:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")
