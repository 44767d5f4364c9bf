from pathlib import Path

import pytest

from ecoops.config import DEFAULT_SOURCES, Settings, assert_env, load_settings
from ecoops.errors import ConfigurationError

ENV_VARS = [
    "APP_NAME",
    "USE_MOCK_DATA",
    "FORM_ENDPOINT",
    "DATABASE_PATH",
    "OPENWEATHER_API_KEY",
    "UTILITY_API_URL",
    "UTILITY_API_TOKEN",
    "APP_ENV",
    "REQUEST_TIMEOUT",
    "DEFAULT_LOCATION",
    "ECOOPS_CONFIG",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_config(tmp_path):
    settings = load_settings(tmp_path / "missing.yaml", use_dotenv=False)

    assert settings.use_mock_data is True
    assert settings.sources == DEFAULT_SOURCES
    assert settings.default_location == "London,UK"
    assert settings.request_timeout == 5.0
    assert settings.openweather_api_key is None


def test_mock_mode_only_disabled_by_false(monkeypatch, tmp_path):
    monkeypatch.setenv("USE_MOCK_DATA", "0")
    assert load_settings(tmp_path / "missing.yaml", use_dotenv=False).use_mock_data is True

    monkeypatch.setenv("USE_MOCK_DATA", "false")
    assert load_settings(tmp_path / "missing.yaml", use_dotenv=False).use_mock_data is False


def test_yaml_defaults_and_env_override(monkeypatch, tmp_path):
    config = tmp_path / "ecoops.yaml"
    config.write_text(
        "sources: [utility_api]\n"
        "default_location: 'Bristol,UK'\n"
        "request_timeout: 2.5\n"
        "database_path: /tmp/from-yaml.db\n"
    )
    monkeypatch.setenv("DEFAULT_LOCATION", "Cardiff,UK")
    monkeypatch.setenv("OPENWEATHER_API_KEY", "key")
    monkeypatch.setenv("UTILITY_API_URL", "")

    settings = load_settings(config, use_dotenv=False)

    assert settings.sources == ["utility_api"]
    assert settings.request_timeout == 2.5
    assert settings.database_path == Path("/tmp/from-yaml.db")
    assert settings.default_location == "Cardiff,UK"
    assert settings.openweather_api_key == "key"
    assert settings.utility_api_url is None


def test_config_path_from_environment(monkeypatch, tmp_path):
    config = tmp_path / "other.yaml"
    config.write_text("request_timeout: 9\n")
    monkeypatch.setenv("ECOOPS_CONFIG", str(config))

    assert load_settings(use_dotenv=False).request_timeout == 9.0


def test_invalid_timeout(monkeypatch, tmp_path):
    monkeypatch.setenv("REQUEST_TIMEOUT", "soon")

    with pytest.raises(ConfigurationError, match="REQUEST_TIMEOUT"):
        load_settings(tmp_path / "missing.yaml", use_dotenv=False)


def test_non_mapping_yaml(tmp_path):
    config = tmp_path / "bad.yaml"
    config.write_text("- just\n- a list\n")

    with pytest.raises(ConfigurationError):
        load_settings(config, use_dotenv=False)


def test_assert_env_lists_all_missing():
    settings = Settings(openweather_api_key="key")

    assert_env(settings, ["OPENWEATHER_API_KEY"])
    with pytest.raises(ConfigurationError, match="FORM_ENDPOINT, UTILITY_API_URL"):
        assert_env(settings, ["OPENWEATHER_API_KEY", "FORM_ENDPOINT", "UTILITY_API_URL"])


def test_invalid_yaml_timeout(tmp_path):
    config = tmp_path / "ecoops.yaml"
    config.write_text("request_timeout: soon\n")

    with pytest.raises(ConfigurationError, match="request_timeout"):
        load_settings(config, use_dotenv=False)
