"""
Tests for environment-driven settings.
"""

from pathlib import Path

import pytest

from uatstats.env import DEFAULT_GRAPHQL_URL, DEFAULT_TAX_YEARS, get_settings, load_env
from uatstats.errors import FatalSetupError

ENV_VARS = [
    "UATSTATS_GRAPHQL_URL",
    "UATSTATS_TIMEOUT",
    "UATSTATS_DELAY",
    "UATSTATS_SEARCH_LIMIT",
    "UATSTATS_MAX_QUERIES",
    "UATSTATS_TAX_YEARS",
    "UATSTATS_LOG_LEVEL",
    "UATSTATS_LOG_DIR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so teardown also removes values loaded from .env files
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


class TestGetSettings:
    """Test defaults and overrides."""

    def test_defaults(self):
        settings = get_settings()
        assert settings.graphql_url == DEFAULT_GRAPHQL_URL
        assert settings.timeout == 30.0
        assert settings.delay == 1.2
        assert settings.search_limit == 10
        assert settings.max_queries == 10
        assert settings.tax_years == DEFAULT_TAX_YEARS
        assert settings.log_level == "INFO"
        assert settings.log_dir == Path("logs")

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("UATSTATS_GRAPHQL_URL", "http://localhost:4000/graphql")
        monkeypatch.setenv("UATSTATS_DELAY", "0.5")
        monkeypatch.setenv("UATSTATS_MAX_QUERIES", "4")
        monkeypatch.setenv("UATSTATS_LOG_LEVEL", "debug")

        settings = get_settings()

        assert settings.graphql_url == "http://localhost:4000/graphql"
        assert settings.delay == 0.5
        assert settings.max_queries == 4
        assert settings.log_level == "DEBUG"

    def test_tax_years_sorted_newest_first(self, monkeypatch):
        monkeypatch.setenv("UATSTATS_TAX_YEARS", "2022, 2024,2023,2024")
        assert get_settings().tax_years == (2024, 2023, 2022)

    @pytest.mark.parametrize("name,value", [
        ("UATSTATS_TIMEOUT", "thirty"),
        ("UATSTATS_SEARCH_LIMIT", "1.5"),
        ("UATSTATS_TAX_YEARS", "2024,last"),
        ("UATSTATS_TAX_YEARS", " , "),
    ])
    def test_malformed_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(FatalSetupError, match=name):
            get_settings()


class TestLoadEnv:
    """Test .env loading."""

    def test_loads_dotenv_from_cwd(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("UATSTATS_DELAY=3\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        load_env()

        assert get_settings().delay == 3.0

    def test_no_dotenv(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        load_env()
        assert get_settings().delay == 1.2
