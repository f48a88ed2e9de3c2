"""Unit tests for settings and the YAML configuration loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from setlistscout.config.loader import load_config
from setlistscout.config.settings import Settings
from setlistscout.utils.errors import ConfigurationError


def _settings(**overrides: object) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("REDIS_URL", raising=False)
        monkeypatch.delenv("SETLISTFM_MIN_INTERVAL", raising=False)
        settings = _settings()
        assert settings.setlistfm_min_interval == 0.6
        assert settings.setlistfm_max_concurrent == 1
        assert settings.redis_url == ""

    def test_environment_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SETLIST_API_KEY", "abc123")
        monkeypatch.setenv("APP_PORT", "8080")
        settings = _settings()
        assert settings.setlist_api_key == "abc123"
        assert settings.app_port == 8080

    def test_cors_origins(self) -> None:
        settings = _settings(cors_origins="https://a.example, https://b.example,")
        assert settings.get_cors_origins() == ["https://a.example", "https://b.example"]


class TestLoadConfig:
    def test_yaml_and_settings_are_merged(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "setlistfm:\n  max_middle_pages: 5\n  min_interval: 9.9\nwarm:\n  artists: [Muse]\n"
        )

        config = load_config(str(path), _settings(setlistfm_min_interval=0.5))

        assert config["setlistfm"]["max_middle_pages"] == 5
        assert config["setlistfm"]["min_interval"] == 0.5
        assert config["warm"]["artists"] == ["Muse"]

    def test_cache_backend_follows_redis_url(self, tmp_path: Path) -> None:
        missing = str(tmp_path / "absent.yaml")
        assert load_config(missing, _settings())["cache"]["backend"] == "memory"
        redis = _settings(redis_url="redis://localhost:6379/0")
        assert load_config(missing, redis)["cache"]["backend"] == "redis"

    def test_scraper_enabled_by_url(self, tmp_path: Path) -> None:
        config = load_config(
            str(tmp_path / "absent.yaml"), _settings(scraper_service_url="http://scraper")
        )
        assert config["scraper"]["enabled"] is True

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(str(path), _settings())["logging"]["level"] == "INFO"

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("setlistfm: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Could not parse"):
            load_config(str(path), _settings())

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(str(path), _settings())

    def test_checked_in_defaults(self) -> None:
        root = Path(__file__).resolve().parents[2]
        config = load_config(str(root / "config" / "config.yaml"), _settings())
        assert config["setlistfm"]["recent_pages"] == 3
        assert "Radiohead" in config["warm"]["artists"]
