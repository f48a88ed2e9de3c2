"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
#   1. config/config.yaml  static defaults checked into the repo
#   2. .env file           local developer overrides (not committed)
#   3. Environment vars    set at deploy time
#
# ``load_config()`` reads the YAML file, then deep-merges the values
# resolved by :class:`Settings` on top, so every key that also exists
# as a setting can be overridden per environment.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from setlistscout.config.settings import Settings
from setlistscout.utils.errors import ConfigurationError


def load_config(
    path: str = "config/config.yaml", settings: Settings | None = None
) -> dict[str, Any]:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file yields
              the settings-derived values only.
        settings: Pre-built settings; a fresh :class:`Settings` is read
                  from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: The YAML file is malformed or not a mapping.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            try:
                yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Could not parse {config_path}: {exc}") from exc
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping at the top level")
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "setlistfm": {
            "base_url": settings.setlistfm_base_url,
            "min_interval": settings.setlistfm_min_interval,
            "max_concurrent": settings.setlistfm_max_concurrent,
            "bulk_min_interval": settings.setlistfm_bulk_min_interval,
            "bulk_max_concurrent": settings.setlistfm_bulk_max_concurrent,
            "max_retries": settings.setlistfm_max_retries,
            "retry_base_delay": settings.setlistfm_retry_base_delay,
        },
        "musicbrainz": {
            "base_url": settings.musicbrainz_base_url,
            "user_agent": settings.musicbrainz_user_agent,
            "min_interval": settings.musicbrainz_min_interval,
        },
        "scraper": {
            "enabled": bool(settings.scraper_service_url),
            "base_url": settings.scraper_service_url,
            "timeout": settings.scraper_timeout,
        },
        "cache": {
            "backend": "redis" if settings.redis_url else "memory",
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
