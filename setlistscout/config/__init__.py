"""Configuration module - exports Settings and load_config."""

from setlistscout.config.loader import load_config
from setlistscout.config.settings import Settings

__all__ = ["Settings", "load_config"]
