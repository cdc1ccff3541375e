"""Configuration system."""

from saintmode.config.loader import load_config
from saintmode.config.schema import AppConfig, CacheConfig, LoggingConfig

__all__ = ["AppConfig", "CacheConfig", "LoggingConfig", "load_config"]
