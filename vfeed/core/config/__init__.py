"""Configuration management module."""

from vfeed.core.config.settings import (
    ConfigManager,
    DataConfig,
    FeedConfig,
    LoggingConfig,
    StoreConfig,
    VFeedConfig,
    get_default_config,
    load_config_from_env,
)

__all__ = [
    "ConfigManager",
    "VFeedConfig",
    "StoreConfig",
    "DataConfig",
    "FeedConfig",
    "LoggingConfig",
    "get_default_config",
    "load_config_from_env",
]
