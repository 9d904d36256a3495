"""Configuration management for vfeed data feeds."""

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from vfeed.core.exceptions.base import ConfigurationError
from vfeed.core.logging import logger


@dataclass
class StoreConfig:
    """Remote document store settings."""

    backend: str = "duckdb"
    database: str = ":memory:"
    base_url: str | None = None
    timeout: float = 30.0
    data_root: str = "data"


@dataclass
class DataConfig:
    """Local data folder settings used by data providers."""

    data_folder: str = str(Path.home() / ".vfeed" / "data")
    download_missing: bool = False


@dataclass
class FeedConfig:
    """Subscription pipeline settings."""

    include_auxiliary_data: bool = True
    live_mode: bool = False


@dataclass
class LoggingConfig:
    """Logging settings; lines go to stderr as JSON."""

    level: str = "WARNING"
    file: str | None = None


@dataclass
class VFeedConfig:
    """vfeed root configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    data: DataConfig = field(default_factory=DataConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "VFeedConfig":
        """Build a configuration from a nested dictionary."""
        try:
            return cls(
                store=StoreConfig(**config_dict.get("store", {})),
                data=DataConfig(**config_dict.get("data", {})),
                feed=FeedConfig(**config_dict.get("feed", {})),
                logging=LoggingConfig(**config_dict.get("logging", {})),
            )
        except TypeError as exc:
            raise ConfigurationError(f"Unknown configuration key: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        """Convert to a nested dictionary."""
        return {
            "store": asdict(self.store),
            "data": asdict(self.data),
            "feed": asdict(self.feed),
            "logging": asdict(self.logging),
        }


class ConfigManager:
    """Loads vfeed configuration from TOML and the environment."""

    def __init__(self, config_path: Path | None = None):
        """Initialise the manager.

        Args:
            config_path: TOML file to read; defaults to ``~/.vfeed/config.toml``
        """
        self.config_path = config_path or Path.home() / ".vfeed" / "config.toml"
        self.config = self._load_config()

    def _load_config(self) -> VFeedConfig:
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                config_dict = {}

        for section, values in load_config_from_env().items():
            config_dict.setdefault(section, {}).update(values)
        return VFeedConfig.from_dict(config_dict)

    def get_config(self) -> VFeedConfig:
        """Return the active configuration."""
        return self.config

    def update_config(self, **updates: Any) -> None:
        """Deep-merge ``updates`` into the active configuration."""
        config_dict = self.config.to_dict()

        def deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
            for k, v in u.items():
                if isinstance(v, dict):
                    d[k] = deep_update(d.get(k, {}), v)
                else:
                    d[k] = v
            return d

        deep_update(config_dict, updates)
        self.config = VFeedConfig.from_dict(config_dict)


def _env_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_config_from_env() -> dict[str, Any]:
    """Load configuration overrides from ``VFEED_*`` environment variables."""
    config: dict[str, Any] = {}

    store_config: dict[str, Any] = {}
    if os.getenv("VFEED_STORE_BACKEND"):
        store_config["backend"] = os.getenv("VFEED_STORE_BACKEND")
    if os.getenv("VFEED_STORE_DATABASE"):
        store_config["database"] = os.getenv("VFEED_STORE_DATABASE")
    if os.getenv("VFEED_STORE_BASE_URL"):
        store_config["base_url"] = os.getenv("VFEED_STORE_BASE_URL")
    vfeed_store_timeout = os.getenv("VFEED_STORE_TIMEOUT")
    if vfeed_store_timeout is not None:
        try:
            store_config["timeout"] = float(vfeed_store_timeout)
        except ValueError as exc:
            raise ConfigurationError("VFEED_STORE_TIMEOUT must be a number", setting="store.timeout") from exc
    if os.getenv("VFEED_STORE_DATA_ROOT"):
        store_config["data_root"] = os.getenv("VFEED_STORE_DATA_ROOT")
    if store_config:
        config["store"] = store_config

    data_config: dict[str, Any] = {}
    if os.getenv("VFEED_DATA_FOLDER"):
        data_config["data_folder"] = os.getenv("VFEED_DATA_FOLDER")
    vfeed_download_missing = os.getenv("VFEED_DATA_DOWNLOAD_MISSING")
    if vfeed_download_missing is not None:
        data_config["download_missing"] = _env_bool(vfeed_download_missing)
    if data_config:
        config["data"] = data_config

    feed_config: dict[str, Any] = {}
    vfeed_aux = os.getenv("VFEED_FEED_INCLUDE_AUXILIARY_DATA")
    if vfeed_aux is not None:
        feed_config["include_auxiliary_data"] = _env_bool(vfeed_aux)
    vfeed_live = os.getenv("VFEED_FEED_LIVE_MODE")
    if vfeed_live is not None:
        feed_config["live_mode"] = _env_bool(vfeed_live)
    if feed_config:
        config["feed"] = feed_config

    logging_config: dict[str, Any] = {}
    if os.getenv("VFEED_LOGGING_LEVEL"):
        logging_config["level"] = os.getenv("VFEED_LOGGING_LEVEL")
    if os.getenv("VFEED_LOGGING_FILE"):
        logging_config["file"] = os.getenv("VFEED_LOGGING_FILE")
    if logging_config:
        config["logging"] = logging_config

    return config


def get_default_config() -> VFeedConfig:
    """Return the default configuration."""
    return VFeedConfig()
