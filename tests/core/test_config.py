"""Tests for loading vfeed configuration from TOML and the environment."""

from pathlib import Path

import pytest

from vfeed.core.config import (
    ConfigManager,
    DataConfig,
    FeedConfig,
    StoreConfig,
    VFeedConfig,
    get_default_config,
    load_config_from_env,
)
from vfeed.core.exceptions import ConfigurationError

_ENV_KEYS = (
    "VFEED_STORE_BACKEND",
    "VFEED_STORE_DATABASE",
    "VFEED_STORE_BASE_URL",
    "VFEED_STORE_TIMEOUT",
    "VFEED_STORE_DATA_ROOT",
    "VFEED_DATA_FOLDER",
    "VFEED_DATA_DOWNLOAD_MISSING",
    "VFEED_FEED_INCLUDE_AUXILIARY_DATA",
    "VFEED_FEED_LIVE_MODE",
    "VFEED_LOGGING_LEVEL",
    "VFEED_LOGGING_FILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestDefaults:
    def test_sections(self):
        config = get_default_config()

        assert config.store == StoreConfig()
        assert config.store.backend == "duckdb"
        assert config.store.data_root == "data"
        assert config.data.download_missing is False
        assert config.feed == FeedConfig(include_auxiliary_data=True, live_mode=False)
        assert config.logging.level == "WARNING"

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ConfigurationError):
            VFeedConfig.from_dict({"store": {"bucket": "x"}})

    def test_dict_round_trip(self):
        config = VFeedConfig(data=DataConfig(data_folder="/tmp/vfeed"))

        assert VFeedConfig.from_dict(config.to_dict()) == config


class TestConfigManager:
    def test_missing_file_gives_defaults(self, tmp_path: Path):
        manager = ConfigManager(tmp_path / "absent.toml")

        assert manager.get_config() == get_default_config()

    def test_reads_toml(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text(
            '[store]\nbackend = "http"\nbase_url = "https://docs.example.com"\ntimeout = 5.0\n'
            "[feed]\nlive_mode = true\n"
        )

        config = ConfigManager(path).get_config()

        assert config.store.backend == "http"
        assert config.store.base_url == "https://docs.example.com"
        assert config.store.timeout == 5.0
        assert config.feed.live_mode is True

    def test_unparseable_toml_falls_back_to_defaults(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text("[store\nbackend=")

        assert ConfigManager(path).get_config() == get_default_config()

    def test_environment_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        path = tmp_path / "config.toml"
        path.write_text('[store]\ndatabase = "from-file.duckdb"\n')
        monkeypatch.setenv("VFEED_STORE_DATABASE", "from-env.duckdb")
        monkeypatch.setenv("VFEED_FEED_INCLUDE_AUXILIARY_DATA", "no")

        config = ConfigManager(path).get_config()

        assert config.store.database == "from-env.duckdb"
        assert config.feed.include_auxiliary_data is False

    def test_update_config_merges_sections(self, tmp_path: Path):
        manager = ConfigManager(tmp_path / "absent.toml")

        manager.update_config(store={"database": "feed.duckdb"})

        assert manager.config.store.database == "feed.duckdb"
        assert manager.config.store.backend == "duckdb"


class TestEnvironment:
    def test_empty_environment(self):
        assert load_config_from_env() == {}

    def test_flags_and_numbers(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("VFEED_DATA_DOWNLOAD_MISSING", "true")
        monkeypatch.setenv("VFEED_STORE_TIMEOUT", "2.5")
        monkeypatch.setenv("VFEED_LOGGING_LEVEL", "DEBUG")

        assert load_config_from_env() == {
            "store": {"timeout": 2.5},
            "data": {"download_missing": True},
            "logging": {"level": "DEBUG"},
        }

    def test_bad_timeout(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("VFEED_STORE_TIMEOUT", "soon")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config_from_env()
        assert exc_info.value.setting == "store.timeout"
