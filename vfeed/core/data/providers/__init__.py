"""Local data providers."""

from vfeed.core.config.settings import DataConfig
from vfeed.core.data.providers.base import DataProvider, LocalDataProvider
from vfeed.core.data.providers.downloading import DownloadingDataProvider
from vfeed.core.data.providers.paths import DataPath, coarse_file_path, data_file_path, parse_data_path
from vfeed.core.data.providers.writer import LocalDataWriter
from vfeed.core.data.providers.yfinance import HistoryDownloader, YFinanceDownloader


def build_data_provider(config: DataConfig) -> DataProvider:
    """Return the provider selected by ``config.download_missing``."""
    if config.download_missing:
        return DownloadingDataProvider(config.data_folder, YFinanceDownloader())
    return LocalDataProvider()


__all__ = [
    "DataProvider",
    "LocalDataProvider",
    "DownloadingDataProvider",
    "DataPath",
    "coarse_file_path",
    "data_file_path",
    "parse_data_path",
    "LocalDataWriter",
    "HistoryDownloader",
    "YFinanceDownloader",
    "build_data_provider",
]
