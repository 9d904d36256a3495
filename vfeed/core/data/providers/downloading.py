"""Local data provider that downloads missing files on demand."""

from __future__ import annotations

import traceback
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from vfeed.core.data.providers.base import LocalDataProvider
from vfeed.core.data.providers.paths import DataPath, parse_data_path
from vfeed.core.data.providers.writer import LocalDataWriter
from vfeed.core.exceptions.base import DataProviderError
from vfeed.core.feeds.events import DownloadFailed, EventChannel
from vfeed.core.logging import bind

if TYPE_CHECKING:
    from vfeed.core.data.providers.yfinance import HistoryDownloader


class DownloadingDataProvider:
    """Serves local files, downloading history for any file that is missing.

    On a cache miss the key is parsed into instrument, date and resolution, the
    range is fetched from ``downloader``, written in the local layout and the
    file is read again. Failures are logged, published on ``channel`` as
    :class:`DownloadFailed` and yield ``None``.
    """

    def __init__(
        self,
        data_folder: str | Path,
        downloader: HistoryDownloader,
        channel: EventChannel | None = None,
    ) -> None:
        self.data_folder = Path(data_folder)
        self.channel = channel or EventChannel()
        self._downloader = downloader
        self._local = LocalDataProvider()
        self._logger = bind(component="DownloadingDataProvider")

    def fetch(self, key: str) -> BinaryIO | None:
        stream = self._local.fetch(key)
        if stream is not None:
            return stream

        data_path = parse_data_path(key, self.data_folder)
        if data_path is not None:
            self._logger.info(
                f"Attempting to download data for symbol({data_path.symbol}), "
                f"resolution({data_path.resolution.value}) and date({data_path.day})"
            )
            if self._download(data_path):
                stream = self._local.fetch(key)
                if stream is not None:
                    self._logger.info(f"Successfully retrieved data for symbol({data_path.symbol})")
                    return stream

        self._logger.error(f"Unable to remotely retrieve data for path {key}")
        return None

    def _download(self, data_path: DataPath) -> bool:
        start, end = data_path.download_range()
        try:
            bars = self._downloader.get(data_path.symbol, data_path.resolution, start, end)
            LocalDataWriter(data_path.resolution, data_path.symbol, self.data_folder).write(bars)
        except (DataProviderError, OSError, ValueError) as exc:
            message = f"Download failed for {data_path.symbol}: {exc}"
            self._logger.error(message)
            self.channel.publish(DownloadFailed(message, traceback.format_exc()))
            return False
        return True


__all__ = ["DownloadingDataProvider"]
