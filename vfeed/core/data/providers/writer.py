"""Persists downloaded bars as CSV files in the local data layout."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from vfeed.core.data.providers.paths import data_file_path
from vfeed.core.logging import bind
from vfeed.core.models.market import Resolution
from vfeed.core.models.records import TradeBar
from vfeed.core.models.symbols import Symbol

CSV_COLUMNS = ["time", "open", "high", "low", "close", "volume"]


def bars_to_frame(bars: Sequence[TradeBar]) -> pd.DataFrame:
    frame = pd.DataFrame(
        [
            {
                "time": bar.time,
                "open": float(bar.open),
                "high": float(bar.high),
                "low": float(bar.low),
                "close": float(bar.close),
                "volume": float(bar.volume),
            }
            for bar in bars
        ],
        columns=CSV_COLUMNS,
    )
    frame["time"] = pd.to_datetime(frame["time"])
    return frame


def read_bar_frame(path: str | Path) -> pd.DataFrame:
    return pd.read_csv(path, parse_dates=["time"])


class LocalDataWriter:
    """Writes bars for one instrument and resolution under ``data_folder``."""

    def __init__(self, resolution: Resolution, symbol: Symbol, data_folder: str | Path) -> None:
        self.resolution = resolution
        self.symbol = symbol
        self.data_folder = Path(data_folder)
        self._logger = bind(component="LocalDataWriter", symbol=symbol.value)

    def write(self, bars: Sequence[TradeBar]) -> list[Path]:
        """Merge ``bars`` into the files they belong to; returns the files touched."""
        if not bars:
            return []
        frame = bars_to_frame(bars)
        if self.resolution in (Resolution.DAILY, Resolution.HOUR):
            target = data_file_path(self.data_folder, self.symbol, self.resolution)
            self._merge(target, frame)
            return [target]

        written: list[Path] = []
        for day, day_frame in frame.groupby(frame["time"].dt.date):
            target = data_file_path(self.data_folder, self.symbol, self.resolution, day)
            self._merge(target, day_frame)
            written.append(target)
        return written

    def _merge(self, target: Path, frame: pd.DataFrame) -> None:
        if target.exists():
            frame = pd.concat([read_bar_frame(target), frame], ignore_index=True)
        frame = frame.drop_duplicates(subset="time", keep="last").sort_values("time")
        target.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(target, index=False, columns=CSV_COLUMNS)
        self._logger.debug(f"Wrote {len(frame)} rows to {target}")


__all__ = ["LocalDataWriter", "CSV_COLUMNS", "bars_to_frame", "read_bar_frame"]
