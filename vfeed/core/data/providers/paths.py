"""Local data folder layout.

``{root}/{security_type}/{market}/{resolution}/{ticker}.csv`` for daily and
hourly bars, ``{root}/{security_type}/{market}/{resolution}/{ticker}/{yyyymmdd}_trade.csv``
for intraday bars and ``{root}/equity/{market}/fundamental/coarse/{yyyymmdd}.csv``
for coarse fundamental collections.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from pathlib import Path

from vfeed.core.models.market import MarketType, Resolution, SecurityType
from vfeed.core.models.symbols import Symbol

_WHOLE_FILE_RESOLUTIONS = (Resolution.DAILY, Resolution.HOUR)
_HISTORY_START = date(1998, 1, 2)


@dataclass(frozen=True)
class DataPath:
    """Instrument, date and resolution encoded in a local data path."""

    symbol: Symbol
    resolution: Resolution
    day: date | None = None

    def download_range(self, today: date | None = None) -> tuple[date, date]:
        """Date range a downloader must fetch to rebuild this file."""
        if self.day is not None:
            return self.day, self.day + timedelta(days=1)
        return _HISTORY_START, (today or datetime.now().date()) + timedelta(days=1)


def data_file_path(data_folder: str | Path, symbol: Symbol, resolution: Resolution, day: date | None = None) -> Path:
    base = Path(data_folder) / symbol.security_type.value / symbol.market.value / resolution.value
    ticker = symbol.value.lower()
    if resolution in _WHOLE_FILE_RESOLUTIONS:
        return base / f"{ticker}.csv"
    if day is None:
        raise ValueError(f"{resolution.value} data files are split per day; a date is required")
    return base / ticker / f"{day:%Y%m%d}_trade.csv"


def coarse_file_path(data_folder: str | Path, market: MarketType | str, day: date) -> Path:
    return Path(data_folder) / "equity" / MarketType(market).value / "fundamental" / "coarse" / f"{day:%Y%m%d}.csv"


def parse_data_path(key: str | Path, data_folder: str | Path | None = None) -> DataPath | None:
    """Parse instrument/date/resolution out of ``key``; ``None`` when it does not fit the layout."""
    path = Path(key)
    if data_folder is not None:
        try:
            path = path.resolve().relative_to(Path(data_folder).resolve())
        except ValueError:
            return None
    if path.suffix != ".csv":
        return None
    return _parse_parts(path.parts)


_RES_VALUES = {resolution.value for resolution in Resolution}


def _parse_parts(parts: tuple[str, ...]) -> DataPath | None:
    # daily/hour: .../{type}/{market}/{resolution}/{ticker}.csv
    if len(parts) >= 4 and parts[-2] in _RES_VALUES:
        security_type, market, resolution = parts[-4], parts[-3], parts[-2]
        ticker = Path(parts[-1]).stem
        day = None
    # intraday: .../{type}/{market}/{resolution}/{ticker}/{yyyymmdd}_trade.csv
    elif len(parts) >= 5 and parts[-3] in _RES_VALUES:
        security_type, market, resolution = parts[-5], parts[-4], parts[-3]
        ticker = parts[-2]
        try:
            day = datetime.strptime(Path(parts[-1]).stem.split("_")[0], "%Y%m%d").date()
        except ValueError:
            return None
    else:
        return None

    try:
        parsed_resolution = Resolution(resolution)
        symbol = Symbol.create(ticker, SecurityType(security_type), MarketType(market))
    except ValueError:
        return None
    if parsed_resolution in _WHOLE_FILE_RESOLUTIONS and day is not None:
        return None
    if parsed_resolution not in _WHOLE_FILE_RESOLUTIONS and day is None:
        return None
    return DataPath(symbol=symbol, resolution=parsed_resolution, day=day)


__all__ = ["DataPath", "data_file_path", "coarse_file_path", "parse_data_path"]
