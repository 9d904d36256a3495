"""Yahoo Finance history downloader."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import Any, Protocol

import pandas as pd
import yfinance as yf

from vfeed.core.exceptions.base import DownloadError
from vfeed.core.logging import bind
from vfeed.core.models.market import Resolution
from vfeed.core.models.records import TradeBar
from vfeed.core.models.symbols import Symbol


class HistoryDownloader(Protocol):
    """Fetches trade bars for ``[start, end)``."""

    def get(self, symbol: Symbol, resolution: Resolution, start: date, end: date) -> list[TradeBar]: ...


class YFinanceDownloader:
    """Downloads OHLCV history through ``yfinance``."""

    _INTERVALS = {
        Resolution.MINUTE: "1m",
        Resolution.HOUR: "1h",
        Resolution.DAILY: "1d",
    }

    def __init__(self, ticker_factory: Callable[[str], Any] = yf.Ticker) -> None:
        self._ticker_factory = ticker_factory
        self._logger = bind(component="YFinanceDownloader")

    def get(self, symbol: Symbol, resolution: Resolution, start: date, end: date) -> list[TradeBar]:
        interval = self._INTERVALS.get(resolution)
        if interval is None:
            raise DownloadError(f"yfinance does not serve {resolution.value} data", symbol.value)

        try:
            history = self._ticker_factory(symbol.value).history(
                start=start.isoformat(),
                end=end.isoformat(),
                interval=interval,
                auto_adjust=False,
            )
        except Exception as exc:
            raise DownloadError(f"yfinance request failed for {symbol}: {exc}", symbol.value) from exc

        if history is None or history.empty:
            raise DownloadError(f"yfinance returned no rows for {symbol} between {start} and {end}", symbol.value)

        period = resolution.to_timedelta()
        bars: list[TradeBar] = []
        for timestamp, row in history.iterrows():
            moment = pd.Timestamp(timestamp)
            if moment.tzinfo is not None:
                moment = moment.tz_localize(None)
            bars.append(
                TradeBar(
                    symbol=symbol,
                    time=moment.to_pydatetime(),
                    period=period,
                    open=Decimal(str(row["Open"])),
                    high=Decimal(str(row["High"])),
                    low=Decimal(str(row["Low"])),
                    close=Decimal(str(row["Close"])),
                    volume=Decimal(str(int(row["Volume"]))),
                    value=Decimal(str(row["Close"])),
                )
            )
        self._logger.info(f"Downloaded {len(bars)} {resolution.value} bars for {symbol}")
        return bars


__all__ = ["HistoryDownloader", "YFinanceDownloader"]
