from __future__ import annotations

from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from vfeed.core.data.providers import YFinanceDownloader
from vfeed.core.exceptions import DownloadError
from vfeed.core.models.market import Resolution
from vfeed.core.models.symbols import Symbol


class FakeTicker:
    def __init__(self, history: pd.DataFrame | None = None, error: Exception | None = None) -> None:
        self._history = history
        self._error = error
        self.kwargs: dict[str, object] = {}

    def history(self, **kwargs: object) -> pd.DataFrame | None:
        self.kwargs = kwargs
        if self._error is not None:
            raise self._error
        return self._history


def _history() -> pd.DataFrame:
    index = pd.DatetimeIndex(
        [pd.Timestamp("2020-01-02", tz="America/New_York"), pd.Timestamp("2020-01-03", tz="America/New_York")]
    )
    return pd.DataFrame(
        {
            "Open": [10.0, 11.0],
            "High": [12.0, 13.0],
            "Low": [9.0, 10.0],
            "Close": [11.5, 12.5],
            "Volume": [100, 200],
        },
        index=index,
    )


def test_daily_history_becomes_trade_bars() -> None:
    ticker = FakeTicker(_history())
    downloader = YFinanceDownloader(ticker_factory=lambda symbol: ticker)

    bars = downloader.get(Symbol.create("SPY"), Resolution.DAILY, date(2020, 1, 2), date(2020, 1, 4))

    assert [bar.close for bar in bars] == [Decimal("11.5"), Decimal("12.5")]
    assert bars[0].time.tzinfo is None
    assert bars[0].volume == Decimal("100")
    assert ticker.kwargs["interval"] == "1d"
    assert ticker.kwargs["start"] == "2020-01-02"


def test_unsupported_resolution_raises() -> None:
    downloader = YFinanceDownloader(ticker_factory=lambda symbol: FakeTicker(_history()))

    with pytest.raises(DownloadError):
        downloader.get(Symbol.create("SPY"), Resolution.TICK, date(2020, 1, 2), date(2020, 1, 3))


def test_empty_or_failed_history_raises() -> None:
    empty = YFinanceDownloader(ticker_factory=lambda symbol: FakeTicker(pd.DataFrame()))
    failing = YFinanceDownloader(ticker_factory=lambda symbol: FakeTicker(error=RuntimeError("rate limited")))

    with pytest.raises(DownloadError):
        empty.get(Symbol.create("SPY"), Resolution.DAILY, date(2020, 1, 2), date(2020, 1, 3))
    with pytest.raises(DownloadError, match="rate limited"):
        failing.get(Symbol.create("SPY"), Resolution.DAILY, date(2020, 1, 2), date(2020, 1, 3))
