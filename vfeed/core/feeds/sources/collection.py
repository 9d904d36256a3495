"""Per-day coarse fundamental collections read through a data provider."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pandas as pd

from vfeed.core.data.providers.paths import coarse_file_path
from vfeed.core.logging import bind
from vfeed.core.models.market import MarketType
from vfeed.core.models.records import CoarseFundamental, MarketRecord, RecordCollection, to_decimal
from vfeed.core.models.symbols import Symbol

if TYPE_CHECKING:
    from vfeed.core.data.providers.base import DataProvider
    from vfeed.core.models.subscription import SubscriptionRequest

# headerless coarse file columns
COARSE_COLUMNS = [
    "sid",
    "symbol",
    "close",
    "volume",
    "dollar_volume",
    "has_fundamental_data",
    "price_factor",
    "split_factor",
]


def read_coarse_frame(stream: object) -> pd.DataFrame:
    frame = pd.read_csv(stream, header=None, names=COARSE_COLUMNS, dtype={"sid": str, "symbol": str})
    return frame.dropna(subset=["symbol", "close"])


class CollectionSource(Iterator[MarketRecord]):
    """Emits one :class:`RecordCollection` of :class:`CoarseFundamental` rows per tradable day.

    Days whose file is missing or unreadable are skipped.
    """

    def __init__(
        self,
        request: SubscriptionRequest,
        data_provider: DataProvider,
        data_folder: str | Path,
        tradable_days: Iterable[date] | None = None,
    ) -> None:
        self.request = request
        self._data_provider = data_provider
        self._data_folder = Path(data_folder)
        self._days = iter(tradable_days if tradable_days is not None else request.tradable_days)
        self._logger = bind(component="CollectionSource", symbol=request.config.symbol.value)

    def __iter__(self) -> CollectionSource:
        return self

    def __next__(self) -> MarketRecord:
        for day in self._days:
            collection = self._read_day(day)
            if collection is not None:
                return collection
        raise StopIteration

    def _read_day(self, day: date) -> RecordCollection | None:
        market = self.request.config.market
        key = coarse_file_path(self._data_folder, market, day)
        stream = self._data_provider.fetch(str(key))
        if stream is None:
            self._logger.debug(f"No coarse data for {day}")
            return None
        try:
            with stream:
                frame = read_coarse_frame(stream)
            records = [self._to_record(row, day, market) for row in frame.itertuples(index=False)]
        except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError, ArithmeticError) as exc:
            self._logger.error(f"Failed to read coarse file {key}: {exc}")
            return None

        start = datetime.combine(day, time.min)
        return RecordCollection(
            symbol=self.request.config.symbol,
            time=start,
            period=timedelta(days=1),
            data=records,
            symbols=tuple(record.symbol for record in records),
        )

    @staticmethod
    def _to_record(row: Any, day: date, market: MarketType) -> CoarseFundamental:
        price = to_decimal(row.close)
        volume = _optional_decimal(row.volume)
        dollar_volume = _optional_decimal(row.dollar_volume)
        return CoarseFundamental(
            symbol=Symbol.create(str(row.symbol), market=market),
            time=datetime.combine(day, time.min),
            period=timedelta(days=1),
            value=price,
            volume=volume,
            dollar_volume=dollar_volume if dollar_volume else price * volume,
            has_fundamental_data=str(row.has_fundamental_data).strip().lower() in {"true", "1"},
            price_factor=_optional_decimal(row.price_factor, Decimal("1")),
            split_factor=_optional_decimal(row.split_factor, Decimal("1")),
        )


def _optional_decimal(value: object, default: Decimal = Decimal("0")) -> Decimal:
    if value is None or pd.isna(value):
        return default
    return to_decimal(value)


__all__ = ["CollectionSource", "COARSE_COLUMNS", "read_coarse_frame"]
