"""Single-pass cursor over one instrument's records in the document store."""

from __future__ import annotations

import traceback
from collections.abc import Iterable, Iterator, Mapping
from datetime import UTC, date, datetime, time, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any

from vfeed.core.exceptions.base import CursorResetError, DocumentStoreError, InvalidConfigurationError
from vfeed.core.feeds.events import (
    EventChannel,
    InvalidConfigurationDetected,
    NewTradableDate,
    NumericalPrecisionLimited,
    ReaderErrorDetected,
    StartDateLimited,
)
from vfeed.core.logging import bind
from vfeed.core.models.corporate_actions import FactorFile, MapFile
from vfeed.core.models.market import DataNormalizationMode, SecurityType
from vfeed.core.models.records import MarketRecord, resolve_record_type

if TYPE_CHECKING:
    from vfeed.core.data.auxiliary.providers import FactorFileProvider, MapFileResolver
    from vfeed.core.data.storage.documents import DocumentStore
    from vfeed.core.feeds.runtime import TimeProvider
    from vfeed.core.models.subscription import SubscriptionDataConfig
    from vfeed.core.models.symbols import Symbol
    from vfeed.core.services.calendars import SecurityExchangeHours


class CursorState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    STREAMING = "streaming"
    EXHAUSTED = "exhausted"
    # terminal; behaves as exhausted
    CONFIGURATION_INVALID = "configuration_invalid"


_TERMINAL_STATES = (CursorState.EXHAUSTED, CursorState.CONFIGURATION_INVALID)
_CONVERSION_ERRORS = (KeyError, TypeError, ValueError, ArithmeticError)


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _bump_day(day: date) -> date:
    if day == date.max:
        return day
    return day + timedelta(days=1)


def document_path(symbol: Symbol, data_root: str = "data") -> str:
    """Store path holding the documents of ``symbol``: ``{root}/{type}/{market}/{ticker}``."""
    return f"{data_root}/{symbol.security_type.value}/{symbol.market.value}/{symbol.value.lower()}"


class RecordCursor(Iterator[MarketRecord]):
    """Streams typed records for one subscription from a document store.

    Initialization runs on the first pull (or an explicit :meth:`initialize`)
    and performs exactly one blocking store query. Records are emitted in the
    order the store returns them, while a tradable-date gate walks the
    subscription's dates in step and publishes a :class:`NewTradableDate` for
    every date it passes. Once the gate passes the delisting cutoff the cursor
    stops for good.

    ``period_start`` and ``period_end`` are naive exchange-local datetimes.
    """

    def __init__(
        self,
        config: SubscriptionDataConfig,
        exchange_hours: SecurityExchangeHours,
        period_start: datetime,
        period_end: datetime,
        map_file_resolver: MapFileResolver,
        factor_file_provider: FactorFileProvider,
        tradable_days: Iterable[date],
        document_store: DocumentStore,
        channel: EventChannel | None = None,
        is_live_mode: bool = False,
        time_provider: TimeProvider | None = None,
        data_root: str = "data",
    ) -> None:
        self.config = config
        self.channel = channel or EventChannel()
        self._exchange_hours = exchange_hours
        self._period_start = period_start
        self._period_end = period_end
        self._map_file_resolver = map_file_resolver
        self._factor_file_provider = factor_file_provider
        self._tradable_days = tradable_days
        self._store = document_store
        self._is_live_mode = is_live_mode
        self._time_provider = time_provider
        self._data_root = data_root.rstrip("/")
        self._logger = bind(component="RecordCursor", symbol=config.symbol.value)

        self._state = CursorState.UNINITIALIZED
        self._record_type: type[MarketRecord] = MarketRecord
        self._map_file = MapFile.empty(config.symbol.value)
        self._factor_file = FactorFile(config.symbol.value.upper())
        self._has_scale_factors = False
        self._delisting_date = date.max
        self._past_delisted_date = False
        self._tradable_dates: Iterator[date] = iter(())
        self._current_date: date | None = None
        self._documents: Iterator[Mapping[str, Any]] = iter(())
        self._previous: MarketRecord | None = None
        self.current: MarketRecord | None = None

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def period_start(self) -> datetime:
        return self._period_start

    @property
    def delisting_date(self) -> date:
        return self._delisting_date

    @property
    def map_file(self) -> MapFile:
        return self._map_file

    @property
    def factor_file(self) -> FactorFile:
        return self._factor_file

    @property
    def store_path(self) -> str:
        return document_path(self.config.symbol, self._data_root)

    def initialize(self) -> None:
        if self._state is not CursorState.UNINITIALIZED:
            return

        try:
            self._record_type = resolve_record_type(self.config.record_type)
        except InvalidConfigurationError as exc:
            self._state = CursorState.CONFIGURATION_INVALID
            self._logger.error(f"Invalid subscription configuration: {exc.message}")
            self.channel.publish(InvalidConfigurationDetected(exc.message))
            return

        symbol = self.config.symbol
        if self._record_type.requires_mapping(symbol):
            self._resolve_adjustments()

        self._delisting_date = _bump_day(self._estimate_delisting_date())
        start_day = self._period_start.date()
        self._tradable_dates = (day for day in self._tradable_days if day >= start_day)
        self._state = CursorState.INITIALIZED
        self._query()

    def _resolve_adjustments(self) -> None:
        symbol = self.config.symbol
        try:
            map_file = self._map_file_resolver.resolve_map_file(symbol, self._record_type)
            if map_file.rows:
                self._map_file = map_file

            if self.config.is_custom_data or symbol.security_type is SecurityType.OPTION:
                return

            factor_file = self._factor_file_provider.get(symbol)
            self._has_scale_factors = factor_file is not None
            if factor_file is not None:
                self._factor_file = factor_file
                minimum_date = factor_file.minimum_date
                if not self._is_live_mode and minimum_date is not None and self._period_start < _start_of(minimum_date):
                    self._period_start = _start_of(minimum_date)
                    self.channel.publish(
                        NumericalPrecisionLimited(
                            f"Data for symbol {symbol.value} has been limited due to numerical precision issues "
                            f"in the factor file. The starting date has been set to {minimum_date:%Y-%m-%d}.",
                            minimum_date,
                        )
                    )

            # checked against the start as already clamped by the factor file
            if self._period_start < _start_of(map_file.first_date):
                original = self._period_start.date()
                self._period_start = _start_of(map_file.first_date)
                self.channel.publish(
                    StartDateLimited(
                        f"The starting date for symbol {symbol.value}, {original:%Y-%m-%d}, has been adjusted "
                        f"to match map file first date {map_file.first_date:%Y-%m-%d}.",
                        original,
                        map_file.first_date,
                    )
                )
        except Exception as exc:
            self._logger.opt(exception=exc).error(f"Fetching Price/Map Factors: {symbol}: {exc}")
            self._map_file = MapFile.empty(symbol.value)
            self._factor_file = FactorFile(symbol.value.upper())
            self._has_scale_factors = False

    def _estimate_delisting_date(self) -> date:
        symbol = self.config.symbol
        if symbol.security_type is SecurityType.FUTURE:
            return symbol.expiry or date.max
        if symbol.security_type is SecurityType.OPTION:
            if symbol.expiry is None:
                return date.max
            return self._exchange_hours.last_trading_day_on_or_before(symbol.expiry)
        return self._map_file.delisting_date

    def _to_utc(self, local: datetime) -> datetime:
        return local.replace(tzinfo=self._exchange_hours.time_zone).astimezone(UTC)

    def _query(self) -> None:
        path = self.store_path
        try:
            documents = self._store.query(path, self._to_utc(self._period_start), self._to_utc(self._period_end))
        except DocumentStoreError as exc:
            self._logger.error(f"Document store query failed for {path}: {exc.message}")
            self.channel.publish(ReaderErrorDetected(exc.message, traceback.format_exc()))
            self._state = CursorState.EXHAUSTED
            return
        self._documents = iter(documents)

    def __iter__(self) -> RecordCursor:
        return self

    def __next__(self) -> MarketRecord:
        if self._state is CursorState.UNINITIALIZED:
            self.initialize()
        if self._state in _TERMINAL_STATES:
            raise StopIteration
        self._state = CursorState.STREAMING

        start_day = self._period_start.date()
        for document in self._documents:
            record = self._build_record(document)
            if record is None:
                continue
            if self._previous is not None and record.time < self._previous.time:
                self._logger.warning(f"Skipping out of order document at {record.time} after {self._previous.time}")
                continue
            record_day = self._data_time(record.time).date()
            if record_day < start_day:
                continue
            if not self._advance_dates(record_day) or record_day > self._delisting_date:
                self._past_delisted_date = True
                break

            self._previous = record
            self.current = record
            return record

        self._state = CursorState.EXHAUSTED
        raise StopIteration

    def _advance_dates(self, target: date) -> bool:
        """Walk the date gate up to ``target``; ``False`` once past delisting."""
        while self._current_date is None or self._current_date < target:
            if self.try_get_next_date() is None:
                return not self._past_delisted_date
        return True

    def try_get_next_date(self) -> date | None:
        """Advance to the next date data should be read for, or ``None``."""
        if self._state is CursorState.UNINITIALIZED:
            self.initialize()
        if self._state is CursorState.CONFIGURATION_INVALID or self._past_delisted_date:
            return None
        if self._is_live_mode and self._current_date is not None and self._current_date >= self._today():
            return None

        for day in self._tradable_dates:
            self._current_date = day
            self.channel.publish(NewTradableDate(day, self._previous, self.config.symbol))

            if day > self._delisting_date:
                self._past_delisted_date = True
                return None
            if not self._map_file.has_data(day):
                continue
            if self._previous is not None and self._data_time(self._previous.end_time) > _start_of(day):
                continue
            return day
        return None

    def _today(self) -> date:
        now = self._time_provider.get_utc_now() if self._time_provider is not None else datetime.now(UTC)
        return now.astimezone(self.config.data_time_zone).date()

    def _data_time(self, exchange_time: datetime) -> datetime:
        exchange_tz = self._exchange_hours.time_zone
        data_tz = self.config.data_time_zone
        if exchange_tz == data_tz:
            return exchange_time
        return exchange_time.replace(tzinfo=exchange_tz).astimezone(data_tz).replace(tzinfo=None)

    def _build_record(self, document: Mapping[str, Any]) -> MarketRecord | None:
        try:
            stored = document["date"]
            if stored.tzinfo is None:
                stored = stored.replace(tzinfo=self.config.data_time_zone)
            local = stored.astimezone(self._exchange_hours.time_zone).replace(tzinfo=None)
            record = self._record_type.from_document(document, self.config.symbol, local, self.config.increment)
        except _CONVERSION_ERRORS as exc:
            message = f"Failed to read document for {self.config.symbol}: {exc!r}"
            self._logger.error(message)
            self.channel.publish(ReaderErrorDetected(message, traceback.format_exc()))
            return None

        mode = self.config.data_normalization_mode
        if self._has_scale_factors and mode is not DataNormalizationMode.RAW:
            day = record.time.date()
            split_factor = self._factor_file.split_factor(day)
            if mode is DataNormalizationMode.ADJUSTED:
                record = record.scale(self._factor_file.price_scale_factor(day), split_factor)
            else:
                record = record.scale(split_factor, split_factor)
        return record

    def reset(self) -> None:
        raise CursorResetError()

    def close(self) -> None:
        self._documents = iter(())
        if self._state is not CursorState.CONFIGURATION_INVALID:
            self._state = CursorState.EXHAUSTED


__all__ = ["RecordCursor", "CursorState", "document_path"]
