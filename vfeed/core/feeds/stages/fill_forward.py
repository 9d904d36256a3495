"""Fill-forward stages."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from vfeed.core.feeds.stages.base import Stage
from vfeed.core.models.records import Bar, MarketRecord, QuoteBar

if TYPE_CHECKING:
    from vfeed.core.feeds.runtime import FillForwardResolution
    from vfeed.core.services.calendars import SecurityExchangeHours


class QuoteBarFillForwardStage(Stage):
    """Fills a missing bid or ask side from the last bar that carried it."""

    def _generate(self, source: Iterator[MarketRecord]) -> Iterator[MarketRecord]:
        last_bid: Bar | None = None
        last_ask: Bar | None = None
        for record in source:
            if isinstance(record, QuoteBar):
                bid = record.bid if record.bid is not None else (last_bid.flat() if last_bid is not None else None)
                ask = record.ask if record.ask is not None else (last_ask.flat() if last_ask is not None else None)
                if bid is not record.bid or ask is not record.ask:
                    record = record.with_sides(bid, ask)
                last_bid = bid or last_bid
                last_ask = ask or last_ask
            yield record


class FillForwardStage(Stage):
    """Repeats the last record at each step while the market is open and no new data arrives.

    The step is the shared fill-forward resolution, never finer than the data
    resolution. Synthesised records never end after ``subscription_end_time``
    (naive, exchange time zone). Daily-or-longer steps advance on the data time
    zone's wall clock.
    """

    def __init__(
        self,
        source: Iterable[MarketRecord],
        exchange_hours: SecurityExchangeHours,
        fill_forward_resolution: FillForwardResolution,
        is_extended_market_hours: bool,
        subscription_end_time: datetime,
        data_resolution: timedelta,
        data_time_zone: ZoneInfo,
    ) -> None:
        super().__init__(source)
        self._exchange_hours = exchange_hours
        self._fill_forward_resolution = fill_forward_resolution
        self._is_extended_market_hours = is_extended_market_hours
        self._subscription_end_time = subscription_end_time
        self._data_resolution = data_resolution
        self._data_time_zone = data_time_zone

    @property
    def step(self) -> timedelta:
        return max(self._fill_forward_resolution.value, self._data_resolution)

    def _generate(self, source: Iterator[MarketRecord]) -> Iterator[MarketRecord]:
        previous: MarketRecord | None = None
        for record in source:
            if record.is_auxiliary:
                yield record
                continue
            if previous is not None:
                yield from self._fill(previous, record.end_time)
            yield record
            previous = record
        if previous is not None:
            yield from self._fill(previous, None)

    def _fill(self, previous: MarketRecord, until: datetime | None) -> Iterator[MarketRecord]:
        step = self.step
        if step <= timedelta(0):
            return
        fill_time = self._advance(previous.time, step)
        while fill_time is not None:
            fill_end = fill_time + previous.period
            if until is not None and fill_end >= until:
                return
            if fill_end > self._subscription_end_time:
                return
            if self._exchange_hours.is_open(fill_time, fill_end, self._is_extended_market_hours):
                yield previous.clone(fill_forward=True).model_copy(update={"time": fill_time})
            fill_time = self._advance(fill_time, step)

    def _advance(self, moment: datetime, step: timedelta) -> datetime | None:
        exchange_tz = self._exchange_hours.time_zone
        try:
            if step >= timedelta(days=1) and self._data_time_zone != exchange_tz:
                in_data = moment.replace(tzinfo=exchange_tz).astimezone(self._data_time_zone)
                shifted = (in_data.replace(tzinfo=None) + step).replace(tzinfo=self._data_time_zone)
                return shifted.astimezone(exchange_tz).replace(tzinfo=None)
            return moment + step
        except OverflowError:
            return None


__all__ = ["FillForwardStage", "QuoteBarFillForwardStage"]
