"""Interleaves split, dividend, symbol change and delisting events with cursor data."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation

from vfeed.core.feeds.cursor import RecordCursor
from vfeed.core.feeds.events import NewTradableDate
from vfeed.core.feeds.stages.base import Stage
from vfeed.core.logging import bind
from vfeed.core.models.corporate_actions import (
    Delisting,
    DelistingType,
    Dividend,
    FactorFileRow,
    Split,
    SplitType,
    SymbolChangedEvent,
)
from vfeed.core.models.records import MarketRecord

_ONE = Decimal("1")
_CENT = Decimal("0.0001")


class CorporateEventStage(Stage):
    """Emits corporate events for each new tradable date ahead of that date's data.

    Events are derived from the cursor's factor file (row changes give splits
    and dividends), its map file (ticker changes) and its delisting date.
    """

    def __init__(self, cursor: RecordCursor) -> None:
        super().__init__(cursor)
        self.cursor = cursor
        self._pending: deque[MarketRecord] = deque()
        self._factor_row: FactorFileRow | None = None
        self._ticker: str | None = None
        self._seen_date = False
        self._delisting_warned = False
        self._delisted = False
        self._logger = bind(component="CorporateEventStage", symbol=cursor.config.symbol.value)
        cursor.channel.subscribe(NewTradableDate, self._on_new_tradable_date)

    def _generate(self, source: Iterator[MarketRecord]) -> Iterator[MarketRecord]:
        for record in source:
            while self._pending:
                yield self._pending.popleft()
            yield record
        while self._pending:
            yield self._pending.popleft()

    def _on_new_tradable_date(self, event: NewTradableDate) -> None:
        moment = datetime.combine(event.date, time.min)
        factor_row = self.cursor.factor_file.row_for(event.date)
        ticker = self.cursor.map_file.mapped_symbol(event.date)

        if self._seen_date:
            self._emit_factor_events(moment, self._factor_row, factor_row, event.previous)
            if self._ticker is not None and ticker is not None and ticker != self._ticker:
                self._pending.append(
                    SymbolChangedEvent(
                        symbol=self.cursor.config.symbol,
                        time=moment,
                        old_symbol=self._ticker,
                        new_symbol=ticker,
                    )
                )
        self._seen_date = True
        self._factor_row = factor_row
        self._ticker = ticker or self._ticker
        self._emit_delisting_events(moment, event.date)

    def _emit_factor_events(
        self,
        moment: datetime,
        before: FactorFileRow | None,
        after: FactorFileRow | None,
        previous: MarketRecord | None,
    ) -> None:
        if before is None or before is after:
            return
        symbol = self.cursor.config.symbol
        split_after = after.split_factor if after is not None else _ONE
        price_after = after.price_factor if after is not None else _ONE
        reference = before.reference_price or (previous.value if previous is not None else Decimal("0"))

        try:
            split_ratio = before.split_factor / split_after
            price_ratio = before.price_factor / price_after
        except (ArithmeticError, InvalidOperation) as exc:
            self._logger.warning(f"Unusable factor rows around {moment.date()}: {exc}")
            return

        if price_ratio != _ONE:
            distribution = (reference * (_ONE - price_ratio)).quantize(_CENT)
            self._pending.append(
                Dividend(
                    symbol=symbol,
                    time=moment,
                    value=distribution,
                    distribution=distribution,
                    reference_price=reference,
                )
            )
        if split_ratio != _ONE:
            self._pending.append(
                Split(
                    symbol=symbol,
                    time=moment,
                    value=split_ratio,
                    split_factor=split_ratio,
                    reference_price=reference,
                    split_type=SplitType.SPLIT_OCCURRED,
                )
            )

    def _emit_delisting_events(self, moment: datetime, day: date) -> None:
        cutoff = self.cursor.delisting_date
        if cutoff == date.max:
            return
        last_trading_day = cutoff - timedelta(days=1)
        symbol = self.cursor.config.symbol
        if day >= last_trading_day and not self._delisting_warned:
            self._delisting_warned = True
            self._pending.append(Delisting(symbol=symbol, time=moment, delisting_type=DelistingType.WARNING))
        if day > last_trading_day and not self._delisted:
            self._delisted = True
            self._pending.append(Delisting(symbol=symbol, time=moment, delisting_type=DelistingType.DELISTED))


__all__ = ["CorporateEventStage"]
