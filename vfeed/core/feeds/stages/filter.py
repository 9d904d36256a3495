"""Drops records outside market hours or rejected by the security's data filter."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import datetime
from typing import TYPE_CHECKING

from vfeed.core.feeds.stages.base import Stage
from vfeed.core.logging import bind
from vfeed.core.models.records import MarketRecord

if TYPE_CHECKING:
    from vfeed.core.feeds.results import ResultHandler
    from vfeed.core.models.subscription import Security


class FilterStage(Stage):
    """Suppresses records outside trading sessions or rejected by the security's data filter.

    Iteration stops at the first record starting after ``end_time`` (naive,
    exchange time zone). Auxiliary records always pass.
    """

    def __init__(
        self,
        source: Iterable[MarketRecord],
        security: Security,
        end_time: datetime,
        result_handler: ResultHandler,
    ) -> None:
        super().__init__(source)
        self.security = security
        self.end_time = end_time
        self._result_handler = result_handler
        self._logger = bind(component="FilterStage", symbol=security.symbol.value)

    def _generate(self, source: Iterator[MarketRecord]) -> Iterator[MarketRecord]:
        for record in source:
            if record.time > self.end_time:
                return
            if record.is_auxiliary or self._accept(record):
                yield record

    def _accept(self, record: MarketRecord) -> bool:
        hours = self.security.exchange_hours
        if not hours.is_open(record.time, record.end_time, self.security.is_extended_market_hours):
            return False
        data_filter = self.security.data_filter
        if data_filter is None:
            return True
        try:
            return bool(data_filter(self.security, record))
        except Exception as exc:
            message = f"Runtime error applying data filter. Assuming filtered for {self.security.symbol}: {exc}"
            self._logger.error(message)
            self._result_handler.runtime_error(message)
            return False


__all__ = ["FilterStage"]
