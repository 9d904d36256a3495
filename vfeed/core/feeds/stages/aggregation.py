"""Groups records sharing an end time into universe collections."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from vfeed.core.feeds.stages.base import Stage
from vfeed.core.models.records import MarketRecord, RecordCollection
from vfeed.core.models.symbols import Symbol


class AggregationStage(Stage):
    """Groups consecutive records that share an end time into one collection.

    Collections arriving from the source are merged into the group rather
    than nested.
    """

    def __init__(self, source: Iterable[MarketRecord], universe_symbol: Symbol) -> None:
        super().__init__(source)
        self.universe_symbol = universe_symbol

    def _generate(self, source: Iterator[MarketRecord]) -> Iterator[MarketRecord]:
        group: list[MarketRecord] = []
        for record in source:
            if group and record.end_time != group[0].end_time:
                yield self._collect(group)
                group = []
            group.append(record)
        if group:
            yield self._collect(group)

    def _collect(self, group: list[MarketRecord]) -> RecordCollection:
        data: list[MarketRecord] = []
        underlying: MarketRecord | None = None
        for record in group:
            if isinstance(record, RecordCollection):
                data.extend(record.data)
                underlying = record.underlying or underlying
            else:
                data.append(record)

        symbols: list[Symbol] = []
        for record in data:
            if record.symbol not in symbols:
                symbols.append(record.symbol)

        end_time = group[0].end_time
        start_time = min(record.time for record in group)
        return RecordCollection(
            symbol=self.universe_symbol,
            time=start_time,
            period=end_time - start_time,
            data=data,
            underlying=underlying,
            symbols=tuple(symbols),
        )


__all__ = ["AggregationStage"]
