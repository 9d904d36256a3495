from datetime import datetime, timedelta
from decimal import Decimal

from vfeed.core.feeds.stages import AggregationStage
from vfeed.core.models.records import RecordCollection, TradeBar
from vfeed.core.models.symbols import Symbol

UNIVERSE = Symbol.create("?SPY", "option")


def bar(ticker: str, hour: int, close: str = "1") -> TradeBar:
    return TradeBar(
        symbol=Symbol.create(ticker),
        time=datetime(2020, 1, 2, hour),
        period=timedelta(hours=1),
        close=Decimal(close),
        value=Decimal(close),
    )


def test_records_sharing_an_end_time_are_grouped() -> None:
    stage = AggregationStage([bar("SPY", 10), bar("QQQ", 10), bar("SPY", 11)], UNIVERSE)

    collections = list(stage)

    assert len(collections) == 2
    first, second = collections
    assert isinstance(first, RecordCollection)
    assert first.symbol == UNIVERSE
    assert first.end_time == datetime(2020, 1, 2, 11)
    assert [record.symbol.value for record in first.data] == ["SPY", "QQQ"]
    assert [symbol.value for symbol in first.symbols] == ["SPY", "QQQ"]
    assert [record.symbol.value for record in second.data] == ["SPY"]


def test_incoming_collections_are_flattened() -> None:
    underlying = bar("SPY", 10, "300")
    nested = RecordCollection(
        symbol=UNIVERSE,
        time=datetime(2020, 1, 2, 10),
        period=timedelta(hours=1),
        data=[bar("QQQ", 10)],
        underlying=underlying,
    )

    (collection,) = list(AggregationStage([nested, bar("IWM", 10)], UNIVERSE))

    assert [record.symbol.value for record in collection.data] == ["QQQ", "IWM"]
    assert collection.underlying == underlying


def test_nothing_is_pulled_before_first_next() -> None:
    pulled: list[int] = []

    def source():
        pulled.append(1)
        yield bar("SPY", 10)

    stage = AggregationStage(source(), UNIVERSE)
    assert pulled == []
    next(stage)
    assert pulled == [1]


def test_empty_source_yields_nothing() -> None:
    assert list(AggregationStage([], UNIVERSE)) == []
