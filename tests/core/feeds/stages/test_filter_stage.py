from datetime import datetime, timedelta
from decimal import Decimal

from vfeed.core.feeds.results import LoggingResultHandler
from vfeed.core.feeds.stages import FilterStage
from vfeed.core.models.corporate_actions import Dividend
from vfeed.core.models.records import TradeBar
from vfeed.core.models.subscription import Security
from vfeed.core.models.symbols import Symbol
from vfeed.core.services.calendars import SecurityExchangeHours

SPY = Symbol.create("SPY")


def minute_bar(day: int, hour: int, minute: int = 0, close: str = "10") -> TradeBar:
    return TradeBar(
        symbol=SPY,
        time=datetime(2020, 1, day, hour, minute),
        period=timedelta(minutes=1),
        close=Decimal(close),
        value=Decimal(close),
    )


def make_stage(source, hours, result_handler, data_filter=None, end=datetime(2020, 1, 10)) -> FilterStage:
    security = Security(symbol=SPY, exchange_hours=hours, data_filter=data_filter)
    return FilterStage(source, security, end, result_handler)


def test_records_outside_sessions_are_dropped(
    ny_hours: SecurityExchangeHours, result_handler: LoggingResultHandler
) -> None:
    records = [minute_bar(2, 8), minute_bar(2, 10), minute_bar(2, 16, 30), minute_bar(4, 10)]

    kept = list(make_stage(records, ny_hours, result_handler))

    assert [record.time for record in kept] == [datetime(2020, 1, 2, 10)]


def test_daily_bar_overlapping_the_session_passes(
    ny_hours: SecurityExchangeHours, result_handler: LoggingResultHandler
) -> None:
    daily = TradeBar(symbol=SPY, time=datetime(2020, 1, 2), period=timedelta(days=1))

    assert list(make_stage([daily], ny_hours, result_handler)) == [daily]


def test_iteration_stops_after_end_time(ny_hours: SecurityExchangeHours, result_handler: LoggingResultHandler) -> None:
    consumed: list[TradeBar] = []

    def source():
        for record in (minute_bar(2, 10), minute_bar(3, 10), minute_bar(6, 10)):
            consumed.append(record)
            yield record

    kept = list(make_stage(source(), ny_hours, result_handler, end=datetime(2020, 1, 2, 12)))

    assert [record.time.day for record in kept] == [2]
    assert len(consumed) == 2


def test_data_filter_rejections(ny_hours: SecurityExchangeHours, result_handler: LoggingResultHandler) -> None:
    records = [minute_bar(2, 10, close="5"), minute_bar(2, 11, close="50")]

    kept = list(make_stage(records, ny_hours, result_handler, data_filter=lambda security, record: record.close > 10))

    assert [record.close for record in kept] == [Decimal("50")]
    assert result_handler.runtime_errors == []


def test_failing_data_filter_counts_as_filtered(
    ny_hours: SecurityExchangeHours, result_handler: LoggingResultHandler
) -> None:
    def broken(security: Security, record: TradeBar) -> bool:
        raise ValueError("bad filter")

    kept = list(make_stage([minute_bar(2, 10)], ny_hours, result_handler, data_filter=broken))

    assert kept == []
    assert result_handler.runtime_errors == [
        "Runtime error applying data filter. Assuming filtered for SPY: bad filter"
    ]


def test_auxiliary_records_always_pass(ny_hours: SecurityExchangeHours, result_handler: LoggingResultHandler) -> None:
    dividend = Dividend(symbol=SPY, time=datetime(2020, 1, 4), distribution=Decimal("0.5"))

    kept = list(make_stage([dividend], ny_hours, result_handler, data_filter=lambda security, record: False))

    assert kept == [dividend]
