from datetime import UTC, date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from vfeed.core.data.providers import LocalDataProvider, coarse_file_path
from vfeed.core.feeds.sources import CollectionSource
from vfeed.core.models.records import CoarseFundamental, RecordCollection
from vfeed.core.models.subscription import Security, SubscriptionDataConfig, SubscriptionRequest
from vfeed.core.models.symbols import Symbol
from vfeed.core.services.calendars import SecurityExchangeHours

COARSE = Symbol.create("COARSE", "base")


@pytest.fixture
def request_for_coarse(ny_hours: SecurityExchangeHours) -> SubscriptionRequest:
    return SubscriptionRequest(
        security=Security(symbol=COARSE, exchange_hours=ny_hours),
        config=SubscriptionDataConfig(symbol=COARSE, record_type=CoarseFundamental),
        start_time_utc=datetime(2020, 1, 2, 5, tzinfo=UTC),
        end_time_utc=datetime(2020, 1, 4, 5, tzinfo=UTC),
        is_universe_subscription=True,
    )


def write_coarse(folder: Path, day: date, content: str) -> None:
    path = coarse_file_path(folder, "usa", day)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def test_one_collection_per_day_with_a_file(tmp_path: Path, request_for_coarse: SubscriptionRequest) -> None:
    write_coarse(
        tmp_path,
        date(2020, 1, 2),
        "SPY R735QTJ8XC9X,SPY,320.5,1000,,True,1,1\nAAPL R735QTJ8XC9X,AAPL,300,200,60000,False,0.9,0.5\n",
    )
    source = CollectionSource(request_for_coarse, LocalDataProvider(), tmp_path, [date(2020, 1, 2), date(2020, 1, 3)])

    collections = list(source)

    assert len(collections) == 1
    collection = collections[0]
    assert isinstance(collection, RecordCollection)
    assert collection.symbol == COARSE
    assert collection.time == datetime(2020, 1, 2)
    assert [symbol.value for symbol in collection.symbols] == ["SPY", "AAPL"]
    spy, aapl = collection.data
    assert spy.value == Decimal("320.5")
    assert spy.dollar_volume == Decimal("320500.0")
    assert spy.has_fundamental_data
    assert aapl.dollar_volume == Decimal("60000.0")
    assert not aapl.has_fundamental_data
    assert aapl.split_factor == Decimal("0.5")


def test_unreadable_days_are_skipped(tmp_path: Path, request_for_coarse: SubscriptionRequest) -> None:
    write_coarse(tmp_path, date(2020, 1, 2), "")
    write_coarse(tmp_path, date(2020, 1, 3), "QQQ X,QQQ,200,10,2000,True,1,1\n")

    collections = list(CollectionSource(request_for_coarse, LocalDataProvider(), tmp_path))

    assert [collection.time.day for collection in collections] == [3]


def test_defaults_to_request_tradable_days(tmp_path: Path, request_for_coarse: SubscriptionRequest) -> None:
    assert list(CollectionSource(request_for_coarse, LocalDataProvider(), tmp_path)) == []
