from __future__ import annotations

from datetime import date
from decimal import Decimal

from vfeed.core.models.corporate_actions import FactorFile, FactorFileRow, MapFile, MapFileRow


def _map_file() -> MapFile:
    return MapFile.from_rows(
        "goog",
        [
            MapFileRow(date(2014, 4, 2), "GOOGL"),
            MapFileRow(date(2004, 8, 19), "GOOG"),
            MapFileRow(date(2050, 12, 31), "GOOG"),
        ],
    )


def test_map_file_rows_are_sorted() -> None:
    map_file = _map_file()

    assert map_file.permtick == "GOOG"
    assert map_file.first_date == date(2004, 8, 19)
    assert map_file.delisting_date == date(2050, 12, 31)
    assert map_file.first_ticker == "GOOG"


def test_mapped_symbol_follows_history() -> None:
    map_file = _map_file()

    assert map_file.mapped_symbol(date(2010, 1, 4)) == "GOOGL"
    assert map_file.mapped_symbol(date(2014, 4, 2)) == "GOOGL"
    assert map_file.mapped_symbol(date(2014, 4, 3)) == "GOOG"
    assert map_file.mapped_symbol(date(2051, 1, 1)) is None


def test_has_data_outside_history() -> None:
    map_file = _map_file()

    assert not map_file.has_data(date(2000, 1, 3))
    assert map_file.has_data(date(2010, 1, 4))
    assert not map_file.has_data(date(2051, 1, 3))


def test_empty_map_file_never_delists() -> None:
    empty = MapFile.empty("spy")

    assert empty.is_empty
    assert empty.first_date == date.min
    assert empty.delisting_date == date.max
    assert empty.mapped_symbol(date(2020, 1, 2)) == "SPY"
    assert empty.has_data(date(1990, 1, 2))


def test_factor_file_uses_earliest_row_on_or_after_date() -> None:
    factor_file = FactorFile.from_rows(
        "aapl",
        [
            FactorFileRow(date(2050, 1, 1), Decimal("1"), Decimal("1")),
            FactorFileRow(date(2020, 8, 28), Decimal("0.99"), Decimal("0.25"), Decimal("499.23")),
        ],
    )

    assert factor_file.row_for(date(2020, 8, 1)).date == date(2020, 8, 28)
    assert factor_file.price_scale_factor(date(2020, 8, 1)) == Decimal("0.2475")
    assert factor_file.split_factor(date(2020, 8, 1)) == Decimal("0.25")
    assert factor_file.split_factor(date(2020, 9, 1)) == Decimal("1")
    assert factor_file.price_scale_factor(date(2051, 1, 1)) == Decimal("1")
