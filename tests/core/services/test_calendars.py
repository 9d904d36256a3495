from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from vfeed.core.services.calendars import (
    SecurityExchangeHours,
    TradingCalendar,
    TradingCalendarProvider,
    exchange_hours_for,
)


class TestTradingCalendar:
    def test_us_calendar_skips_fixed_holidays(self) -> None:
        calendar = TradingCalendarProvider().get_calendar("nyse")

        assert calendar.market == "usa"
        assert not calendar.is_trading_day(date(2020, 1, 1))
        assert not calendar.is_trading_day(date(2020, 7, 4))
        assert calendar.is_trading_day(date(2020, 1, 2))

    def test_trading_days_are_inclusive(self) -> None:
        calendar = TradingCalendar(market="test")

        assert calendar.trading_days(date(2020, 1, 3), date(2020, 1, 6)) == [date(2020, 1, 3), date(2020, 1, 6)]
        with pytest.raises(ValueError):
            calendar.trading_days(date(2020, 1, 6), date(2020, 1, 3))

    def test_unknown_market_falls_back_to_default(self) -> None:
        assert TradingCalendarProvider().get_calendar("mars").market == "default"


class TestSecurityExchangeHours:
    def test_regular_session_bounds(self, ny_hours: SecurityExchangeHours) -> None:
        assert ny_hours.session(date(2020, 1, 2)) == (datetime(2020, 1, 2, 9, 30), datetime(2020, 1, 2, 16))
        assert ny_hours.session(date(2020, 1, 4)) is None

    def test_is_open_for_intervals(self, ny_hours: SecurityExchangeHours) -> None:
        assert ny_hours.is_open(datetime(2020, 1, 2), datetime(2020, 1, 3))
        assert not ny_hours.is_open(datetime(2020, 1, 4), datetime(2020, 1, 5))
        assert not ny_hours.is_open(datetime(2020, 1, 2, 17), datetime(2020, 1, 2, 18))
        assert ny_hours.is_open(datetime(2020, 1, 2, 17), datetime(2020, 1, 2, 18), extended=True)

    def test_zero_length_interval_is_an_instant(self, ny_hours: SecurityExchangeHours) -> None:
        assert ny_hours.is_open(datetime(2020, 1, 2, 10), datetime(2020, 1, 2, 10))
        assert not ny_hours.is_open(datetime(2020, 1, 2, 16), datetime(2020, 1, 2, 16))

    def test_last_trading_day_on_or_before(self, ny_hours: SecurityExchangeHours) -> None:
        assert ny_hours.last_trading_day_on_or_before(date(2020, 1, 5)) == date(2020, 1, 3)
        assert ny_hours.last_trading_day_on_or_before(date(2020, 1, 6)) == date(2020, 1, 6)

    def test_exchange_hours_for_markets(self) -> None:
        assert exchange_hours_for("usa").time_zone == ZoneInfo("America/New_York")
        crypto = exchange_hours_for("gdax")
        assert crypto.is_open(datetime(2020, 1, 4, 3), datetime(2020, 1, 4, 4))
