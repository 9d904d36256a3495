"""vfeed trading calendars and exchange session hours."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

if TYPE_CHECKING:
    from collections.abc import Mapping, MutableMapping

default_weekend = frozenset({5, 6})

# (month, day) holidays observed every year
us_fixed_holidays = frozenset({(1, 1), (7, 4), (12, 25)})


def normalize_market(market: str) -> str:
    """Normalize market identifiers for calendar lookups."""

    return market.lower()


@dataclass(frozen=True)
class TradingCalendar:
    """Represents a trading calendar with optional aliases."""

    market: str
    weekend_days: frozenset[int] = default_weekend
    holidays: frozenset[date] = frozenset()
    holiday_rules: frozenset[tuple[int, int]] = frozenset()
    aliases: frozenset[str] = frozenset()

    def is_trading_day(self, day: date) -> bool:
        if day.weekday() in self.weekend_days:
            return False
        if day in self.holidays:
            return False
        return (day.month, day.day) not in self.holiday_rules

    def trading_days(self, start: date, end: date) -> list[date]:
        """Return trading days between the provided bounds inclusive."""

        if end < start:
            raise ValueError("end must be on or after start")

        current = start
        days: list[date] = []
        while current <= end:
            if self.is_trading_day(current):
                days.append(current)
            if current == date.max:
                break
            current += timedelta(days=1)
        return days


def builtin_calendars() -> Mapping[str, TradingCalendar]:
    """Construct built-in trading calendars."""

    cn_calendar = TradingCalendar(
        market="cn",
        aliases=frozenset({"cn", "sh", "sz"}),
    )
    us_calendar = TradingCalendar(
        market="usa",
        aliases=frozenset({"us", "nyse", "nasdaq", "cboe", "cme"}),
        holiday_rules=us_fixed_holidays,
    )
    hk_calendar = TradingCalendar(
        market="hk",
        aliases=frozenset({"hk", "sehk"}),
    )
    always_open = TradingCalendar(
        market="always_open",
        weekend_days=frozenset(),
        aliases=frozenset({"oanda", "gdax"}),
    )
    return {
        cn_calendar.market: cn_calendar,
        us_calendar.market: us_calendar,
        hk_calendar.market: hk_calendar,
        always_open.market: always_open,
    }


class TradingCalendarProvider:
    """Provides trading calendars keyed by market identifiers."""

    def __init__(
        self,
        market_calendars: Mapping[str, TradingCalendar] | None = None,
        default_calendar: TradingCalendar | None = None,
    ) -> None:
        source = market_calendars or builtin_calendars()
        self._calendars: MutableMapping[str, TradingCalendar] = {}
        self._alias_map: MutableMapping[str, TradingCalendar] = {}
        for key, calendar in source.items():
            self._calendars[normalize_market(key)] = calendar
            for alias in calendar.aliases:
                self._alias_map[normalize_market(alias)] = calendar

        self._default_calendar = default_calendar or TradingCalendar(market="default")

    def get_calendar(self, market: str) -> TradingCalendar:
        """Return the matching calendar or fallback to default."""

        key = normalize_market(market)
        if key in self._calendars:
            return self._calendars[key]
        if key in self._alias_map:
            return self._alias_map[key]
        return self._default_calendar

    def get_trading_days(self, market: str, start: date, end: date) -> list[date]:
        """Helper retrieving trading days for the requested market."""

        return self.get_calendar(market).trading_days(start, end)


@dataclass(frozen=True)
class SecurityExchangeHours:
    """Session hours of an exchange, expressed as offsets from local midnight.

    All datetimes passed in are naive and in ``time_zone``.
    """

    time_zone: ZoneInfo
    calendar: TradingCalendar
    regular_open: timedelta = timedelta(hours=9, minutes=30)
    regular_close: timedelta = timedelta(hours=16)
    extended_open: timedelta = timedelta(hours=4)
    extended_close: timedelta = timedelta(hours=20)

    @classmethod
    def always_open(cls, time_zone: ZoneInfo | None = None) -> SecurityExchangeHours:
        full_day = timedelta(days=1)
        return cls(
            time_zone=time_zone or ZoneInfo("UTC"),
            calendar=TradingCalendar(market="always_open", weekend_days=frozenset()),
            regular_open=timedelta(0),
            regular_close=full_day,
            extended_open=timedelta(0),
            extended_close=full_day,
        )

    def is_date_open(self, day: date) -> bool:
        return self.calendar.is_trading_day(day)

    def session(self, day: date, extended: bool = False) -> tuple[datetime, datetime] | None:
        """Return the ``[open, close)`` window for ``day`` or ``None`` when closed."""
        if not self.is_date_open(day):
            return None
        midnight = datetime.combine(day, datetime.min.time())
        if extended:
            return midnight + self.extended_open, midnight + self.extended_close
        return midnight + self.regular_open, midnight + self.regular_close

    def is_open(self, start: datetime, end: datetime, extended: bool = False) -> bool:
        """True when any part of ``[start, end)`` falls inside a session.

        A zero-length interval is treated as the instant ``start``.
        """
        if end <= start:
            window = self.session(start.date(), extended)
            return window is not None and window[0] <= start < window[1]

        day = start.date()
        while True:
            window = self.session(day, extended)
            if window is not None and start < window[1] and end > window[0]:
                return True
            if day >= end.date() or day == date.max:
                return False
            day += timedelta(days=1)

    def last_trading_day_on_or_before(self, day: date) -> date:
        current = day
        for _ in range(366):
            if self.is_date_open(current):
                return current
            current -= timedelta(days=1)
        return day


_DEFAULT_ZONES: dict[str, str] = {
    "usa": "America/New_York",
    "cboe": "America/Chicago",
    "cme": "America/Chicago",
    "cn": "Asia/Shanghai",
    "hk": "Asia/Hong_Kong",
}


def exchange_hours_for(market: str, provider: TradingCalendarProvider | None = None) -> SecurityExchangeHours:
    """Return default session hours for a market."""

    key = normalize_market(market)
    zone_name = _DEFAULT_ZONES.get(key)
    if zone_name is None:
        return SecurityExchangeHours.always_open()
    calendar = (provider or TradingCalendarProvider()).get_calendar(key)
    if key == "cn":
        return SecurityExchangeHours(time_zone=ZoneInfo(zone_name), calendar=calendar, regular_close=timedelta(hours=15))
    return SecurityExchangeHours(time_zone=ZoneInfo(zone_name), calendar=calendar)


__all__ = [
    "TradingCalendar",
    "TradingCalendarProvider",
    "SecurityExchangeHours",
    "builtin_calendars",
    "default_weekend",
    "exchange_hours_for",
    "normalize_market",
    "us_fixed_holidays",
]
