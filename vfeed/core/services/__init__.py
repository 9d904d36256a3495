"""Business services layer."""

from vfeed.core.services.calendars import (
    SecurityExchangeHours,
    TradingCalendar,
    TradingCalendarProvider,
    builtin_calendars,
    exchange_hours_for,
)

__all__ = [
    "TradingCalendar",
    "TradingCalendarProvider",
    "SecurityExchangeHours",
    "builtin_calendars",
    "exchange_hours_for",
]
