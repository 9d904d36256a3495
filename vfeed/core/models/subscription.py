"""Subscription configuration and request descriptors."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from functools import cached_property
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from vfeed.core.models.market import DataNormalizationMode, MarketType, Resolution, SecurityType
from vfeed.core.models.records import MarketRecord, TradeBar
from vfeed.core.models.symbols import Symbol

if TYPE_CHECKING:
    from vfeed.core.models.universe import Universe
    from vfeed.core.services.calendars import SecurityExchangeHours


@dataclass(frozen=True)
class SubscriptionDataConfig:
    """What to stream for one instrument and how to shape it."""

    symbol: Symbol
    record_type: type[MarketRecord] | str = TradeBar
    resolution: Resolution = Resolution.DAILY
    data_time_zone: ZoneInfo = field(default_factory=lambda: ZoneInfo("America/New_York"))
    exchange_time_zone: ZoneInfo = field(default_factory=lambda: ZoneInfo("America/New_York"))
    fill_forward: bool = False
    extended_market_hours: bool = False
    is_filtered_subscription: bool = True
    is_custom_data: bool = False
    data_normalization_mode: DataNormalizationMode = DataNormalizationMode.ADJUSTED

    @property
    def security_type(self) -> SecurityType:
        return self.symbol.security_type

    @property
    def market(self) -> MarketType:
        return self.symbol.market

    @property
    def increment(self) -> timedelta:
        return self.resolution.to_timedelta()

    @property
    def record_type_name(self) -> str:
        if isinstance(self.record_type, str):
            return self.record_type
        return self.record_type.__name__

    def ticker_should_be_mapped(self) -> bool:
        """Only equity and option tickers of non-custom data follow map files."""
        if self.is_custom_data:
            return False
        return self.security_type in (SecurityType.EQUITY, SecurityType.OPTION)


@dataclass
class Security:
    symbol: Symbol
    exchange_hours: SecurityExchangeHours
    is_extended_market_hours: bool = False
    data_filter: Callable[[Security, MarketRecord], bool] | None = None


@dataclass(frozen=True)
class SubscriptionRequest:
    """Immutable descriptor of one subscription over ``[start_time_utc, end_time_utc]``."""

    security: Security
    config: SubscriptionDataConfig
    start_time_utc: datetime
    end_time_utc: datetime
    is_universe_subscription: bool = False
    universe: Universe | None = None

    def __post_init__(self) -> None:
        for name in ("start_time_utc", "end_time_utc"):
            value = getattr(self, name)
            if value.tzinfo is None:
                object.__setattr__(self, name, value.replace(tzinfo=UTC))

    @property
    def exchange_hours(self) -> SecurityExchangeHours:
        return self.security.exchange_hours

    @property
    def start_time_local(self) -> datetime:
        return self.start_time_utc.astimezone(self.exchange_hours.time_zone).replace(tzinfo=None)

    @property
    def end_time_local(self) -> datetime:
        return self.end_time_utc.astimezone(self.exchange_hours.time_zone).replace(tzinfo=None)

    @cached_property
    def tradable_days(self) -> tuple[date, ...]:
        """Dates in the data time zone on which the exchange is open."""
        data_tz = self.config.data_time_zone
        first = self.start_time_utc.astimezone(data_tz).date()
        last = self.end_time_utc.astimezone(data_tz).date()
        if last < first:
            return ()
        return tuple(self.exchange_hours.calendar.trading_days(first, last))

    def for_symbol(self, symbol: Symbol, record_type: type[MarketRecord] | str | None = None) -> SubscriptionRequest:
        """Derive a plain-instrument request for ``symbol`` over the same period."""
        config = replace(
            self.config,
            symbol=symbol,
            record_type=record_type if record_type is not None else self.config.record_type,
        )
        security = replace(self.security, symbol=symbol, data_filter=None)
        return SubscriptionRequest(
            security=security,
            config=config,
            start_time_utc=self.start_time_utc,
            end_time_utc=self.end_time_utc,
        )


__all__ = ["SubscriptionDataConfig", "Security", "SubscriptionRequest"]
