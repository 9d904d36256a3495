"""Market-related enums and types."""

from datetime import timedelta
from enum import Enum


class SecurityType(str, Enum):
    """Security kind of an instrument."""

    BASE = "base"  # custom / synthetic data
    EQUITY = "equity"
    OPTION = "option"
    FUTURE = "future"
    FOREX = "forex"
    CRYPTO = "crypto"
    CFD = "cfd"
    INDEX = "index"


class MarketType(str, Enum):
    """Market identifiers used in store paths."""

    USA = "usa"
    CME = "cme"
    CBOE = "cboe"
    OANDA = "oanda"
    GDAX = "gdax"
    CN = "cn"
    HK = "hk"


class Resolution(str, Enum):
    """Sampling resolution of a subscription."""

    TICK = "tick"
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAILY = "daily"

    def to_timedelta(self) -> timedelta:
        return _RESOLUTION_SPANS[self]


_RESOLUTION_SPANS: dict[Resolution, timedelta] = {
    Resolution.TICK: timedelta(0),
    Resolution.SECOND: timedelta(seconds=1),
    Resolution.MINUTE: timedelta(minutes=1),
    Resolution.HOUR: timedelta(hours=1),
    Resolution.DAILY: timedelta(days=1),
}


class DataNormalizationMode(str, Enum):
    """How raw prices are scaled for corporate actions."""

    RAW = "raw"
    ADJUSTED = "adjusted"
    SPLIT_ADJUSTED = "split_adjusted"
