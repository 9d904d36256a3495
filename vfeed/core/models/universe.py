"""Universe variants a subscription request can be keyed to."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

from vfeed.core.models.symbols import Symbol

if TYPE_CHECKING:
    from vfeed.core.services.calendars import SecurityExchangeHours


class UniverseKind(str, Enum):
    SELECTION = "selection"
    TIME_TRIGGERED = "time_triggered"
    USER_DEFINED = "user_defined"
    OPTION_CHAIN = "option_chain"
    FUTURES_CHAIN = "futures_chain"


ChainProvider = Callable[[Symbol, date], Iterable[Symbol]]


@dataclass
class Universe:
    """A dynamically selected set of instruments keyed by ``symbol``."""

    kind: ClassVar[UniverseKind] = UniverseKind.SELECTION

    symbol: Symbol

    @property
    def is_time_triggered(self) -> bool:
        return self.kind in (UniverseKind.TIME_TRIGGERED, UniverseKind.USER_DEFINED)


@dataclass
class SelectionUniverse(Universe):
    """Generic universe fed by the standard record cursor."""

    selector: Callable[[object], Iterable[Symbol]] | None = None


@dataclass
class TimeTriggeredUniverse(Universe):
    """Universe reselected on a fixed interval rather than on market data."""

    kind: ClassVar[UniverseKind] = UniverseKind.TIME_TRIGGERED

    interval: timedelta = timedelta(days=1)
    trading_days_only: bool = True

    def trigger_times(
        self,
        start_utc: datetime,
        end_utc: datetime,
        exchange_hours: SecurityExchangeHours,
    ) -> Iterator[datetime]:
        """Yield UTC trigger instants in ``[start_utc, end_utc]``."""
        if self.interval <= timedelta(0):
            return
        current = start_utc
        while current <= end_utc:
            local_day = current.astimezone(exchange_hours.time_zone).date()
            if not self.trading_days_only or exchange_hours.is_date_open(local_day):
                yield current
            current += self.interval


@dataclass
class UserDefinedUniverse(TimeTriggeredUniverse):
    """Manually curated universe; members can be added or removed at any time."""

    kind: ClassVar[UniverseKind] = UniverseKind.USER_DEFINED

    members: set[Symbol] = field(default_factory=set)
    _listeners: list[Callable[[str, Symbol], None]] = field(default_factory=list, init=False, repr=False)

    def on_change(self, listener: Callable[[str, Symbol], None]) -> None:
        self._listeners.append(listener)

    def add(self, symbol: Symbol) -> bool:
        if symbol in self.members:
            return False
        self.members.add(symbol)
        self._notify("add", symbol)
        return True

    def remove(self, symbol: Symbol) -> bool:
        if symbol not in self.members:
            return False
        self.members.discard(symbol)
        self._notify("remove", symbol)
        return True

    def _notify(self, action: str, symbol: Symbol) -> None:
        for listener in list(self._listeners):
            listener(action, symbol)


@dataclass
class OptionChainUniverse(Universe):
    """Option contracts listed on ``underlying``, resolved per day by ``chain_provider``."""

    kind: ClassVar[UniverseKind] = UniverseKind.OPTION_CHAIN

    underlying: Symbol | None = None
    chain_provider: ChainProvider | None = None
    contract_filter: Callable[[Symbol], bool] | None = None


@dataclass
class FuturesChainUniverse(Universe):
    kind: ClassVar[UniverseKind] = UniverseKind.FUTURES_CHAIN

    chain_provider: ChainProvider | None = None
    contract_filter: Callable[[Symbol], bool] | None = None


__all__ = [
    "UniverseKind",
    "ChainProvider",
    "Universe",
    "SelectionUniverse",
    "TimeTriggeredUniverse",
    "UserDefinedUniverse",
    "OptionChainUniverse",
    "FuturesChainUniverse",
]
