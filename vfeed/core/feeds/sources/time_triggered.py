"""Sources for universes selected on a clock rather than on market data."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from datetime import datetime
from typing import TYPE_CHECKING

from vfeed.core.logging import bind
from vfeed.core.models.records import MarketRecord, SelectionTrigger

if TYPE_CHECKING:
    from vfeed.core.feeds.runtime import CancellationToken, TimeProvider
    from vfeed.core.models.subscription import SubscriptionRequest
    from vfeed.core.models.universe import TimeTriggeredUniverse, UserDefinedUniverse
    from vfeed.core.services.calendars import SecurityExchangeHours


class TimeTriggeredSource(Iterator[MarketRecord]):
    """Emits a :class:`SelectionTrigger` at each of the universe's trigger times.

    In live mode each trigger is held back until the time provider reaches
    it; the wait ends early when ``cancellation_token`` is set.
    """

    poll_interval = 1.0

    def __init__(
        self,
        universe: TimeTriggeredUniverse,
        request: SubscriptionRequest,
        time_provider: TimeProvider,
        is_live_mode: bool = False,
        cancellation_token: CancellationToken | None = None,
    ) -> None:
        self.universe = universe
        self._exchange_hours = request.exchange_hours
        self._time_provider = time_provider
        self._is_live_mode = is_live_mode
        self._token = cancellation_token
        self._triggers = universe.trigger_times(request.start_time_utc, request.end_time_utc, request.exchange_hours)

    def __iter__(self) -> TimeTriggeredSource:
        return self

    def __next__(self) -> MarketRecord:
        trigger_utc = next(self._triggers)
        if self._is_live_mode:
            self._wait_until(trigger_utc)
        return SelectionTrigger(symbol=self.universe.symbol, time=_to_local(trigger_utc, self._exchange_hours))

    def _wait_until(self, trigger_utc: datetime) -> None:
        while self._time_provider.get_utc_now() < trigger_utc:
            remaining = (trigger_utc - self._time_provider.get_utc_now()).total_seconds()
            timeout = max(0.0, min(remaining, self.poll_interval))
            if self._token is None:
                raise StopIteration
            if self._token.wait(timeout):
                raise StopIteration


class InjectionSource(Iterator[MarketRecord]):
    """Merges triggers injected by universe membership changes into a trigger source.

    An injected trigger is stamped with the time provider's current time and
    is emitted ahead of any scheduled trigger that is not earlier. After the
    source ends, later injections are still served by subsequent pulls.
    """

    def __init__(
        self,
        triggers: Iterator[MarketRecord],
        universe: UserDefinedUniverse,
        exchange_hours: SecurityExchangeHours,
        time_provider: TimeProvider,
    ) -> None:
        self.universe = universe
        self._triggers = triggers
        self._exchange_hours = exchange_hours
        self._time_provider = time_provider
        self._injected: deque[MarketRecord] = deque()
        self._next_trigger: MarketRecord | None = None
        self._triggers_done = False
        self._logger = bind(component="InjectionSource", symbol=universe.symbol.value)
        universe.on_change(self._on_universe_change)

    def inject(self, record: MarketRecord) -> None:
        self._injected.append(record)

    def _on_universe_change(self, action: str, symbol: object) -> None:
        now = _to_local(self._time_provider.get_utc_now(), self._exchange_hours)
        self._logger.debug(f"Universe {action} {symbol} at {now}")
        self.inject(SelectionTrigger(symbol=self.universe.symbol, time=now))

    def __iter__(self) -> InjectionSource:
        return self

    def __next__(self) -> MarketRecord:
        if self._next_trigger is None and not self._triggers_done:
            self._next_trigger = next(self._triggers, None)
            self._triggers_done = self._next_trigger is None
        if self._injected and (self._next_trigger is None or self._injected[0].time <= self._next_trigger.time):
            return self._injected.popleft()
        if self._next_trigger is None:
            raise StopIteration
        trigger, self._next_trigger = self._next_trigger, None
        return trigger


def _to_local(moment: datetime, exchange_hours: SecurityExchangeHours) -> datetime:
    return moment.astimezone(exchange_hours.time_zone).replace(tzinfo=None)


__all__ = ["TimeTriggeredSource", "InjectionSource"]
