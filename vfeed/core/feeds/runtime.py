"""Clocks, cancellation and subscription bookkeeping shared by feed components."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from vfeed.core.models.market import Resolution
from vfeed.core.models.subscription import SubscriptionDataConfig


class TimeProvider(Protocol):
    def get_utc_now(self) -> datetime: ...


class RealTimeProvider:
    def get_utc_now(self) -> datetime:
        return datetime.now(UTC)


class ManualTimeProvider:
    """Clock that only moves when told to."""

    def __init__(self, current: datetime) -> None:
        self._current = current if current.tzinfo is not None else current.replace(tzinfo=UTC)

    def get_utc_now(self) -> datetime:
        return self._current

    def set_current_time(self, current: datetime) -> None:
        self._current = current if current.tzinfo is not None else current.replace(tzinfo=UTC)

    def advance(self, span: timedelta) -> None:
        self._current += span


class CancellationToken:
    """Cooperative cancellation signal; cancelling twice has no further effect."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self.cancel_count = 0

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> bool:
        """Set the signal; returns ``False`` when it was already set."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            self.cancel_count += 1
            return True

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)


@dataclass
class FillForwardResolution:
    """Shared, mutable fill-forward step read by every fill-forward stage."""

    value: timedelta


class SubscriptionRegistry:
    """Tracks subscribed configurations to derive the fill-forward resolution.

    The resolution is the smallest non-tick increment across subscriptions and
    defaults to one minute.
    """

    def __init__(self, default_resolution: Resolution = Resolution.MINUTE) -> None:
        self._default = default_resolution.to_timedelta()
        self._configs: list[SubscriptionDataConfig] = []
        self._fill_forward_resolution = FillForwardResolution(self._default)
        self._lock = threading.Lock()

    @property
    def configs(self) -> tuple[SubscriptionDataConfig, ...]:
        return tuple(self._configs)

    def add(self, config: SubscriptionDataConfig) -> None:
        with self._lock:
            if config not in self._configs:
                self._configs.append(config)
            self._recompute()

    def remove(self, config: SubscriptionDataConfig) -> None:
        with self._lock:
            if config in self._configs:
                self._configs.remove(config)
            self._recompute()

    def update_and_get_fill_forward_resolution(
        self, config: SubscriptionDataConfig | None = None
    ) -> FillForwardResolution:
        if config is not None:
            self.add(config)
        return self._fill_forward_resolution

    def _recompute(self) -> None:
        increments = [config.increment for config in self._configs if config.resolution is not Resolution.TICK]
        self._fill_forward_resolution.value = min(increments) if increments else self._default


__all__ = [
    "TimeProvider",
    "RealTimeProvider",
    "ManualTimeProvider",
    "CancellationToken",
    "FillForwardResolution",
    "SubscriptionRegistry",
]
