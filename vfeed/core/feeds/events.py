"""Typed notifications published by record cursors."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any, TypeVar

from vfeed.core.models.records import MarketRecord
from vfeed.core.models.symbols import Symbol

E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class InvalidConfigurationDetected:
    message: str


@dataclass(frozen=True, slots=True)
class NumericalPrecisionLimited:
    message: str
    minimum_date: date


@dataclass(frozen=True, slots=True)
class StartDateLimited:
    message: str
    original_date: date
    adjusted_date: date


@dataclass(frozen=True, slots=True)
class DownloadFailed:
    message: str
    stack_trace: str | None = None


@dataclass(frozen=True, slots=True)
class ReaderErrorDetected:
    message: str
    stack_trace: str | None = None


@dataclass(frozen=True, slots=True)
class NewTradableDate:
    """A cursor moved onto ``date``; ``previous`` is the last record it emitted."""

    date: date
    previous: MarketRecord | None
    symbol: Symbol


class EventChannel:
    """Synchronous, ordered fan-out of events to subscribers by event type."""

    def __init__(self) -> None:
        self._subscribers: defaultdict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, event_type: type[E], callback: Callable[[E], None]) -> None:
        self._subscribers[event_type].append(callback)

    def publish(self, event: object) -> None:
        for callback in list(self._subscribers.get(type(event), ())):
            callback(event)

    def subscriber_count(self, event_type: type) -> int:
        return len(self._subscribers.get(event_type, ()))


__all__ = [
    "EventChannel",
    "InvalidConfigurationDetected",
    "NumericalPrecisionLimited",
    "StartDateLimited",
    "DownloadFailed",
    "ReaderErrorDetected",
    "NewTradableDate",
]
