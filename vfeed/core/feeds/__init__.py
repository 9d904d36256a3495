"""Subscription record pipelines: cursors, stages, sources and their coordinator."""

from vfeed.core.feeds.coordinator import Subscription, SubscriptionCoordinator
from vfeed.core.feeds.cursor import CursorState, RecordCursor
from vfeed.core.feeds.events import (
    DownloadFailed,
    EventChannel,
    InvalidConfigurationDetected,
    NewTradableDate,
    NumericalPrecisionLimited,
    ReaderErrorDetected,
    StartDateLimited,
)
from vfeed.core.feeds.factory import EnumeratorFactory
from vfeed.core.feeds.results import Algorithm, LoggingAlgorithm, LoggingResultHandler, ResultHandler
from vfeed.core.feeds.runtime import (
    CancellationToken,
    FillForwardResolution,
    ManualTimeProvider,
    RealTimeProvider,
    SubscriptionRegistry,
    TimeProvider,
)

__all__ = [
    "Subscription",
    "SubscriptionCoordinator",
    "EnumeratorFactory",
    "RecordCursor",
    "CursorState",
    "EventChannel",
    "InvalidConfigurationDetected",
    "NumericalPrecisionLimited",
    "StartDateLimited",
    "DownloadFailed",
    "ReaderErrorDetected",
    "NewTradableDate",
    "ResultHandler",
    "Algorithm",
    "LoggingResultHandler",
    "LoggingAlgorithm",
    "TimeProvider",
    "RealTimeProvider",
    "ManualTimeProvider",
    "CancellationToken",
    "FillForwardResolution",
    "SubscriptionRegistry",
]
