"""Builds record cursors for plain-instrument subscriptions."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from datetime import date
from typing import TYPE_CHECKING

from vfeed.core.data.auxiliary.providers import MapFileResolver
from vfeed.core.feeds.cursor import RecordCursor
from vfeed.core.feeds.events import (
    DownloadFailed,
    EventChannel,
    InvalidConfigurationDetected,
    NumericalPrecisionLimited,
    ReaderErrorDetected,
    StartDateLimited,
)
from vfeed.core.feeds.stages.corporate_events import CorporateEventStage
from vfeed.core.logging import bind
from vfeed.core.models.records import MarketRecord

if TYPE_CHECKING:
    from vfeed.core.data.auxiliary.providers import FactorFileProvider, MapFileProvider
    from vfeed.core.data.providers.base import DataProvider
    from vfeed.core.data.storage.documents import DocumentStore
    from vfeed.core.feeds.results import ResultHandler
    from vfeed.core.feeds.runtime import TimeProvider
    from vfeed.core.models.subscription import SubscriptionRequest

TradableDaysProvider = Callable[["SubscriptionRequest"], Iterable[date]]


class EnumeratorFactory:
    """Creates a :class:`RecordCursor` per request and routes its notifications.

    Invalid configurations and download failures reach the result handler as
    errors, clamped start dates as debug messages and reader errors as runtime
    errors. With ``include_auxiliary_data`` the cursor is wrapped so corporate
    events are interleaved with its data.
    """

    def __init__(
        self,
        result_handler: ResultHandler,
        map_file_provider: MapFileProvider,
        factor_file_provider: FactorFileProvider,
        document_store: DocumentStore,
        include_auxiliary_data: bool = True,
        tradable_days_provider: TradableDaysProvider | None = None,
        live_mode: bool = False,
        time_provider: TimeProvider | None = None,
        data_root: str = "data",
    ) -> None:
        self.result_handler = result_handler
        self.map_file_provider = map_file_provider
        self.factor_file_provider = factor_file_provider
        self.document_store = document_store
        self.include_auxiliary_data = include_auxiliary_data
        self.tradable_days_provider = tradable_days_provider
        self.live_mode = live_mode
        self.time_provider = time_provider
        self.data_root = data_root
        self._logger = bind(component="EnumeratorFactory")

    def tradable_days(self, request: SubscriptionRequest) -> Iterable[date]:
        if self.tradable_days_provider is not None:
            return self.tradable_days_provider(request)
        return request.tradable_days

    def create_enumerator(self, request: SubscriptionRequest, data_provider: DataProvider) -> Iterator[MarketRecord]:
        """Return a lazy record stream for ``request``; nothing is fetched until the first pull.

        ``data_provider`` serves local files only; cursor records always come
        from the document store.
        """
        config = request.config
        if config.ticker_should_be_mapped():
            map_file_resolver = self.map_file_provider.get(config.market)
        else:
            map_file_resolver = MapFileResolver.empty()

        channel = EventChannel()
        self.route_events(channel)
        cursor = RecordCursor(
            config,
            request.exchange_hours,
            request.start_time_local,
            request.end_time_local,
            map_file_resolver,
            self.factor_file_provider,
            self.tradable_days(request),
            self.document_store,
            channel=channel,
            is_live_mode=self.live_mode,
            time_provider=self.time_provider,
            data_root=self.data_root,
        )
        self._logger.debug(f"Created cursor for {config.symbol} at {cursor.store_path}")
        if self.include_auxiliary_data:
            return CorporateEventStage(cursor)
        return cursor

    def route_events(self, channel: EventChannel) -> None:
        """Forward every notification published on ``channel`` to the result handler."""
        handler = self.result_handler
        channel.subscribe(InvalidConfigurationDetected, lambda event: handler.error_message(event.message))
        channel.subscribe(NumericalPrecisionLimited, lambda event: handler.debug_message(event.message))
        channel.subscribe(StartDateLimited, lambda event: handler.debug_message(event.message))
        channel.subscribe(DownloadFailed, lambda event: handler.error_message(event.message, event.stack_trace or ""))
        channel.subscribe(ReaderErrorDetected, lambda event: handler.runtime_error(event.message, event.stack_trace or ""))


__all__ = ["EnumeratorFactory", "TradableDaysProvider"]
