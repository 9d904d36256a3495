"""Subscription lifecycle: builds and decorates record pipelines per request."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from vfeed.core.exceptions import SubscriptionError
from vfeed.core.feeds.events import EventChannel
from vfeed.core.feeds.factory import EnumeratorFactory, TradableDaysProvider
from vfeed.core.feeds.runtime import CancellationToken
from vfeed.core.feeds.sources import (
    CollectionSource,
    FuturesChainSource,
    InjectionSource,
    OptionChainSource,
    TimeTriggeredSource,
)
from vfeed.core.feeds.stages import AggregationStage, FillForwardStage, FilterStage, QuoteBarFillForwardStage
from vfeed.core.logging import bind
from vfeed.core.models.market import Resolution
from vfeed.core.models.records import MarketRecord, QuoteBar, TradeBar
from vfeed.core.models.universe import UniverseKind

if TYPE_CHECKING:
    from vfeed.core.data.auxiliary.providers import FactorFileProvider, MapFileProvider
    from vfeed.core.data.providers.base import DataProvider
    from vfeed.core.data.storage.documents import DocumentStore
    from vfeed.core.feeds.results import Algorithm, ResultHandler
    from vfeed.core.feeds.runtime import SubscriptionRegistry, TimeProvider
    from vfeed.core.models.subscription import SubscriptionDataConfig, SubscriptionRequest


@dataclass
class Subscription:
    """A configured record stream bound to the coordinator's cancellation token.

    ``use_worker`` marks streams that may be pulled ahead on a background
    worker; user-defined universe streams are not.
    """

    request: SubscriptionRequest
    iterator: Iterator[MarketRecord]
    cancellation_token: CancellationToken = field(default_factory=CancellationToken)
    use_worker: bool = True

    def __iter__(self) -> Iterator[MarketRecord]:
        while not self.cancellation_token.is_cancelled:
            try:
                record = next(self.iterator)
            except StopIteration:
                return
            if self.cancellation_token.is_cancelled:
                return
            yield record


def _is_quote_config(config: SubscriptionDataConfig) -> bool:
    if isinstance(config.record_type, type):
        return issubclass(config.record_type, QuoteBar)
    return config.record_type == "QuoteBar"


class SubscriptionCoordinator:
    """Creates subscriptions for the algorithm and owns their shared cancellation.

    Example:
        >>> coordinator = SubscriptionCoordinator(document_store=store, data_folder="data")
        >>> coordinator.start(algorithm, handler, map_files, factor_files, provider, registry, clock)
        >>> subscription = coordinator.create_subscription(request)
    """

    def __init__(
        self,
        document_store: DocumentStore | None = None,
        data_folder: str | Path = "data",
        data_root: str = "data",
        include_auxiliary_data: bool = True,
        live_mode: bool = False,
        tradable_days_provider: TradableDaysProvider | None = None,
    ) -> None:
        self.document_store = document_store
        self.data_folder = Path(data_folder)
        self.data_root = data_root
        self.include_auxiliary_data = include_auxiliary_data
        self.live_mode = live_mode
        self.tradable_days_provider = tradable_days_provider

        self._cancellation_token = CancellationToken()
        self._is_active = False
        self._factory: EnumeratorFactory | None = None
        self._algorithm: Algorithm | None = None
        self._result_handler: ResultHandler | None = None
        self._map_file_provider: MapFileProvider | None = None
        self._factor_file_provider: FactorFileProvider | None = None
        self._data_provider: DataProvider | None = None
        self._subscription_registry: SubscriptionRegistry | None = None
        self._time_provider: TimeProvider | None = None
        self._logger = bind(component="SubscriptionCoordinator")

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def cancellation_token(self) -> CancellationToken:
        return self._cancellation_token

    def start(
        self,
        algorithm: Algorithm,
        result_handler: ResultHandler,
        map_file_provider: MapFileProvider,
        factor_file_provider: FactorFileProvider,
        data_provider: DataProvider,
        subscription_registry: SubscriptionRegistry,
        time_provider: TimeProvider,
    ) -> None:
        """Store the collaborators, replace the cancellation token and make the coordinator active.

        Subscriptions created before a ``stop()`` keep the cancelled token; new ones get the fresh one.
        """
        if self.document_store is None:
            raise SubscriptionError("A document store is required to start the coordinator")
        self._algorithm = algorithm
        self._result_handler = result_handler
        self._map_file_provider = map_file_provider
        self._factor_file_provider = factor_file_provider
        self._data_provider = data_provider
        self._subscription_registry = subscription_registry
        self._time_provider = time_provider
        self._cancellation_token = CancellationToken()
        self._factory = EnumeratorFactory(
            result_handler,
            map_file_provider,
            factor_file_provider,
            self.document_store,
            include_auxiliary_data=self.include_auxiliary_data,
            tradable_days_provider=self.tradable_days_provider,
            live_mode=self.live_mode,
            time_provider=time_provider,
            data_root=self.data_root,
        )
        channel = getattr(data_provider, "channel", None)
        if isinstance(channel, EventChannel):
            self._factory.route_events(channel)
        self._is_active = True
        self._logger.info(f"Started with document store {self.document_store.name}")

    def create_subscription(self, request: SubscriptionRequest) -> Subscription | None:
        """Build the pipeline for ``request``.

        Returns ``None`` (after reporting to the algorithm) when a plain
        instrument has no tradable dates in the requested range.
        """
        if not self._is_active or self._factory is None:
            raise SubscriptionError("Coordinator has not been started or was stopped")

        if request.is_universe_subscription:
            iterator, use_worker = self._create_universe_iterator(request)
        else:
            if not tuple(self._factory.tradable_days(request)):
                self._algorithm.error(
                    f"No data loaded for {request.config.symbol} because there were no tradeable dates for this security."
                )
                return None
            self._subscription_registry.add(request.config)
            iterator = self._factory.create_enumerator(request, self._data_provider)
            iterator = self.configure(request, aggregate=False, iterator=iterator)
            use_worker = True

        self._logger.debug(f"Created subscription for {request.config.symbol}")
        return Subscription(request, iterator, self._cancellation_token, use_worker)

    def _create_universe_iterator(self, request: SubscriptionRequest) -> tuple[Iterator[MarketRecord], bool]:
        universe = request.universe
        kind = universe.kind if universe is not None else UniverseKind.SELECTION
        config = request.config

        if kind in (UniverseKind.TIME_TRIGGERED, UniverseKind.USER_DEFINED):
            source = TimeTriggeredSource(
                universe,
                request,
                self._time_provider,
                is_live_mode=self.live_mode,
                cancellation_token=self._cancellation_token,
            )
            if kind is UniverseKind.USER_DEFINED:
                return InjectionSource(source, universe, request.exchange_hours, self._time_provider), False
            return source, True

        if config.record_type_name == "CoarseFundamental":
            return (
                CollectionSource(request, self._data_provider, self.data_folder, self._factory.tradable_days(request)),
                True,
            )

        if kind is UniverseKind.OPTION_CHAIN:
            underlying_request = request.for_symbol(universe.underlying or universe.symbol, TradeBar)
            underlying = self._factory.create_enumerator(underlying_request, self._data_provider)
            underlying = self.configure(underlying_request, aggregate=True, iterator=underlying)
            map_file_resolver = self._map_file_provider.get(underlying_request.config.market)
            source = OptionChainSource(underlying, universe, request, map_file_resolver, self._factor_file_provider)
            return source, True

        if kind is UniverseKind.FUTURES_CHAIN:
            source = FuturesChainSource(universe, self._factory.tradable_days(request))
            return self.configure(request, aggregate=True, iterator=source), True

        return self._factory.create_enumerator(request, self._data_provider), True

    def configure(
        self, request: SubscriptionRequest, aggregate: bool, iterator: Iterator[MarketRecord]
    ) -> Iterator[MarketRecord]:
        """Apply aggregation, fill-forward and filtering to ``iterator`` as the config asks."""
        config = request.config
        if aggregate:
            iterator = AggregationStage(iterator, config.symbol)

        if config.fill_forward and config.resolution is not Resolution.TICK:
            fill_forward_resolution = self._subscription_registry.update_and_get_fill_forward_resolution(config)
            if _is_quote_config(config):
                iterator = QuoteBarFillForwardStage(iterator)
            iterator = FillForwardStage(
                iterator,
                request.exchange_hours,
                fill_forward_resolution,
                request.security.is_extended_market_hours,
                request.end_time_local,
                config.increment,
                config.data_time_zone,
            )

        if config.is_filtered_subscription:
            iterator = FilterStage(iterator, request.security, request.end_time_local, self._result_handler)
        return iterator

    def remove_subscription(self, subscription: Subscription) -> None:
        """Subscriptions end on their own; nothing is released here."""

    def stop(self) -> None:
        """Cancel every subscription stream. Calling it again has no further effect."""
        self._is_active = False
        if self._cancellation_token.cancel():
            self._logger.info("Stopping: cancellation requested for all subscriptions")


__all__ = ["Subscription", "SubscriptionCoordinator"]
