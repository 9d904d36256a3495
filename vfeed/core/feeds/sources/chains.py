"""Option and futures chain universe sources."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from vfeed.core.logging import bind
from vfeed.core.models.market import DataNormalizationMode
from vfeed.core.models.records import MarketRecord, RecordCollection
from vfeed.core.models.symbols import Symbol

if TYPE_CHECKING:
    from vfeed.core.data.auxiliary.providers import FactorFileProvider, MapFileResolver
    from vfeed.core.models.subscription import SubscriptionRequest
    from vfeed.core.models.universe import ChainProvider, FuturesChainUniverse, OptionChainUniverse


def _select(
    chain_provider: ChainProvider | None,
    contract_filter: object,
    canonical: Symbol,
    day: date,
) -> tuple[Symbol, ...]:
    if chain_provider is None:
        return ()
    contracts = [
        contract
        for contract in chain_provider(canonical, day)
        if contract.expiry is None or contract.expiry >= day
    ]
    if callable(contract_filter):
        contracts = [contract for contract in contracts if contract_filter(contract)]
    return tuple(contracts)


class OptionChainSource(Iterator[MarketRecord]):
    """Pairs each underlying collection with the option contracts listed that day.

    ``underlying`` is the already configured (aggregated) underlying stream.
    The chain is looked up under the underlying's ticker in effect on each day
    and the underlying price is quoted raw, undoing factor file scaling.
    """

    def __init__(
        self,
        underlying: Iterator[MarketRecord],
        universe: OptionChainUniverse,
        request: SubscriptionRequest,
        map_file_resolver: MapFileResolver,
        factor_file_provider: FactorFileProvider,
    ) -> None:
        self.universe = universe
        self._underlying = underlying
        self._underlying_symbol = universe.underlying or universe.symbol
        self._map_file = map_file_resolver.resolve_map_file(self._underlying_symbol)
        self._factor_file = factor_file_provider.get(self._underlying_symbol)
        self._normalization = request.config.data_normalization_mode
        self._logger = bind(component="OptionChainSource", symbol=universe.symbol.value)

    def __iter__(self) -> OptionChainSource:
        return self

    def __next__(self) -> MarketRecord:
        item = next(self._underlying)
        records = item.data if isinstance(item, RecordCollection) else [item]
        underlying = next((record for record in reversed(records) if not record.is_auxiliary), None)
        day = item.end_time.date() if underlying is None else underlying.time.date()

        if underlying is not None:
            underlying = self._raw(underlying, day)
        ticker = self._map_file.mapped_symbol(day) or self._underlying_symbol.value
        lookup = self._underlying_symbol.model_copy(update={"value": ticker})
        contracts = _select(self.universe.chain_provider, self.universe.contract_filter, lookup, day)
        self._logger.debug(f"{len(contracts)} contracts listed on {lookup} for {day}")
        return RecordCollection(
            symbol=self.universe.symbol,
            time=item.time,
            period=item.period,
            data=[],
            underlying=underlying,
            symbols=contracts,
        )

    def _raw(self, record: MarketRecord, day: date) -> MarketRecord:
        if self._factor_file is None or self._normalization is DataNormalizationMode.RAW:
            return record
        factor = self._factor_file.price_scale_factor(day)
        if factor == 0:
            return record
        return record.scale(Decimal("1") / factor, Decimal("1"))


class FuturesChainSource(Iterator[MarketRecord]):
    """Emits the listed, unexpired contracts of a futures chain for each tradable day."""

    def __init__(self, universe: FuturesChainUniverse, tradable_days: Iterable[date]) -> None:
        self.universe = universe
        self._days = iter(tradable_days)

    def __iter__(self) -> FuturesChainSource:
        return self

    def __next__(self) -> MarketRecord:
        day = next(self._days)
        contracts = _select(self.universe.chain_provider, self.universe.contract_filter, self.universe.symbol, day)
        return RecordCollection(
            symbol=self.universe.symbol,
            time=datetime.combine(day, time.min),
            period=timedelta(days=1),
            symbols=contracts,
        )


__all__ = ["OptionChainSource", "FuturesChainSource"]
