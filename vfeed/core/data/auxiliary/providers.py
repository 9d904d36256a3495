"""Map file and factor file providers.

Both provider kinds degrade to empty defaults: a missing or unreadable map
file resolves to :meth:`MapFile.empty`, a missing factor file to ``None``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol

import duckdb

from vfeed.core.data.schema import FACTOR_FILES_TABLE, MAP_FILES_TABLE
from vfeed.core.logging import bind
from vfeed.core.models.corporate_actions import FactorFile, FactorFileRow, MapFile, MapFileRow
from vfeed.core.models.market import MarketType
from vfeed.core.models.records import MarketRecord
from vfeed.core.models.symbols import Symbol

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


class MapFileResolver:
    """Resolves ticker histories for one market."""

    def __init__(self, market: MarketType | str | None, map_files: Iterable[MapFile] = ()) -> None:
        self.market = MarketType(market) if market is not None else None
        self._by_permtick: dict[str, MapFile] = {}
        self._by_ticker: dict[str, MapFile] = {}
        for map_file in map_files:
            self._by_permtick[map_file.permtick] = map_file
            for row in map_file.rows:
                self._by_ticker.setdefault(row.mapped_symbol.upper(), map_file)

    @classmethod
    def empty(cls) -> MapFileResolver:
        return cls(None)

    def __len__(self) -> int:
        return len(self._by_permtick)

    def resolve_map_file(self, symbol: Symbol | str, record_type: type[MarketRecord] | None = None) -> MapFile:
        """Return the map file for ``symbol`` or the empty sentinel."""
        ticker = (symbol.value if isinstance(symbol, Symbol) else symbol).upper()
        map_file = self._by_permtick.get(ticker) or self._by_ticker.get(ticker)
        if map_file is None:
            return MapFile.empty(ticker)
        return map_file


class MapFileProvider(Protocol):
    def get(self, market: MarketType | str) -> MapFileResolver: ...


class FactorFileProvider(Protocol):
    def get(self, symbol: Symbol) -> FactorFile | None: ...


class StaticMapFileProvider:
    """Serves map files held in memory, keyed by market."""

    def __init__(self, map_files: Mapping[MarketType | str, Iterable[MapFile]] | None = None) -> None:
        self._resolvers = {
            MarketType(market): MapFileResolver(market, files) for market, files in (map_files or {}).items()
        }

    def get(self, market: MarketType | str) -> MapFileResolver:
        return self._resolvers.get(MarketType(market)) or MapFileResolver(market)


class StaticFactorFileProvider:
    """Serves factor files held in memory, keyed by permtick."""

    def __init__(self, factor_files: Iterable[FactorFile] = ()) -> None:
        self._files = {factor_file.permtick: factor_file for factor_file in factor_files}

    def get(self, symbol: Symbol) -> FactorFile | None:
        return self._files.get(symbol.value.upper())


class DuckDBMapFileProvider:
    """Reads map files from the ``map_files`` table."""

    def __init__(self, conn: DuckDBPyConnection) -> None:
        self._conn = conn
        self._logger = bind(component="DuckDBMapFileProvider")
        self._cache: dict[MarketType, MapFileResolver] = {}
        MAP_FILES_TABLE.ensure(conn)

    def store(self, market: MarketType | str, map_file: MapFile) -> None:
        market_value = MarketType(market).value
        MAP_FILES_TABLE.upsert(
            self._conn,
            ((market_value, map_file.permtick, row.date, row.mapped_symbol) for row in map_file.rows),
        )
        self._cache.pop(MarketType(market), None)

    def get(self, market: MarketType | str) -> MapFileResolver:
        market_type = MarketType(market)
        cached = self._cache.get(market_type)
        if cached is not None:
            return cached

        try:
            rows = self._conn.execute(
                f"SELECT permtick, date, mapped_symbol FROM {MAP_FILES_TABLE.name} WHERE market = ? ORDER BY permtick, date",
                [market_type.value],
            ).fetchall()
        except duckdb.Error as exc:
            self._logger.error(f"Failed to load map files for {market_type.value}: {exc}")
            return MapFileResolver(market_type)

        grouped: dict[str, list[MapFileRow]] = defaultdict(list)
        for permtick, row_date, mapped_symbol in rows:
            grouped[permtick].append(MapFileRow(date=row_date, mapped_symbol=mapped_symbol))
        resolver = MapFileResolver(
            market_type,
            (MapFile.from_rows(permtick, map_rows) for permtick, map_rows in grouped.items()),
        )
        self._cache[market_type] = resolver
        return resolver


class DuckDBFactorFileProvider:
    """Reads factor files from the ``factor_files`` table."""

    def __init__(self, conn: DuckDBPyConnection) -> None:
        self._conn = conn
        self._logger = bind(component="DuckDBFactorFileProvider")
        FACTOR_FILES_TABLE.ensure(conn)

    def store(self, market: MarketType | str, factor_file: FactorFile) -> None:
        market_value = MarketType(market).value
        FACTOR_FILES_TABLE.upsert(
            self._conn,
            (
                (
                    market_value,
                    factor_file.permtick,
                    row.date,
                    float(row.price_factor),
                    float(row.split_factor),
                    float(row.reference_price),
                    factor_file.minimum_date,
                )
                for row in factor_file.rows
            ),
        )

    def get(self, symbol: Symbol) -> FactorFile | None:
        try:
            rows = self._conn.execute(
                f"""
                SELECT date, price_factor, split_factor, reference_price, minimum_date
                FROM {FACTOR_FILES_TABLE.name}
                WHERE market = ? AND permtick = ?
                ORDER BY date
                """,
                [symbol.market.value, symbol.value.upper()],
            ).fetchall()
        except duckdb.Error as exc:
            self._logger.error(f"Failed to load factor file for {symbol}: {exc}")
            return None

        if not rows:
            return None
        minimum_date = next((row[4] for row in rows if row[4] is not None), None)
        return FactorFile.from_rows(
            symbol.value,
            [
                FactorFileRow(
                    date=row_date,
                    price_factor=Decimal(str(price_factor)),
                    split_factor=Decimal(str(split_factor)),
                    reference_price=Decimal(str(reference_price or 0)),
                )
                for row_date, price_factor, split_factor, reference_price, _ in rows
            ],
            minimum_date=minimum_date,
        )


__all__ = [
    "MapFileResolver",
    "MapFileProvider",
    "FactorFileProvider",
    "StaticMapFileProvider",
    "StaticFactorFileProvider",
    "DuckDBMapFileProvider",
    "DuckDBFactorFileProvider",
]
