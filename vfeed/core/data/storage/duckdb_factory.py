"""DuckDB connections for the document store and the map/factor file tables."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

from vfeed.core.data.schema import ensure_tables
from vfeed.core.logging import bind

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from duckdb import DuckDBPyConnection

    from vfeed.core.config.settings import StoreConfig

MEMORY_DATABASE = ":memory:"


@dataclass(frozen=True)
class DuckDBFactoryConfig:
    """Settings applied to every connection the factory opens.

    ``create_tables`` makes sure the ``documents``, ``map_files`` and
    ``factor_files`` tables exist; it is ignored for read-only connections.
    """

    database: str | Path = MEMORY_DATABASE
    read_only: bool = False
    create_tables: bool = True
    settings: Mapping[str, object] = field(default_factory=lambda: {"threads": 1})

    @property
    def in_memory(self) -> bool:
        return str(self.database) in ("", MEMORY_DATABASE)

    @classmethod
    def from_store(cls, store: StoreConfig, *, read_only: bool = False) -> DuckDBFactoryConfig:
        return cls(database=store.database or MEMORY_DATABASE, read_only=read_only)


class DuckDBConnectionFactory:
    """Opens configured DuckDB connections."""

    def __init__(self, config: DuckDBFactoryConfig | None = None) -> None:
        self._config = config or DuckDBFactoryConfig()
        self._logger = bind(component="DuckDBConnectionFactory")

    @classmethod
    def for_store(cls, store: StoreConfig) -> DuckDBConnectionFactory:
        return cls(DuckDBFactoryConfig.from_store(store))

    @property
    def config(self) -> DuckDBFactoryConfig:
        return self._config

    def create_connection(self) -> DuckDBPyConnection:
        config = self._config
        if config.in_memory:
            database = MEMORY_DATABASE
        else:
            path = Path(config.database).expanduser()
            if not config.read_only:
                path.parent.mkdir(parents=True, exist_ok=True)
            database = str(path)

        conn = duckdb.connect(database=database, read_only=config.read_only)
        for setting, value in config.settings.items():
            conn.execute(f"SET {setting}={value}")
        if config.create_tables and not config.read_only:
            ensure_tables(conn)
        self._logger.debug(f"Opened DuckDB database {database}")
        return conn

    @contextmanager
    def connection(self) -> Iterator[DuckDBPyConnection]:
        """Yield a connection that is closed when the block exits."""

        conn = self.create_connection()
        try:
            yield conn
        finally:
            conn.close()


__all__ = ["DuckDBConnectionFactory", "DuckDBFactoryConfig", "MEMORY_DATABASE"]
