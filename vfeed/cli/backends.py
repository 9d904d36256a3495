"""Opens the document store and auxiliary data providers named by the configuration."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from vfeed.core.data.auxiliary import (
    DuckDBFactorFileProvider,
    DuckDBMapFileProvider,
    StaticFactorFileProvider,
    StaticMapFileProvider,
)
from vfeed.core.data.storage import (
    DuckDBConnectionFactory,
    DuckDBDocumentStore,
    create_document_store,
)

if TYPE_CHECKING:
    from vfeed.core.config.settings import StoreConfig
    from vfeed.core.data.auxiliary import FactorFileProvider, MapFileProvider
    from vfeed.core.data.storage import DocumentStore


@contextmanager
def open_backends(config: StoreConfig) -> Iterator[tuple[DocumentStore, MapFileProvider, FactorFileProvider]]:
    """Yield ``(document_store, map_file_provider, factor_file_provider)``.

    The DuckDB backend serves map and factor files from the same database;
    other backends run without corporate action data.
    """

    if config.backend.lower() == "duckdb":
        factory = DuckDBConnectionFactory.for_store(config)
        with factory.connection() as conn:
            yield DuckDBDocumentStore(conn), DuckDBMapFileProvider(conn), DuckDBFactorFileProvider(conn)
        return

    store = create_document_store(config)
    try:
        yield store, StaticMapFileProvider(), StaticFactorFileProvider()
    finally:
        close = getattr(store, "close", None)
        if close is not None:
            close()


__all__ = ["open_backends"]
