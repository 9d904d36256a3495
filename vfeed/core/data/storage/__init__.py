"""Document store backends."""

from vfeed.core.data.storage.documents import (
    Document,
    DocumentStore,
    DuckDBDocumentStore,
    HttpDocumentStore,
    create_document_store,
)
from vfeed.core.data.storage.duckdb_factory import DuckDBConnectionFactory, DuckDBFactoryConfig

__all__ = [
    "Document",
    "DocumentStore",
    "DuckDBDocumentStore",
    "HttpDocumentStore",
    "create_document_store",
    "DuckDBConnectionFactory",
    "DuckDBFactoryConfig",
]
