"""Remote document store clients queried by record cursors."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import duckdb
import httpx

from vfeed.core.data.schema import DOCUMENTS_TABLE
from vfeed.core.data.storage.duckdb_factory import DuckDBConnectionFactory
from vfeed.core.exceptions.base import ConfigurationError, DocumentStoreError
from vfeed.core.logging import bind

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from vfeed.core.config.settings import StoreConfig

Document = Mapping[str, Any]


@runtime_checkable
class DocumentStore(Protocol):
    """Closed date-range query over documents stored under a path."""

    name: str

    def query(self, path: str, start_utc: datetime, end_utc: datetime) -> Iterable[Document]:
        """Return documents with ``start_utc <= date <= end_utc`` in date order."""


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _aware_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _parse_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise ValueError(f"Unsupported document date value: {value!r}")


class DuckDBDocumentStore:
    """Document store backed by the DuckDB ``documents`` table."""

    name = "duckdb"

    def __init__(self, conn: DuckDBPyConnection) -> None:
        self._conn = conn
        self._logger = bind(component="DuckDBDocumentStore")
        DOCUMENTS_TABLE.ensure(conn)

    def insert(self, path: str, documents: Iterable[Document]) -> int:
        """Upsert documents under ``path``; naive dates are taken as UTC."""
        rows = [
            (
                path,
                _naive_utc(_parse_date(document["date"])),
                document.get("open"),
                document.get("high"),
                document.get("low"),
                document.get("close"),
                document.get("volume"),
            )
            for document in documents
        ]
        return DOCUMENTS_TABLE.upsert(self._conn, rows)

    def query(self, path: str, start_utc: datetime, end_utc: datetime) -> list[Document]:
        try:
            cursor = self._conn.execute(
                f"""
                SELECT date, open, high, low, close, volume
                FROM {DOCUMENTS_TABLE.name}
                WHERE path = ? AND date BETWEEN ? AND ?
                ORDER BY date
                """,
                [path, _naive_utc(start_utc), _naive_utc(end_utc)],
            )
            names = [column[0] for column in cursor.description]
            rows = cursor.fetchall()
        except duckdb.Error as exc:
            raise DocumentStoreError(f"DuckDB query failed for {path}: {exc}", self.name, path) from exc

        documents: list[Document] = []
        for row in rows:
            document = dict(zip(names, row, strict=True))
            document["date"] = document["date"].replace(tzinfo=UTC)
            documents.append(document)
        self._logger.debug(f"Fetched {len(documents)} documents from {path}")
        return documents


class HttpDocumentStore:
    """Document store served over HTTP: ``GET {base_url}/{path}?start=&end=``.

    The response body is either a JSON list of documents or an object with a
    ``documents`` list. Each document carries an ISO-8601 ``date``; dates
    without an offset are UTC, as in the ``documents`` table.
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        headers: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ConfigurationError("base_url cannot be empty", setting="store.base_url")
        self._client = httpx.Client(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            headers=dict(headers or {}),
            transport=transport,
        )
        self._logger = bind(component="HttpDocumentStore")

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpDocumentStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def query(self, path: str, start_utc: datetime, end_utc: datetime) -> list[Document]:
        params = {"start": start_utc.isoformat(), "end": end_utc.isoformat()}
        try:
            response = self._client.get(f"/{path.lstrip('/')}", params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise DocumentStoreError(f"HTTP query failed for {path}: {exc}", self.name, path) from exc
        except ValueError as exc:
            raise DocumentStoreError(f"Invalid JSON returned for {path}: {exc}", self.name, path) from exc

        raw_documents = payload.get("documents", []) if isinstance(payload, dict) else payload
        documents: list[Document] = []
        try:
            for raw in raw_documents:
                document = dict(raw)
                document["date"] = _aware_utc(_parse_date(document["date"]))
                documents.append(document)
        except (KeyError, TypeError, ValueError) as exc:
            raise DocumentStoreError(f"Malformed document returned for {path}: {exc}", self.name, path) from exc

        documents.sort(key=lambda document: document["date"])
        self._logger.debug(f"Fetched {len(documents)} documents from {path}")
        return documents


def create_document_store(config: StoreConfig) -> DocumentStore:
    """Build the store selected by ``config.backend``."""

    backend = config.backend.lower()
    if backend == "duckdb":
        factory = DuckDBConnectionFactory.for_store(config)
        return DuckDBDocumentStore(factory.create_connection())
    if backend == "http":
        if not config.base_url:
            raise ConfigurationError("store.base_url is required for the http backend", setting="store.base_url")
        return HttpDocumentStore(config.base_url, timeout=config.timeout)
    raise ConfigurationError(f"Unknown document store backend: {config.backend}", setting="store.backend")


__all__ = [
    "Document",
    "DocumentStore",
    "DuckDBDocumentStore",
    "HttpDocumentStore",
    "create_document_store",
]
