from __future__ import annotations

import json
from datetime import UTC, datetime

import httpx
import pytest

from vfeed.core.config.settings import StoreConfig
from vfeed.core.data.storage import (
    DuckDBConnectionFactory,
    DuckDBDocumentStore,
    DuckDBFactoryConfig,
    HttpDocumentStore,
    create_document_store,
)
from vfeed.core.data.storage.duckdb_factory import MEMORY_DATABASE
from vfeed.core.exceptions import ConfigurationError, DocumentStoreError


class TestDuckDBDocumentStore:
    def test_query_is_closed_range_in_date_order(self, document_store: DuckDBDocumentStore) -> None:
        document_store.insert(
            "data/equity/usa/spy",
            [
                {"date": datetime(2020, 1, 3, 5, tzinfo=UTC), "close": 2.0},
                {"date": datetime(2020, 1, 2, 5, tzinfo=UTC), "close": 1.0},
                {"date": datetime(2020, 1, 6, 5, tzinfo=UTC), "close": 3.0},
            ],
        )

        documents = document_store.query(
            "data/equity/usa/spy",
            datetime(2020, 1, 2, 5, tzinfo=UTC),
            datetime(2020, 1, 3, 5, tzinfo=UTC),
        )

        assert [document["close"] for document in documents] == [1.0, 2.0]
        assert documents[0]["date"] == datetime(2020, 1, 2, 5, tzinfo=UTC)

    def test_insert_upserts_by_path_and_date(self, document_store: DuckDBDocumentStore) -> None:
        moment = datetime(2020, 1, 2, 5, tzinfo=UTC)
        document_store.insert("p", [{"date": moment, "close": 1.0}])
        document_store.insert("p", [{"date": moment, "close": 5.0}])

        documents = document_store.query("p", moment, moment)
        assert [document["close"] for document in documents] == [5.0]

    def test_other_paths_are_not_returned(self, document_store: DuckDBDocumentStore) -> None:
        moment = datetime(2020, 1, 2, 5, tzinfo=UTC)
        document_store.insert("a", [{"date": moment, "close": 1.0}])

        assert document_store.query("b", moment, moment) == []

    def test_closed_connection_raises_store_error(self, duckdb_conn) -> None:
        store = DuckDBDocumentStore(duckdb_conn)
        duckdb_conn.close()

        with pytest.raises(DocumentStoreError) as exc_info:
            store.query("p", datetime(2020, 1, 1, tzinfo=UTC), datetime(2020, 1, 2, tzinfo=UTC))
        assert exc_info.value.store_name == "duckdb"


class TestHttpDocumentStore:
    def test_query_sends_range_and_parses_documents(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            body = {
                "documents": [
                    {"date": "2020-01-03T05:00:00+00:00", "close": 2.0},
                    {"date": "2020-01-02T05:00:00+00:00", "close": 1.0},
                ]
            }
            return httpx.Response(200, content=json.dumps(body))

        store = HttpDocumentStore("https://store.test", transport=httpx.MockTransport(handler))
        documents = store.query(
            "data/equity/usa/spy",
            datetime(2020, 1, 1, tzinfo=UTC),
            datetime(2020, 1, 10, tzinfo=UTC),
        )
        store.close()

        assert seen[0].url.path == "/data/equity/usa/spy"
        assert seen[0].url.params["start"] == "2020-01-01T00:00:00+00:00"
        assert [document["close"] for document in documents] == [1.0, 2.0]
        assert documents[0]["date"] == datetime(2020, 1, 2, 5, tzinfo=UTC)

    def test_dates_without_offset_are_utc(self) -> None:
        body = [
            {"date": "2020-01-02T05:00:00", "close": 2.0},
            {"date": "2020-01-02T04:30:00+00:00", "close": 1.0},
            {"date": "2020-01-02T01:00:00-05:00", "close": 3.0},
        ]
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))

        with HttpDocumentStore("https://store.test", transport=transport) as store:
            documents = store.query("p", datetime(2020, 1, 1, tzinfo=UTC), datetime(2020, 1, 3, tzinfo=UTC))

        assert [document["close"] for document in documents] == [1.0, 2.0, 3.0]
        assert [document["date"] for document in documents] == [
            datetime(2020, 1, 2, 4, 30, tzinfo=UTC),
            datetime(2020, 1, 2, 5, tzinfo=UTC),
            datetime(2020, 1, 2, 6, tzinfo=UTC),
        ]
        assert all(document["date"].tzinfo is UTC for document in documents)

    def test_http_error_becomes_store_error(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))

        with HttpDocumentStore("https://store.test", transport=transport) as store:
            with pytest.raises(DocumentStoreError):
                store.query("p", datetime(2020, 1, 1, tzinfo=UTC), datetime(2020, 1, 2, tzinfo=UTC))

    def test_malformed_document_becomes_store_error(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[{"close": 1.0}]))

        with HttpDocumentStore("https://store.test", transport=transport) as store:
            with pytest.raises(DocumentStoreError):
                store.query("p", datetime(2020, 1, 1, tzinfo=UTC), datetime(2020, 1, 2, tzinfo=UTC))

    def test_empty_base_url_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            HttpDocumentStore("")


def test_create_document_store_selects_backend() -> None:
    assert isinstance(create_document_store(StoreConfig(backend="duckdb")), DuckDBDocumentStore)
    http_store = create_document_store(StoreConfig(backend="http", base_url="https://store.test"))
    assert isinstance(http_store, HttpDocumentStore)
    http_store.close()

    with pytest.raises(ConfigurationError):
        create_document_store(StoreConfig(backend="http"))
    with pytest.raises(ConfigurationError):
        create_document_store(StoreConfig(backend="firestore"))


class TestDuckDBConnectionFactory:
    def test_file_database_creates_folder_and_tables(self, tmp_path) -> None:
        database = tmp_path / "stores" / "feed.duckdb"
        factory = DuckDBConnectionFactory.for_store(StoreConfig(database=str(database)))

        with factory.connection() as conn:
            tables = {row[0] for row in conn.execute("SELECT table_name FROM information_schema.tables").fetchall()}

        assert database.exists()
        assert {"documents", "map_files", "factor_files"} <= tables

    def test_empty_database_means_memory(self) -> None:
        config = DuckDBFactoryConfig.from_store(StoreConfig(database=""))

        assert config.in_memory
        assert config.database == MEMORY_DATABASE

    def test_read_only_skips_table_creation(self, tmp_path) -> None:
        database = tmp_path / "feed.duckdb"
        with DuckDBConnectionFactory(DuckDBFactoryConfig(database=database, create_tables=False)).connection():
            pass

        factory = DuckDBConnectionFactory(DuckDBFactoryConfig(database=database, read_only=True))
        with factory.connection() as conn:
            (count,) = conn.execute("SELECT count(*) FROM information_schema.tables").fetchone()

        assert count == 0
