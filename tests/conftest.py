"""Pytest configuration for the vfeed test suite."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime

import pytest

from vfeed.core.data.storage import DuckDBConnectionFactory, DuckDBDocumentStore, DuckDBFactoryConfig
from vfeed.core.feeds.results import LoggingAlgorithm, LoggingResultHandler
from vfeed.core.models.symbols import Symbol
from vfeed.core.services.calendars import SecurityExchangeHours, exchange_hours_for


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--vfeed-run-integration",
        action="store_true",
        default=False,
        help="Run vfeed integration tests that require external services.",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the integration marker for vfeed tests."""

    config.addinivalue_line(
        "markers",
        "integration: marks vfeed tests requiring network or external services",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--vfeed-run-integration"):
        return

    vfeed_skip_integration = pytest.mark.skip(
        reason="integration tests require --vfeed-run-integration",
    )
    for vfeed_item in items:
        if "integration" in vfeed_item.keywords:
            vfeed_item.add_marker(vfeed_skip_integration)


@pytest.fixture
def ny_hours() -> SecurityExchangeHours:
    return exchange_hours_for("usa")


@pytest.fixture
def spy() -> Symbol:
    return Symbol.create("SPY")


@pytest.fixture
def duckdb_conn() -> Iterator[object]:
    conn = DuckDBConnectionFactory(DuckDBFactoryConfig(database=":memory:")).create_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def document_store(duckdb_conn: object) -> DuckDBDocumentStore:
    return DuckDBDocumentStore(duckdb_conn)


@pytest.fixture
def result_handler() -> LoggingResultHandler:
    return LoggingResultHandler()


@pytest.fixture
def algorithm() -> LoggingAlgorithm:
    return LoggingAlgorithm()


@pytest.fixture
def daily_document() -> Callable[..., dict[str, object]]:
    """Build a daily bar document stamped at New York midnight (05:00 UTC in winter)."""

    def build(day: int, close: float, month: int = 1, year: int = 2020) -> dict[str, object]:
        return {
            "date": datetime(year, month, day, 5, 0, tzinfo=UTC),
            "open": close - 1,
            "high": close + 1,
            "low": close - 2,
            "close": close,
            "volume": 1000,
        }

    return build
