from __future__ import annotations

import json
from collections.abc import Iterator
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest
from typer.testing import CliRunner

from vfeed.cli.main import create_app
from vfeed.cli.utils import record_to_row
from vfeed.core.logging import configure_logging
from vfeed.core.models.records import RecordCollection, TradeBar
from vfeed.core.models.symbols import Symbol

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    yield
    configure_logging()


@pytest.fixture
def database(tmp_path: Path) -> Path:
    """A DuckDB file holding ABX daily bars for the first week of 2020."""
    path = tmp_path / "feed.duckdb"
    csv_file = tmp_path / "abx.csv"
    csv_file.write_text(
        "time,open,high,low,close,volume\n"
        "2020-01-02,9,11,8,10,1000\n"
        "2020-01-03,10,12,9,11,1200\n"
        "2020-01-06,11,13,10,12,900\n"
    )
    result = runner.invoke(
        create_app(),
        ["--config", str(tmp_path / "absent.toml"), "--database", str(path), "ingest", "ABX", str(csv_file)],
    )
    assert result.exit_code == 0, result.output
    return path


def invoke_stream(tmp_path: Path, database: Path, *args: str):
    output = tmp_path / "records.jsonl"
    result = runner.invoke(
        create_app(),
        [
            "--config",
            str(tmp_path / "absent.toml"),
            "--database",
            str(database),
            "--output",
            str(output),
            "stream",
            *args,
        ],
    )
    rows = [json.loads(line) for line in output.read_text().splitlines()] if output.exists() else []
    return result, rows


def test_streams_ingested_bars(tmp_path: Path, database: Path) -> None:
    result, rows = invoke_stream(tmp_path, database, "ABX", "--start", "2020-01-01", "--end", "2020-01-10")

    assert result.exit_code == 0, result.output
    assert [row["time"] for row in rows] == ["2020-01-02T00:00:00", "2020-01-03T00:00:00", "2020-01-06T00:00:00"]
    assert {row["type"] for row in rows} == {"TradeBar"}
    assert {row["symbol"] for row in rows} == {"ABX"}
    assert [Decimal(row["close"]) for row in rows] == [10, 11, 12]


def test_fill_forward_flag(tmp_path: Path, database: Path) -> None:
    result, rows = invoke_stream(
        tmp_path, database, "ABX", "--start", "2020-01-01", "--end", "2020-01-08", "--fill-forward"
    )

    assert result.exit_code == 0, result.output
    assert [(row["time"][:10], row["is_fill_forward"]) for row in rows] == [
        ("2020-01-02", False),
        ("2020-01-03", False),
        ("2020-01-06", False),
        ("2020-01-07", True),
    ]


def test_no_tradable_dates_is_a_feed_error(tmp_path: Path, database: Path) -> None:
    result, rows = invoke_stream(tmp_path, database, "ABX", "--start", "2020-01-04", "--end", "2020-01-05")

    assert result.exit_code == 3
    assert rows == []
    assert "no tradeable dates" in result.output


def test_unknown_record_type_is_a_feed_error(tmp_path: Path, database: Path) -> None:
    result, rows = invoke_stream(
        tmp_path, database, "ABX", "--start", "2020-01-01", "--end", "2020-01-10", "--record-type", "Bogus"
    )

    assert result.exit_code == 3
    assert rows == []
    assert "FEED_ERROR" in result.output


def test_end_before_start_is_rejected(tmp_path: Path, database: Path) -> None:
    result, _ = invoke_stream(tmp_path, database, "ABX", "--start", "2020-01-10", "--end", "2020-01-01")

    assert result.exit_code == 2


def test_bad_date_is_rejected(tmp_path: Path, database: Path) -> None:
    result, _ = invoke_stream(tmp_path, database, "ABX", "--start", "01/02/2020", "--end", "2020-01-10")

    assert result.exit_code == 2


def test_unknown_log_level_is_rejected(tmp_path: Path) -> None:
    result = runner.invoke(create_app(), ["--log-level", "LOUD", "stream", "ABX", "--start", "2020-01-01", "--end", "2020-01-02"])

    assert result.exit_code == 2


def test_record_to_row_flattens_collections() -> None:
    bar = TradeBar(
        symbol=Symbol.create("SPY"),
        time=datetime(2020, 1, 2),
        period=timedelta(days=1),
        close=Decimal("10.5"),
        value=Decimal("10.5"),
    )
    collection = RecordCollection(
        symbol=Symbol.create("?SPY", "option"),
        time=bar.time,
        period=bar.period,
        data=[bar],
        underlying=bar,
        symbols=(bar.symbol,),
    )

    row = record_to_row(collection)

    assert row["type"] == "RecordCollection"
    assert row["symbol"] == "?SPY"
    assert row["symbols"] == ["SPY"]
    assert row["data"][0]["close"] == "10.5"
    assert row["underlying"]["type"] == "TradeBar"
