"""``vfeed ingest``: load a bar CSV into the DuckDB document store."""

from __future__ import annotations

import json
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import duckdb
import pandas as pd
import typer

from vfeed.core.data.providers.writer import CSV_COLUMNS, read_bar_frame
from vfeed.core.data.storage import DuckDBConnectionFactory, DuckDBDocumentStore
from vfeed.core.feeds.cursor import document_path
from vfeed.core.models import Symbol
from vfeed.core.services.calendars import exchange_hours_for

from .utils import SYSTEM_EXIT_CODE, VALIDATION_EXIT_CODE, emit_error, get_cli_options, load_config


def register(app: typer.Typer) -> None:
    """Register the ingest command on the provided application."""

    app.command("ingest")(ingest_command)


def ingest_command(
    ctx: typer.Context,
    symbol: str = typer.Argument(..., help="Ticker the documents belong to."),
    csv_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV with time,open,high,low,close,volume."),
    market: str = typer.Option("usa", "--market", help="Market of the instrument."),
    security_type: str = typer.Option("equity", "--security-type", help="Security type of the instrument."),
    time_zone: str | None = typer.Option(
        None, "--time-zone", help="Time zone of the CSV times (defaults to the exchange's)."
    ),
) -> None:
    """Upsert the bars in CSV_FILE as documents for SYMBOL."""

    options = get_cli_options(ctx)
    config = load_config(options)
    if config.store.backend.lower() != "duckdb":
        emit_error("ingest requires the duckdb store backend", "INVALID_BACKEND")
        raise typer.Exit(code=VALIDATION_EXIT_CODE)

    try:
        instrument = Symbol.create(symbol, security_type.lower(), market.lower())
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--market/--security-type") from exc
    try:
        zone = ZoneInfo(time_zone) if time_zone else exchange_hours_for(instrument.market.value).time_zone
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise typer.BadParameter(f"Unknown time zone '{time_zone}'", param_hint="--time-zone") from exc

    try:
        frame = read_bar_frame(csv_file)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as exc:
        emit_error(f"Unable to read '{csv_file}': {exc}", "INVALID_CSV")
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc
    missing = [column for column in CSV_COLUMNS if column not in frame.columns]
    if missing:
        emit_error(f"'{csv_file}' is missing columns", "INVALID_CSV", details={"missing": ", ".join(missing)})
        raise typer.Exit(code=VALIDATION_EXIT_CODE)

    documents = [
        {
            "date": row.time.to_pydatetime().replace(tzinfo=zone),
            "open": float(row.open),
            "high": float(row.high),
            "low": float(row.low),
            "close": float(row.close),
            "volume": float(row.volume),
        }
        for row in frame.itertuples(index=False)
    ]

    path = document_path(instrument, config.store.data_root)
    try:
        factory = DuckDBConnectionFactory.for_store(config.store)
        with factory.connection() as conn:
            inserted = DuckDBDocumentStore(conn).insert(path, documents)
    except duckdb.Error as exc:
        emit_error(f"Unable to write documents: {exc}", "STORE_UNAVAILABLE")
        raise typer.Exit(code=SYSTEM_EXIT_CODE) from exc
    typer.echo(json.dumps({"path": path, "inserted": inserted}))


__all__ = ["register", "ingest_command"]
