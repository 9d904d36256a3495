"""``vfeed stream``: run one subscription and print its records as JSON lines."""

from __future__ import annotations

import json

import duckdb
import typer

from vfeed.core.data.providers import build_data_provider
from vfeed.core.exceptions.base import VFeedError
from vfeed.core.feeds import (
    LoggingAlgorithm,
    LoggingResultHandler,
    RealTimeProvider,
    SubscriptionCoordinator,
    SubscriptionRegistry,
)
from vfeed.core.logging import run_context
from vfeed.core.models import Resolution, Security, SubscriptionDataConfig, SubscriptionRequest, Symbol
from vfeed.core.services.calendars import exchange_hours_for

from .backends import open_backends
from .utils import (
    FEED_EXIT_CODE,
    SYSTEM_EXIT_CODE,
    emit_error,
    get_cli_options,
    load_config,
    parse_local_date,
    prepare_output,
    record_to_row,
)


def register(app: typer.Typer) -> None:
    """Register the stream command on the provided application."""

    app.command("stream")(stream_command)


def stream_command(
    ctx: typer.Context,
    symbol: str = typer.Argument(..., help="Ticker to stream."),
    start: str = typer.Option(..., "--start", help="Start date (YYYY-MM-DD, exchange time)."),
    end: str = typer.Option(..., "--end", help="End date (YYYY-MM-DD, exchange time)."),
    market: str = typer.Option("usa", "--market", help="Market of the instrument."),
    security_type: str = typer.Option("equity", "--security-type", help="Security type of the instrument."),
    resolution: str = typer.Option("daily", "--resolution", help="Data resolution."),
    record_type: str = typer.Option("TradeBar", "--record-type", help="Record type name."),
    fill_forward: bool = typer.Option(False, "--fill-forward", help="Fill gaps with the last record."),
    extended_hours: bool = typer.Option(False, "--extended-hours", help="Include extended market hours."),
    no_auxiliary: bool = typer.Option(False, "--no-auxiliary", help="Omit corporate events."),
) -> None:
    """Stream records for SYMBOL between --start and --end."""

    options = get_cli_options(ctx)
    config = load_config(options)

    try:
        instrument = Symbol.create(symbol, security_type.lower(), market.lower())
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--market/--security-type") from exc
    try:
        data_resolution = Resolution(resolution.lower())
    except ValueError as exc:
        raise typer.BadParameter(f"Unknown resolution '{resolution}'", param_hint="--resolution") from exc

    hours = exchange_hours_for(instrument.market.value)
    start_utc = parse_local_date(start, hours.time_zone, "--start")
    end_utc = parse_local_date(end, hours.time_zone, "--end")
    if end_utc < start_utc:
        raise typer.BadParameter("--end must not be before --start", param_hint="--end")

    request = SubscriptionRequest(
        security=Security(instrument, hours, extended_hours),
        config=SubscriptionDataConfig(
            symbol=instrument,
            record_type=record_type,
            resolution=data_resolution,
            data_time_zone=hours.time_zone,
            exchange_time_zone=hours.time_zone,
            fill_forward=fill_forward,
            extended_market_hours=extended_hours,
        ),
        start_time_utc=start_utc,
        end_time_utc=end_utc,
    )

    algorithm = LoggingAlgorithm()
    result_handler = LoggingResultHandler()
    stream, stack = prepare_output(options)
    with stack:
        try:
            with run_context(symbol=instrument.value), open_backends(config.store) as backends:
                document_store, map_files, factor_files = backends
                coordinator = SubscriptionCoordinator(
                    document_store=document_store,
                    data_folder=config.data.data_folder,
                    data_root=config.store.data_root,
                    include_auxiliary_data=config.feed.include_auxiliary_data and not no_auxiliary,
                )
                coordinator.start(
                    algorithm,
                    result_handler,
                    map_files,
                    factor_files,
                    build_data_provider(config.data),
                    SubscriptionRegistry(),
                    RealTimeProvider(),
                )
                try:
                    subscription = coordinator.create_subscription(request)
                    if subscription is not None:
                        for record in subscription:
                            stream.write(json.dumps(record_to_row(record), ensure_ascii=False))
                            stream.write("\n")
                finally:
                    coordinator.stop()
        except VFeedError as exc:
            emit_error(exc.message, exc.error_code, details=exc.details)
            raise typer.Exit(code=SYSTEM_EXIT_CODE) from exc
        except duckdb.Error as exc:
            emit_error(f"Unable to open document store: {exc}", "STORE_UNAVAILABLE")
            raise typer.Exit(code=SYSTEM_EXIT_CODE) from exc

    messages = [*algorithm.errors, *result_handler.errors, *result_handler.runtime_errors]
    for message in messages:
        emit_error(message, "FEED_ERROR", details={"symbol": instrument.value})
    if messages:
        raise typer.Exit(code=FEED_EXIT_CODE)


__all__ = ["register", "stream_command"]
