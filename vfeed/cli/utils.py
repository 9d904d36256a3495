"""Utility helpers shared across CLI commands."""

from __future__ import annotations

import json
import sys
from contextlib import ExitStack
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Mapping, TextIO
from zoneinfo import ZoneInfo

import typer
from pydantic import ValidationError

from vfeed.core.config.settings import ConfigManager, VFeedConfig
from vfeed.core.exceptions.base import ConfigurationError
from vfeed.core.logging import configure_logging
from vfeed.core.models.records import MarketRecord, RecordCollection

VALIDATION_EXIT_CODE = 2
FEED_EXIT_CODE = 3
SYSTEM_EXIT_CODE = 1


@dataclass(slots=True)
class CLIOptions:
    """Resolved options derived from the Typer context."""

    config_path: Path | None = None
    output_path: Path | None = None
    database: str | None = None
    log_level: str | None = None


def get_cli_options(ctx: typer.Context) -> CLIOptions:
    """Extract :class:`CLIOptions` from the Typer context object."""

    ctx.ensure_object(dict)
    data = ctx.obj or {}
    return CLIOptions(
        config_path=data.get("config_path"),
        output_path=data.get("output_path"),
        database=data.get("database"),
        log_level=data.get("log_level"),
    )


def load_config(options: CLIOptions) -> VFeedConfig:
    """Load configuration, apply the ``--database`` override and set up logging.

    ``--log-level`` wins over ``logging.level``; ``logging.file`` adds a JSON
    lines file next to the stderr output.
    """

    try:
        manager = ConfigManager(options.config_path)
    except ConfigurationError as exc:
        emit_error(exc.message, exc.error_code)
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc
    if options.database:
        manager.update_config(store={"backend": "duckdb", "database": options.database})
    config = manager.get_config()
    try:
        configure_logging(level=options.log_level or config.logging.level, file_path=config.logging.file)
    except ValidationError as exc:
        emit_error(f"Invalid logging configuration: {exc.errors()[0]['msg']}", "CONFIGURATION_ERROR")
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc
    return config


def prepare_output(options: CLIOptions) -> tuple[TextIO, ExitStack]:
    """Resolve the writable stream for the current command."""

    stack = ExitStack()
    if options.output_path is None:
        return sys.stdout, stack
    try:
        stream = stack.enter_context(open(options.output_path, "w", encoding="utf-8"))
    except OSError as exc:
        stack.close()
        emit_error(f"Unable to open '{options.output_path}': {exc}", "OUTPUT_WRITE_ERROR")
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc
    return stream, stack


def parse_local_date(value: str, time_zone: ZoneInfo, param_hint: str) -> datetime:
    """Parse ``YYYY-MM-DD`` as midnight in ``time_zone`` and return it in UTC."""

    try:
        day = datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid date '{value}', expected YYYY-MM-DD", param_hint=param_hint) from exc
    return day.replace(tzinfo=time_zone).astimezone(UTC)


def record_to_row(record: MarketRecord) -> dict[str, Any]:
    """Flatten a record into a JSON-serializable mapping."""

    row: dict[str, Any] = {"type": type(record).__name__, "symbol": str(record.symbol)}
    row.update(record.model_dump(mode="json", exclude={"symbol", "period", "data", "underlying", "symbols"}))
    if isinstance(record, RecordCollection):
        row["data"] = [record_to_row(item) for item in record.data]
        row["symbols"] = [str(symbol) for symbol in record.symbols]
        if record.underlying is not None:
            row["underlying"] = record_to_row(record.underlying)
    return row


def emit_error(message: str, code: str, *, details: Mapping[str, object] | None = None) -> None:
    """Print a structured error payload to stderr."""

    payload: dict[str, object] = {"code": code, "message": message}
    if details:
        payload["details"] = {key: str(value) for key, value in details.items()}
    typer.echo(json.dumps(payload, ensure_ascii=False, default=str), err=True)


__all__ = [
    "CLIOptions",
    "get_cli_options",
    "load_config",
    "prepare_output",
    "parse_local_date",
    "record_to_row",
    "emit_error",
    "VALIDATION_EXIT_CODE",
    "FEED_EXIT_CODE",
    "SYSTEM_EXIT_CODE",
]
