"""Main entry point for the vfeed command line interface."""

from __future__ import annotations

from pathlib import Path

import typer

from vfeed.core.logging import LOG_LEVELS

from .ingest import register as register_ingest_commands
from .stream import register as register_stream_commands


def create_app() -> typer.Typer:
    """Create a Typer application instance for vfeed."""

    app = typer.Typer(add_completion=False, help="vfeed command line interface")

    @app.callback()
    def main(
        ctx: typer.Context,
        config: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="TOML configuration file (defaults to ~/.vfeed/config.toml).",
        ),
        output: Path | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write output to a file instead of stdout.",
        ),
        database: str | None = typer.Option(
            None,
            "--database",
            help="DuckDB database to use as the document store.",
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            help="Logging level for messages written to stderr (overrides logging.level).",
        ),
    ) -> None:
        if log_level is not None and log_level.strip().upper() not in LOG_LEVELS:
            raise typer.BadParameter(
                f"Unknown level '{log_level}', expected one of {', '.join(LOG_LEVELS)}",
                param_hint="--log-level",
            )
        ctx.ensure_object(dict)
        ctx.obj.update(
            {
                "config_path": config,
                "output_path": output,
                "database": database,
                "log_level": log_level,
            }
        )

    register_stream_commands(app)
    register_ingest_commands(app)
    return app


app = create_app()
