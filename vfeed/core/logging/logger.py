"""JSON-lines logging for feed components on top of loguru.

Every line carries the active run id plus the ``component`` and ``symbol``
bound by the emitting cursor, stage or source. Anything else bound or set
through :func:`run_context` lands under ``context``.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime
from pathlib import Path
from typing import IO, Any
from uuid import uuid4

from loguru import logger as _loguru_logger
from loguru._logger import Logger as _LoguruLogger  # type: ignore[attr-defined]

from vfeed.core.logging.config import LogConfig

_RUN_ID_VAR: ContextVar[str | None] = ContextVar("vfeed_run_id", default=None)
_CONTEXT_VAR: ContextVar[dict[str, Any]] = ContextVar("vfeed_log_context", default={})

# promoted to top-level payload keys
_TOP_LEVEL_KEYS = ("run_id", "component", "symbol")

logger: _LoguruLogger = _loguru_logger


def _patch_record(record: dict[str, Any]) -> None:
    extra = record["extra"]
    for key, value in _CONTEXT_VAR.get().items():
        if extra.get(key) is None:
            extra[key] = value
    if extra.get("run_id") is None:
        extra["run_id"] = _RUN_ID_VAR.get()
    for key in _TOP_LEVEL_KEYS:
        extra.setdefault(key, None)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def format_payload(record: dict[str, Any]) -> dict[str, Any]:
    """Build the JSON object written for one loguru record."""
    extra = record.get("extra", {})
    payload: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
    }
    for key in _TOP_LEVEL_KEYS:
        payload[key] = extra.get(key)
    context = {key: value for key, value in extra.items() if key not in _TOP_LEVEL_KEYS and value is not None}
    if context:
        payload["context"] = context
    if record.get("exception"):
        payload["exception"] = str(record["exception"])
    return payload


class _JsonLineSink:
    """Writes one JSON object per record to a text stream."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream

    def __call__(self, message: Any) -> None:
        self._stream.write(json.dumps(format_payload(message.record), default=_json_default))
        self._stream.write("\n")
        self._stream.flush()


class _JsonFileSink:
    """Appends JSON lines to ``path``, creating parent directories."""

    def __init__(self, path: str) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def __call__(self, message: Any) -> None:
        with self._path.open("a", encoding="utf-8") as file:
            file.write(json.dumps(format_payload(message.record), default=_json_default))
            file.write("\n")


def configure_logging(level: str = "INFO", **kwargs: Any) -> LogConfig:
    """Replace all sinks according to a :class:`LogConfig` built from the arguments.

    Raises ``pydantic.ValidationError`` for an unknown level.
    """
    config = LogConfig(level=level, **kwargs)
    handlers: list[dict[str, Any]] = [
        {"sink": _JsonLineSink(config.console_stream or sys.stderr), "level": config.level},
    ]
    if config.file_path:
        handlers.append({"sink": _JsonFileSink(config.file_path), "level": config.level})
    logger.configure(handlers=handlers, patcher=_patch_record)
    return config


def bind(**kwargs: Any) -> _LoguruLogger:
    """Return the global logger with ``kwargs`` bound, e.g. ``bind(component="RecordCursor")``."""
    return logger.bind(**kwargs)


@contextmanager
def run_context(*, run_id: str | None = None, **extra: Any) -> Iterator[str]:
    """Tag every line logged inside the block with a run id and ``extra``."""
    context_token = _CONTEXT_VAR.set({**_CONTEXT_VAR.get(), **extra})
    active = run_id or uuid4().hex
    run_token = _RUN_ID_VAR.set(active)
    try:
        yield active
    finally:
        _RUN_ID_VAR.reset(run_token)
        _CONTEXT_VAR.reset(context_token)


def current_run_id() -> str | None:
    return _RUN_ID_VAR.get()


configure_logging()


__all__ = [
    "bind",
    "configure_logging",
    "current_run_id",
    "format_payload",
    "logger",
    "run_context",
]
