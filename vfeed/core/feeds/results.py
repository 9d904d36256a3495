"""Sinks for user-facing feed messages."""

from __future__ import annotations

from typing import Protocol

from vfeed.core.logging import bind


class ResultHandler(Protocol):
    def error_message(self, message: str, stack_trace: str = "") -> None: ...

    def debug_message(self, message: str) -> None: ...

    def runtime_error(self, message: str, stack_trace: str = "") -> None: ...


class Algorithm(Protocol):
    """The subset of the host algorithm the feed reports to."""

    def error(self, message: str) -> None: ...


class LoggingResultHandler:
    """Logs every message and keeps it for later inspection."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.debug_messages: list[str] = []
        self.runtime_errors: list[str] = []
        self._logger = bind(component="ResultHandler")

    def error_message(self, message: str, stack_trace: str = "") -> None:
        self.errors.append(message)
        self._logger.bind(stack_trace=stack_trace or None).error(message)

    def debug_message(self, message: str) -> None:
        self.debug_messages.append(message)
        self._logger.debug(message)

    def runtime_error(self, message: str, stack_trace: str = "") -> None:
        self.runtime_errors.append(message)
        self._logger.bind(stack_trace=stack_trace or None).error(message)


class LoggingAlgorithm:
    """Minimal algorithm that records errors reported by the coordinator."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self._logger = bind(component="Algorithm")

    def error(self, message: str) -> None:
        self.errors.append(message)
        self._logger.error(message)


__all__ = ["ResultHandler", "Algorithm", "LoggingResultHandler", "LoggingAlgorithm"]
