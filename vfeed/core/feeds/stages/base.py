"""Common plumbing for lazy record transform stages."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from vfeed.core.models.records import MarketRecord


class Stage(Iterator[MarketRecord]):
    """Wraps a record iterator; nothing is pulled from ``source`` before the first ``next``."""

    def __init__(self, source: Iterable[MarketRecord]) -> None:
        self.source = source
        self._iterator: Iterator[MarketRecord] | None = None

    def __iter__(self) -> Stage:
        return self

    def __next__(self) -> MarketRecord:
        if self._iterator is None:
            self._iterator = self._generate(iter(self.source))
        return next(self._iterator)

    def _generate(self, source: Iterator[MarketRecord]) -> Iterator[MarketRecord]:
        raise NotImplementedError

    def close(self) -> None:
        close = getattr(self.source, "close", None)
        if callable(close):
            close()


__all__ = ["Stage"]
