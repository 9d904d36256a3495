"""Map files, factor files and the corporate event records derived from them."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import ClassVar

from vfeed.core.models.records import MarketRecord

_ONE = Decimal("1")


@dataclass(slots=True, frozen=True)
class MapFileRow:
    """Symbol an instrument traded under up to and including ``date``."""

    date: date
    mapped_symbol: str


@dataclass(slots=True, frozen=True)
class MapFile:
    """Ticker history of one instrument, rows ordered by date.

    The ``empty`` sentinel stands in when no history is known: it has data on
    every date and never delists.
    """

    permtick: str
    rows: tuple[MapFileRow, ...] = ()
    is_empty: bool = False

    @classmethod
    def empty(cls, permtick: str = "") -> MapFile:
        return cls(permtick=permtick.upper(), rows=(), is_empty=True)

    @classmethod
    def from_rows(cls, permtick: str, rows: Sequence[MapFileRow]) -> MapFile:
        return cls(permtick=permtick.upper(), rows=tuple(sorted(rows, key=lambda row: row.date)))

    @property
    def first_date(self) -> date:
        if not self.rows:
            return date.min
        return self.rows[0].date

    @property
    def delisting_date(self) -> date:
        if not self.rows:
            return date.max
        return self.rows[-1].date

    @property
    def first_ticker(self) -> str:
        if not self.rows:
            return self.permtick
        return self.rows[0].mapped_symbol

    def mapped_symbol(self, on: date) -> str | None:
        """Return the ticker in effect on ``on`` or ``None`` outside the history."""
        if self.is_empty:
            return self.permtick
        for row in self.rows:
            if row.date >= on:
                return row.mapped_symbol
        return None

    def has_data(self, on: date) -> bool:
        if self.is_empty:
            return True
        if on < self.first_date:
            return False
        return self.mapped_symbol(on) is not None


@dataclass(slots=True, frozen=True)
class FactorFileRow:
    """Cumulative adjustment factors valid for dates up to ``date``.

    ``price_factor`` carries dividends only; the full price scale factor is
    ``price_factor * split_factor``.
    """

    date: date
    price_factor: Decimal
    split_factor: Decimal
    reference_price: Decimal = Decimal("0")

    @property
    def price_scale_factor(self) -> Decimal:
        return self.price_factor * self.split_factor


@dataclass(slots=True, frozen=True)
class FactorFile:
    """Price adjustment history of one instrument, rows ordered by date."""

    permtick: str
    rows: tuple[FactorFileRow, ...] = ()
    minimum_date: date | None = None

    @classmethod
    def from_rows(
        cls,
        permtick: str,
        rows: Sequence[FactorFileRow],
        minimum_date: date | None = None,
    ) -> FactorFile:
        return cls(
            permtick=permtick.upper(),
            rows=tuple(sorted(rows, key=lambda row: row.date)),
            minimum_date=minimum_date,
        )

    def row_for(self, on: date) -> FactorFileRow | None:
        """Return the earliest row dated on or after ``on``."""
        for row in self.rows:
            if row.date >= on:
                return row
        return None

    def price_scale_factor(self, on: date) -> Decimal:
        row = self.row_for(on)
        return row.price_scale_factor if row is not None else _ONE

    def split_factor(self, on: date) -> Decimal:
        row = self.row_for(on)
        return row.split_factor if row is not None else _ONE


class SplitType(str, Enum):
    WARNING = "warning"
    SPLIT_OCCURRED = "split_occurred"


class DelistingType(str, Enum):
    WARNING = "warning"
    DELISTED = "delisted"


class Split(MarketRecord):
    """Share split applied at the start of ``time``'s trading day."""

    is_auxiliary: ClassVar[bool] = True

    split_factor: Decimal = _ONE
    reference_price: Decimal = Decimal("0")
    split_type: SplitType = SplitType.SPLIT_OCCURRED


class Dividend(MarketRecord):
    """Cash distribution per share."""

    is_auxiliary: ClassVar[bool] = True

    distribution: Decimal = Decimal("0")
    reference_price: Decimal = Decimal("0")


class SymbolChangedEvent(MarketRecord):
    is_auxiliary: ClassVar[bool] = True

    old_symbol: str
    new_symbol: str


class Delisting(MarketRecord):
    is_auxiliary: ClassVar[bool] = True

    delisting_type: DelistingType = DelistingType.WARNING


__all__ = [
    "MapFileRow",
    "MapFile",
    "FactorFileRow",
    "FactorFile",
    "SplitType",
    "DelistingType",
    "Split",
    "Dividend",
    "SymbolChangedEvent",
    "Delisting",
]
