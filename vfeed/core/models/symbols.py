"""Instrument identity."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict

from vfeed.core.models.market import MarketType, SecurityType


class Symbol(BaseModel):
    """A tradable security identified by ticker, market and security kind.

    ``expiry`` is set for futures and options contracts; ``underlying`` for
    options and canonical chain symbols.
    """

    model_config = ConfigDict(frozen=True)

    value: str
    security_type: SecurityType
    market: MarketType
    expiry: date | None = None
    underlying: Symbol | None = None

    @classmethod
    def create(
        cls,
        ticker: str,
        security_type: SecurityType | str = SecurityType.EQUITY,
        market: MarketType | str = MarketType.USA,
    ) -> Symbol:
        return cls(value=ticker.upper(), security_type=SecurityType(security_type), market=MarketType(market))

    @property
    def is_canonical(self) -> bool:
        """Chain symbols (``?SPY``) name a whole option/futures chain."""
        return self.value.startswith("?")

    def canonical(self) -> Symbol:
        return self.model_copy(update={"value": f"?{self.value.lstrip('?')}", "expiry": None})

    def __str__(self) -> str:
        return self.value


__all__ = ["Symbol"]
