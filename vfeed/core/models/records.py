"""Typed market records produced by subscription enumerators."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, ClassVar, Self

from pydantic import BaseModel, Field, field_serializer
from pydantic import ConfigDict as PydanticConfigDict

from vfeed.core.exceptions.base import InvalidConfigurationError
from vfeed.core.models.market import SecurityType
from vfeed.core.models.symbols import Symbol

_ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Convert a store value to ``Decimal`` without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        raise ValueError("missing numeric value")
    return Decimal(str(value))


class MarketRecord(BaseModel):
    """Base record: one time-stamped observation of an instrument.

    ``time`` is the start of the record in the exchange time zone (naive);
    ``end_time`` is when the record becomes observable.
    """

    model_config = PydanticConfigDict(arbitrary_types_allowed=True)

    # corporate events and other non-price records
    is_auxiliary: ClassVar[bool] = False

    symbol: Symbol
    time: datetime
    period: timedelta = timedelta(0)
    value: Decimal = _ZERO
    is_fill_forward: bool = False

    @property
    def end_time(self) -> datetime:
        return self.time + self.period

    @classmethod
    def requires_mapping(cls, symbol: Symbol) -> bool:
        """Equity and option tickers change over time and need map files."""
        return symbol.security_type in (SecurityType.EQUITY, SecurityType.OPTION)

    @classmethod
    def from_document(
        cls,
        document: Mapping[str, Any],
        symbol: Symbol,
        time: datetime,
        period: timedelta,
    ) -> Self:
        raw = document.get("value", document.get("close"))
        return cls(symbol=symbol, time=time, period=period, value=to_decimal(raw))

    def clone(self, fill_forward: bool = False) -> Self:
        return self.model_copy(update={"is_fill_forward": fill_forward})

    def scale(self, price_factor: Decimal, split_factor: Decimal) -> Self:
        """Return a copy with prices multiplied by ``price_factor``."""
        return self.model_copy(update={"value": self.value * price_factor})

    @field_serializer("value", when_used="json")
    def serialize_decimal(self, value: Decimal) -> str:
        return str(value)


class TradeBar(MarketRecord):
    """Open/high/low/close/volume bar."""

    open: Decimal = _ZERO
    high: Decimal = _ZERO
    low: Decimal = _ZERO
    close: Decimal = _ZERO
    volume: Decimal = _ZERO

    @classmethod
    def from_document(
        cls,
        document: Mapping[str, Any],
        symbol: Symbol,
        time: datetime,
        period: timedelta,
    ) -> Self:
        close = to_decimal(document["close"])
        return cls(
            symbol=symbol,
            time=time,
            period=period,
            open=to_decimal(document["open"]),
            high=to_decimal(document["high"]),
            low=to_decimal(document["low"]),
            close=close,
            volume=to_decimal(document.get("volume", 0)),
            value=close,
        )

    def clone(self, fill_forward: bool = False) -> Self:
        if not fill_forward:
            return self.model_copy(update={"is_fill_forward": False})
        # a filled bar trades flat at the previous close with no volume
        return self.model_copy(
            update={
                "open": self.close,
                "high": self.close,
                "low": self.close,
                "volume": _ZERO,
                "is_fill_forward": True,
            }
        )

    def scale(self, price_factor: Decimal, split_factor: Decimal) -> Self:
        volume = self.volume / split_factor if split_factor != 0 else self.volume
        return self.model_copy(
            update={
                "open": self.open * price_factor,
                "high": self.high * price_factor,
                "low": self.low * price_factor,
                "close": self.close * price_factor,
                "value": self.close * price_factor,
                "volume": volume,
            }
        )

    @field_serializer("open", "high", "low", "close", "volume", when_used="json")
    def serialize_prices(self, value: Decimal) -> str:
        return str(value)


class Bar(BaseModel):
    """One side (bid or ask) of a quote bar."""

    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal

    def scaled(self, factor: Decimal) -> Bar:
        return Bar(open=self.open * factor, high=self.high * factor, low=self.low * factor, close=self.close * factor)

    def flat(self) -> Bar:
        return Bar(open=self.close, high=self.close, low=self.close, close=self.close)


def _side_from_document(document: Mapping[str, Any], prefix: str) -> Bar | None:
    if document.get(f"{prefix}_close") is None:
        return None
    return Bar(
        open=to_decimal(document[f"{prefix}_open"]),
        high=to_decimal(document[f"{prefix}_high"]),
        low=to_decimal(document[f"{prefix}_low"]),
        close=to_decimal(document[f"{prefix}_close"]),
    )


def _mid(bid: Bar | None, ask: Bar | None) -> Decimal:
    if bid is not None and ask is not None:
        return (bid.close + ask.close) / 2
    if bid is not None:
        return bid.close
    if ask is not None:
        return ask.close
    return _ZERO


class QuoteBar(MarketRecord):
    """Bid/ask bar. Either side may be missing for a period."""

    bid: Bar | None = None
    ask: Bar | None = None
    last_bid_size: Decimal = _ZERO
    last_ask_size: Decimal = _ZERO

    @classmethod
    def from_document(
        cls,
        document: Mapping[str, Any],
        symbol: Symbol,
        time: datetime,
        period: timedelta,
    ) -> Self:
        bid = _side_from_document(document, "bid")
        ask = _side_from_document(document, "ask")
        return cls(
            symbol=symbol,
            time=time,
            period=period,
            bid=bid,
            ask=ask,
            last_bid_size=to_decimal(document.get("bid_size", 0)),
            last_ask_size=to_decimal(document.get("ask_size", 0)),
            value=_mid(bid, ask),
        )

    def with_sides(self, bid: Bar | None, ask: Bar | None) -> Self:
        return self.model_copy(update={"bid": bid, "ask": ask, "value": _mid(bid, ask)})

    def clone(self, fill_forward: bool = False) -> Self:
        if not fill_forward:
            return self.model_copy(update={"is_fill_forward": False})
        bid = self.bid.flat() if self.bid is not None else None
        ask = self.ask.flat() if self.ask is not None else None
        return self.with_sides(bid, ask).model_copy(update={"is_fill_forward": True})

    def scale(self, price_factor: Decimal, split_factor: Decimal) -> Self:
        bid = self.bid.scaled(price_factor) if self.bid is not None else None
        ask = self.ask.scaled(price_factor) if self.ask is not None else None
        return self.with_sides(bid, ask)


class Tick(MarketRecord):
    """Single trade or quote print."""

    quantity: Decimal = _ZERO
    bid_price: Decimal = _ZERO
    ask_price: Decimal = _ZERO

    @classmethod
    def from_document(
        cls,
        document: Mapping[str, Any],
        symbol: Symbol,
        time: datetime,
        period: timedelta,
    ) -> Self:
        return cls(
            symbol=symbol,
            time=time,
            value=to_decimal(document.get("price", document.get("close"))),
            quantity=to_decimal(document.get("quantity", document.get("volume", 0))),
            bid_price=to_decimal(document.get("bid_price", 0)),
            ask_price=to_decimal(document.get("ask_price", 0)),
        )

    def scale(self, price_factor: Decimal, split_factor: Decimal) -> Self:
        return self.model_copy(
            update={
                "value": self.value * price_factor,
                "bid_price": self.bid_price * price_factor,
                "ask_price": self.ask_price * price_factor,
            }
        )


class CoarseFundamental(MarketRecord):
    """Daily per-instrument summary used for coarse universe selection."""

    volume: Decimal = _ZERO
    dollar_volume: Decimal = _ZERO
    has_fundamental_data: bool = False
    price_factor: Decimal = Decimal("1")
    split_factor: Decimal = Decimal("1")

    @classmethod
    def requires_mapping(cls, symbol: Symbol) -> bool:
        return False


class SelectionTrigger(MarketRecord):
    """Marker record emitted when a time-triggered universe should reselect."""


class RecordCollection(MarketRecord):
    """A group of records sharing one end time, keyed to a universe symbol."""

    data: list[MarketRecord] = Field(default_factory=list)
    underlying: MarketRecord | None = None
    symbols: tuple[Symbol, ...] = ()

    @classmethod
    def requires_mapping(cls, symbol: Symbol) -> bool:
        return False


RECORD_TYPES: dict[str, type[MarketRecord]] = {
    "MarketRecord": MarketRecord,
    "TradeBar": TradeBar,
    "QuoteBar": QuoteBar,
    "Tick": Tick,
    "CoarseFundamental": CoarseFundamental,
    "SelectionTrigger": SelectionTrigger,
    "RecordCollection": RecordCollection,
}


def register_record_type(record_type: type[MarketRecord]) -> type[MarketRecord]:
    """Class decorator making a custom record type resolvable by name."""
    RECORD_TYPES[record_type.__name__] = record_type
    return record_type


def resolve_record_type(record_type: type[MarketRecord] | str) -> type[MarketRecord]:
    """Return the concrete record class named by a subscription configuration."""
    if isinstance(record_type, str):
        resolved = RECORD_TYPES.get(record_type)
        if resolved is None:
            raise InvalidConfigurationError(
                f"Unable to resolve record type '{record_type}'. Registered types: {sorted(RECORD_TYPES)}",
                record_type=record_type,
            )
        return resolved
    if isinstance(record_type, type) and issubclass(record_type, MarketRecord):
        return record_type
    raise InvalidConfigurationError(
        f"{record_type!r} is not a MarketRecord type",
        record_type=repr(record_type),
    )


__all__ = [
    "MarketRecord",
    "TradeBar",
    "Bar",
    "QuoteBar",
    "Tick",
    "CoarseFundamental",
    "SelectionTrigger",
    "RecordCollection",
    "RECORD_TYPES",
    "register_record_type",
    "resolve_record_type",
    "to_decimal",
]
