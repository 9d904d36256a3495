"""Data models module."""

from vfeed.core.models.corporate_actions import (
    Delisting,
    DelistingType,
    Dividend,
    FactorFile,
    FactorFileRow,
    MapFile,
    MapFileRow,
    Split,
    SplitType,
    SymbolChangedEvent,
)
from vfeed.core.models.market import DataNormalizationMode, MarketType, Resolution, SecurityType
from vfeed.core.models.records import (
    Bar,
    CoarseFundamental,
    MarketRecord,
    QuoteBar,
    RecordCollection,
    SelectionTrigger,
    Tick,
    TradeBar,
    register_record_type,
    resolve_record_type,
)
from vfeed.core.models.subscription import Security, SubscriptionDataConfig, SubscriptionRequest
from vfeed.core.models.symbols import Symbol
from vfeed.core.models.universe import (
    FuturesChainUniverse,
    OptionChainUniverse,
    SelectionUniverse,
    TimeTriggeredUniverse,
    Universe,
    UniverseKind,
    UserDefinedUniverse,
)

__all__ = [
    "Symbol",
    "SecurityType",
    "MarketType",
    "Resolution",
    "DataNormalizationMode",
    "MarketRecord",
    "TradeBar",
    "Bar",
    "QuoteBar",
    "Tick",
    "CoarseFundamental",
    "SelectionTrigger",
    "RecordCollection",
    "register_record_type",
    "resolve_record_type",
    "MapFile",
    "MapFileRow",
    "FactorFile",
    "FactorFileRow",
    "Split",
    "SplitType",
    "Dividend",
    "SymbolChangedEvent",
    "Delisting",
    "DelistingType",
    "SubscriptionDataConfig",
    "Security",
    "SubscriptionRequest",
    "Universe",
    "UniverseKind",
    "SelectionUniverse",
    "TimeTriggeredUniverse",
    "UserDefinedUniverse",
    "OptionChainUniverse",
    "FuturesChainUniverse",
]
