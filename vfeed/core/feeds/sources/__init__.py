"""Record sources for universe subscriptions."""

from vfeed.core.feeds.sources.chains import FuturesChainSource, OptionChainSource
from vfeed.core.feeds.sources.collection import CollectionSource
from vfeed.core.feeds.sources.time_triggered import InjectionSource, TimeTriggeredSource

__all__ = [
    "TimeTriggeredSource",
    "InjectionSource",
    "CollectionSource",
    "OptionChainSource",
    "FuturesChainSource",
]
