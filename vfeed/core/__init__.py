"""vfeed core: models, data access, calendars and the subscription pipeline."""

from vfeed.core.config.settings import ConfigManager, VFeedConfig
from vfeed.core.feeds.coordinator import Subscription, SubscriptionCoordinator
from vfeed.core.models.market import MarketType, Resolution, SecurityType
from vfeed.core.models.subscription import Security, SubscriptionDataConfig, SubscriptionRequest
from vfeed.core.models.symbols import Symbol

__all__ = [
    "ConfigManager",
    "VFeedConfig",
    "Subscription",
    "SubscriptionCoordinator",
    "MarketType",
    "Resolution",
    "SecurityType",
    "Symbol",
    "Security",
    "SubscriptionDataConfig",
    "SubscriptionRequest",
]
