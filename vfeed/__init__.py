"""vfeed - streaming market data subscriptions for backtesting

Records are read from a remote document store, adjusted with map and factor
files, interleaved with corporate events and shaped per subscription by
aggregation, fill-forward and filtering stages.

Basic usage:

    ```python
    from vfeed import SubscriptionCoordinator

    coordinator = SubscriptionCoordinator(document_store=store)
    coordinator.start(algorithm, handler, map_files, factor_files, provider, registry, clock)
    for record in coordinator.create_subscription(request):
        ...
    ```
"""

from vfeed.core import (
    ConfigManager,
    MarketType,
    Resolution,
    Security,
    SecurityType,
    Subscription,
    SubscriptionCoordinator,
    SubscriptionDataConfig,
    SubscriptionRequest,
    Symbol,
    VFeedConfig,
)

__version__ = "0.1.0"

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
    "__version__",
]
