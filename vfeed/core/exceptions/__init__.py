"""Exception handling module."""

from vfeed.core.exceptions.base import (
    ConfigurationError,
    CursorResetError,
    DataProviderError,
    DocumentStoreError,
    DownloadError,
    InvalidConfigurationError,
    SubscriptionError,
    VFeedError,
)
from vfeed.core.exceptions.codes import ErrorCode

__all__ = [
    "VFeedError",
    "ConfigurationError",
    "InvalidConfigurationError",
    "DocumentStoreError",
    "DataProviderError",
    "DownloadError",
    "SubscriptionError",
    "CursorResetError",
    "ErrorCode",
]
