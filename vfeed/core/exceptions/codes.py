"""Standardized error codes for vfeed exceptions."""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes carried by :class:`~vfeed.core.exceptions.base.VFeedError`."""

    # General errors
    GENERAL_ERROR = "GENERAL_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"

    # Store and provider errors
    STORE_ERROR = "STORE_ERROR"
    STORE_QUERY_FAILED = "STORE_QUERY_FAILED"
    DATA_PROVIDER_ERROR = "DATA_PROVIDER_ERROR"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    DATA_FORMAT_ERROR = "DATA_FORMAT_ERROR"

    # Subscription errors
    SUBSCRIPTION_ERROR = "SUBSCRIPTION_ERROR"
    NO_TRADABLE_DATES = "NO_TRADABLE_DATES"
    CURSOR_RESET = "CURSOR_RESET"


__all__ = ["ErrorCode"]
