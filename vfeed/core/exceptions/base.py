"""vfeed core exception classes."""

from typing import Any

from vfeed.core.exceptions.codes import ErrorCode


class VFeedError(Exception):
    """Base exception for vfeed."""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.GENERAL_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        """Initialise the exception.

        Args:
            message: human readable message
            error_code: one of :class:`ErrorCode` values
            details: additional structured context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(VFeedError):
    """Raised when vfeed settings cannot be loaded or are inconsistent."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if setting:
            super_details["setting"] = setting
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR.value, super_details)
        self.setting = setting


class InvalidConfigurationError(VFeedError):
    """Raised when a subscription configuration names an unusable record type."""

    def __init__(
        self,
        message: str,
        record_type: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if record_type:
            super_details["record_type"] = record_type
        super().__init__(message, ErrorCode.INVALID_CONFIGURATION.value, super_details)
        self.record_type = record_type


class DocumentStoreError(VFeedError):
    """Raised when the remote document store cannot serve a query."""

    def __init__(
        self,
        message: str,
        store_name: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if path:
            super_details["path"] = path
        super().__init__(message, ErrorCode.STORE_QUERY_FAILED.value, super_details)
        self.store_name = store_name
        self.path = path


class DataProviderError(VFeedError):
    """Raised by local data providers when a file cannot be served."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        error_code: str = ErrorCode.DATA_PROVIDER_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if key:
            super_details["key"] = key
        super().__init__(message, error_code, super_details)
        self.key = key


class DownloadError(DataProviderError):
    """Raised when the auxiliary downloader fails to retrieve history."""

    def __init__(
        self,
        message: str,
        symbol: str,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        super_details["symbol"] = symbol
        super().__init__(message, None, ErrorCode.DOWNLOAD_FAILED.value, super_details)
        self.symbol = symbol


class SubscriptionError(VFeedError):
    """Raised for subscription lifecycle misuse."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.SUBSCRIPTION_ERROR.value, details)


class CursorResetError(VFeedError):
    """Raised when a record cursor is asked to restart; cursors are single pass."""

    def __init__(self, message: str = "Reset method not implemented. Assumes loop will only be used once."):
        super().__init__(message, ErrorCode.CURSOR_RESET.value)
