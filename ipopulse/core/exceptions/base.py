"""Core exception classes for ipopulse."""

from typing import Any

from ipopulse.core.exceptions.codes import ErrorCode


class IpoPulseError(Exception):
    """Base exception for ipopulse."""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.GENERAL_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        """Initialise the exception.

        Args:
            message: Human readable error message.
            error_code: Machine readable error code.
            details: Additional context for logs and payloads.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        """Return a serializable payload describing the error."""

        return {"code": self.error_code, "message": self.message, "details": dict(self.details)}


class ConfigError(IpoPulseError):
    """Invalid configuration values."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CONFIG_ERROR.value, details)


class UpstreamError(IpoPulseError):
    """Errors raised while talking to the exchange website."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        error_code: str = ErrorCode.UPSTREAM_HTTP_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if url is not None:
            super_details["url"] = url
        super().__init__(message, error_code, super_details)
        self.url = url


class SessionBootstrapError(UpstreamError):
    """Network failure during the session warm-up sequence."""

    def __init__(self, message: str, url: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message, url, ErrorCode.SESSION_BOOTSTRAP_ERROR.value, details)


class UpstreamHTTPError(UpstreamError):
    """Non-success HTTP status from the data endpoint."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if status_code is not None:
            super_details["status_code"] = status_code
        super().__init__(message, url, ErrorCode.UPSTREAM_HTTP_ERROR.value, super_details)
        self.status_code = status_code


class RateLimitError(UpstreamHTTPError):
    """403 rejection that survived the degraded-header retry."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        statuses: tuple[int, ...] = (),
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        super_details["statuses"] = list(statuses)
        super().__init__(message, url, statuses[-1] if statuses else None, super_details)
        self.error_code = ErrorCode.RATE_LIMITED.value
        self.statuses = statuses


class PayloadFormatError(IpoPulseError):
    """Top-level upstream payload does not have the expected shape."""

    def __init__(self, message: str, section: str | None = None, details: dict[str, Any] | None = None):
        super_details = details or {}
        if section:
            super_details["section"] = section
        super().__init__(message, ErrorCode.PAYLOAD_FORMAT_ERROR.value, super_details)
        self.section = section


class RowNormalizationError(IpoPulseError):
    """A single upstream row could not be normalised."""

    def __init__(self, message: str, index: int | None = None, details: dict[str, Any] | None = None):
        super_details = details or {}
        if index is not None:
            super_details["index"] = index
        super().__init__(message, ErrorCode.ROW_NORMALIZATION_ERROR.value, super_details)
        self.index = index


class PersistenceError(IpoPulseError):
    """Storage failure while writing a record."""

    def __init__(self, message: str, table: str | None = None, details: dict[str, Any] | None = None):
        super_details = details or {}
        if table:
            super_details["table"] = table
        super().__init__(message, ErrorCode.PERSISTENCE_ERROR.value, super_details)


class CatalogError(IpoPulseError):
    """Listing catalog could not be read or written."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CATALOG_ERROR.value, details)
