"""Custom exceptions for the leave-request sync."""

from typing import Optional


class LeaveSyncError(Exception):
    """Base exception for every fatal sync failure."""


class ConfigurationError(LeaveSyncError):
    """Raised when required settings are missing or invalid."""


class SchemaDetectionError(LeaveSyncError):
    """Raised when a table lacks a field needed for reconciliation."""

    def __init__(self, table_id: str, reason: str) -> None:
        super().__init__(f"Table {table_id}: {reason}")
        self.table_id = table_id
        self.reason = reason


class NotionClientError(LeaveSyncError):
    """Base exception for Notion API failures."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class NotionAuthenticationError(NotionClientError):
    """Raised when Notion rejects the integration token or its access."""


class NotionRateLimitError(NotionClientError):
    """Raised when Notion answers with a rate-limit response."""

    def __init__(self, message: str, retry_after: Optional[float] = None) -> None:
        super().__init__(message, status_code=429, code="rate_limited")
        self.retry_after = retry_after


class NotionNotFoundError(NotionClientError):
    """Raised when a database or page is missing or not shared with the integration."""
