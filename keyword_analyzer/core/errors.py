"""Error hierarchy shared across the analyzer layers."""
from __future__ import annotations


class KeywordAnalyzerError(RuntimeError):
    """Base class for all analyzer errors."""


class ValidationError(KeywordAnalyzerError):
    """Raised when a submission is missing data or cannot be read."""


class ConflictError(KeywordAnalyzerError):
    """Raised when a job is submitted while another one is running."""


class JobSetupError(KeywordAnalyzerError):
    """Raised before the item loop starts; aborts the whole job."""


class OracleError(KeywordAnalyzerError):
    """Raised when a single classification call fails."""

    @property
    def reason(self) -> str:
        return str(self) or self.__class__.__name__


class ApiError(OracleError):
    """Non-2xx response other than 429."""

    def __init__(self, status: int, message: str | None = None) -> None:
        super().__init__(message or f"API error: {status}")
        self.status = status


class TransportError(OracleError):
    """Timeout or connection failure."""


class MalformedResponseError(OracleError):
    """2xx response without a usable completion payload."""


class RateLimitedError(OracleError):
    """HTTP 429; paused and retried without consuming a retry."""

    def __init__(self, retry_after: float | None = None) -> None:
        super().__init__("API error: 429")
        self.retry_after = retry_after


__all__ = [
    "ApiError",
    "ConflictError",
    "JobSetupError",
    "KeywordAnalyzerError",
    "MalformedResponseError",
    "OracleError",
    "RateLimitedError",
    "TransportError",
    "ValidationError",
]
