"""
Network Health - Exceptions.

============================================================
CUSTOM EXCEPTIONS
============================================================

All exceptions for the network health module:
- NetworkHealthError: Base exception
- DataUnavailableError: Store unreachable or malformed collection
- NoHistoricalDataError: Store reachable, but nothing recorded yet
- ConfigurationError: Invalid weight / threshold tables
- InvalidRequestError: Bad caller parameters

============================================================
FAILURE SEMANTICS
============================================================

Per-node data problems are NEVER raised. Scorers degrade to
a zero score with an "insufficient data" status instead.

Only upstream failures are raised, and each one is a distinct
type so callers can tell apart:
- zero nodes             -> valid score (overall 0)
- store error            -> DataUnavailableError
- no history yet         -> NoHistoricalDataError

============================================================
"""

from typing import Any, Dict, Optional


class NetworkHealthError(Exception):
    """
    Base exception for network health errors.

    All network health exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Error message
            details: Additional error details
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class DataUnavailableError(NetworkHealthError):
    """
    Raised when the underlying telemetry cannot be obtained.

    Covers an unreachable store, a failed query, or a top-level
    collection that is not a list of records.
    """

    def __init__(
        self,
        source: str,
        reason: str,
        original_exception: Optional[Exception] = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            source: Which collection could not be read
            reason: Why it could not be read
            original_exception: The underlying exception
        """
        details = {
            "source": source,
            "reason": reason,
        }
        if original_exception:
            details["original_exception"] = str(original_exception)
            details["exception_type"] = type(original_exception).__name__

        super().__init__(
            message=f"Data unavailable from {source}: {reason}",
            details=details,
        )

        self.source = source
        self.original_exception = original_exception


class NoHistoricalDataError(NetworkHealthError):
    """
    Raised when the store is reachable but holds no history for a window.

    This is not a failure - a freshly deployed crawler has no history yet.
    """

    def __init__(
        self,
        window_start: Optional[int] = None,
        window_end: Optional[int] = None,
        message: Optional[str] = None,
    ) -> None:
        details = {}
        if window_start is not None:
            details["window_start"] = window_start
        if window_end is not None:
            details["window_end"] = window_end

        super().__init__(
            message=message or "No historical data available for the requested window",
            details=details,
        )

        self.window_start = window_start
        self.window_end = window_end


class ConfigurationError(NetworkHealthError):
    """
    Raised when configuration is invalid.

    Should be caught at startup and fixed before serving.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_value: Optional[str] = None,
        actual_value: Optional[str] = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Error message
            config_key: Which config key is invalid
            expected_value: What was expected
            actual_value: What was provided
        """
        details = {}
        if config_key:
            details["config_key"] = config_key
        if expected_value:
            details["expected"] = expected_value
        if actual_value:
            details["actual"] = actual_value

        super().__init__(
            message=message,
            details=details,
        )


class InvalidRequestError(NetworkHealthError):
    """Raised when a caller passes an out-of-range parameter."""

    def __init__(self, parameter: str, reason: str) -> None:
        super().__init__(
            message=f"Invalid parameter '{parameter}': {reason}",
            details={"parameter": parameter, "reason": reason},
        )

        self.parameter = parameter
