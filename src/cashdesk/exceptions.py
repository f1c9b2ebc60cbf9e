"""Exception classes for the cashdesk SDK"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class CashdeskErrorCategory(str, Enum):
    """Cashdesk error category codes"""
    VALIDATION = "VAL"
    SUMMARY = "SUMMARY"
    PERSISTENCE = "PERSISTENCE"
    RESPONSE = "RESPONSE"
    NETWORK = "NET"
    CONFIG = "CONFIG"
    UNKNOWN = "UNKNOWN"


class NetworkErrorCode(str, Enum):
    """Transport failure codes carried by NetworkError"""
    TIMEOUT = "NET01"
    CONNECTION_REFUSED = "NET02"
    SSL_ERROR = "NET04"
    CIRCUIT_BREAKER_OPEN = "NET05"
    UNKNOWN = "NET10"


class CashdeskError(Exception):
    """
    Base exception for cashdesk errors

    All errors in the SDK extend from this class.
    Provides consistent error handling and categorization.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.cause = cause
        self.details = details
        self.timestamp = datetime.utcnow()
        self.category = self._determine_category(code)

    def _determine_category(self, code: Optional[str]) -> CashdeskErrorCategory:
        """Determine error category from code"""
        if not code:
            return CashdeskErrorCategory.UNKNOWN

        if code.startswith("VAL"):
            return CashdeskErrorCategory.VALIDATION
        if code.startswith("SUMMARY"):
            return CashdeskErrorCategory.SUMMARY
        if code.startswith("PERSISTENCE"):
            return CashdeskErrorCategory.PERSISTENCE
        if code.startswith("RESPONSE"):
            return CashdeskErrorCategory.RESPONSE
        if code.startswith("NET"):
            return CashdeskErrorCategory.NETWORK
        if code.startswith("CONFIG"):
            return CashdeskErrorCategory.CONFIG

        return CashdeskErrorCategory.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary"""
        return {
            "name": self.__class__.__name__,
            "message": str(self),
            "code": self.code,
            "status_code": self.status_code,
            "category": self.category.value,
            "timestamp": self.timestamp.isoformat() + "Z",
            "details": self.details,
        }

    def has_code(self, code: str) -> bool:
        """Check if error has a specific code"""
        return self.code == code

    def is_category(self, category: CashdeskErrorCategory) -> bool:
        """Check if error belongs to a category"""
        return self.category == category

    def get_description(self) -> str:
        """Get human-readable error description"""
        parts = [str(self)]

        if self.code:
            parts.insert(0, f"[{self.code}]")

        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")

        return " ".join(parts)


class ValidationError(CashdeskError):
    """
    Local validation failure

    Raised before anything is sent to the server. ``reason`` is a stable
    machine-readable token (``missing_shift_start``, ``negative_count``, ...)
    and ``field`` names the offending input when there is one.
    """

    def __init__(
        self,
        reason: str,
        field: Optional[str] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        if message is None:
            message = reason if field is None else f"{reason}: {field}"
        super().__init__(message, code="VALIDATION_ERROR", details=details)
        self.reason = reason
        self.field = field


class SummaryUnavailable(CashdeskError):
    """
    The shift sales summary could not be obtained

    Reconciliation must stop: computing against a missing or partial
    summary would report a false discrepancy.
    """

    def __init__(
        self,
        message: str = "Shift sales summary is unavailable",
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            code="SUMMARY_UNAVAILABLE",
            status_code=status_code,
            cause=cause,
            details=details,
        )


class PersistenceError(CashdeskError):
    """The closure store rejected a closure upsert"""

    def __init__(
        self,
        message: str = "Cash closure could not be saved",
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            code="PERSISTENCE_ERROR",
            status_code=status_code,
            cause=cause,
            details=details,
        )


class ResponseFormatError(CashdeskError):
    """Backend answered with a payload shape no normalizer accepts"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code="RESPONSE_FORMAT", details=details)


class NetworkError(CashdeskError):
    """
    Network error for HTTP transport layer failures
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        network_code: str = NetworkErrorCode.UNKNOWN.value,
        retryable: bool = True,
    ) -> None:
        super().__init__(message, code=network_code, status_code=status_code)
        self.network_code = network_code
        self.retryable = retryable

    @classmethod
    def timeout(cls, message: str = "Request timed out") -> "NetworkError":
        """Create a timeout error"""
        return cls(
            message,
            status_code=408,
            network_code=NetworkErrorCode.TIMEOUT.value,
            retryable=True,
        )

    @classmethod
    def connection_refused(
        cls, message: str = "Connection refused"
    ) -> "NetworkError":
        """Create a connection refused error"""
        return cls(
            message, network_code=NetworkErrorCode.CONNECTION_REFUSED.value, retryable=True
        )

    @classmethod
    def circuit_breaker_open(cls, retry_after_seconds: int) -> "NetworkError":
        """Create a circuit breaker open error"""
        return cls(
            f"Circuit breaker is open. Retry after {retry_after_seconds} seconds",
            status_code=503,
            network_code=NetworkErrorCode.CIRCUIT_BREAKER_OPEN.value,
            retryable=False,
        )


class ConfigError(CashdeskError):
    """Configuration error"""

    def __init__(
        self,
        message: str,
        code: str = "CONFIG01",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)
