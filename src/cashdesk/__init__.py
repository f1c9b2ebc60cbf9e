"""
cashdesk - cash-closure reconciliation SDK for the gym back-office

Main entry point for the SDK
"""

from cashdesk.exceptions import (
    CashdeskError,
    CashdeskErrorCategory,
    ValidationError,
    SummaryUnavailable,
    PersistenceError,
    ResponseFormatError,
    NetworkError,
    NetworkErrorCode,
    ConfigError,
)

# Configuration
from cashdesk.config import (
    CashdeskConfig,
    PartialCashdeskConfig,
    CashdeskEnvironment,
    ConfigLoader,
    ConfigValidator,
    CASHDESK_BASE_URLS,
    ENV_VAR_MAPPING,
    ConfigDefaults,
)

# Models
from cashdesk.models import (
    TenderType,
    ShiftSalesSummary,
    ItemSold,
    ItemsSoldSummary,
    PhysicalCount,
    CashClosure,
    ClosureStatus,
    CashClosurePage,
    CashClosureReport,
    DailyClosureSummary,
    AuthorizedUser,
)

# Reconciliation
from cashdesk.reconciliation import (
    CashClosureReconciler,
    DifferenceSet,
    ValidationResult,
    compute_differences,
)

# Events
from cashdesk.events import EventBus, Subscription

# HTTP Client
from cashdesk.client import (
    CashClosureClient,
    HttpClient,
    HttpMethod,
    HttpRequestOptions,
    HttpResponse,
    HttpAuditEntry,
    CircuitState,
    CircuitBreakerConfig,
)

# Services
from cashdesk.services import CashClosureService, ReconciliationPreview, ShiftSnapshot

__version__ = "0.1.0"

__all__ = [
    # Exceptions
    "CashdeskError",
    "CashdeskErrorCategory",
    "ValidationError",
    "SummaryUnavailable",
    "PersistenceError",
    "ResponseFormatError",
    "NetworkError",
    "NetworkErrorCode",
    "ConfigError",
    # Configuration
    "CashdeskConfig",
    "PartialCashdeskConfig",
    "CashdeskEnvironment",
    "ConfigLoader",
    "ConfigValidator",
    "CASHDESK_BASE_URLS",
    "ENV_VAR_MAPPING",
    "ConfigDefaults",
    # Models
    "TenderType",
    "ShiftSalesSummary",
    "ItemSold",
    "ItemsSoldSummary",
    "PhysicalCount",
    "CashClosure",
    "ClosureStatus",
    "CashClosurePage",
    "CashClosureReport",
    "DailyClosureSummary",
    "AuthorizedUser",
    # Reconciliation
    "CashClosureReconciler",
    "DifferenceSet",
    "ValidationResult",
    "compute_differences",
    # Events
    "EventBus",
    "Subscription",
    # HTTP Client
    "CashClosureClient",
    "HttpClient",
    "HttpMethod",
    "HttpRequestOptions",
    "HttpResponse",
    "HttpAuditEntry",
    "CircuitState",
    "CircuitBreakerConfig",
    # Services
    "CashClosureService",
    "ReconciliationPreview",
    "ShiftSnapshot",
]
