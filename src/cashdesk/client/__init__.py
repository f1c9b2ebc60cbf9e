"""
HTTP Client module for the cashdesk SDK
"""

from cashdesk.client.cash_closure_client import CashClosureClient
from cashdesk.client.http_client import (
    HttpClient,
    HttpMethod,
    HttpRequestOptions,
    HttpResponse,
    HttpAuditEntry,
    CircuitState,
    CircuitBreakerConfig,
)

__all__ = [
    "CashClosureClient",
    "HttpClient",
    "HttpMethod",
    "HttpRequestOptions",
    "HttpResponse",
    "HttpAuditEntry",
    "CircuitState",
    "CircuitBreakerConfig",
]
