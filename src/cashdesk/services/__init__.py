"""Services module initialization"""

from cashdesk.services.closure_service import (
    CashClosureService,
    ReconciliationPreview,
    ShiftSnapshot,
)

__all__ = [
    "CashClosureService",
    "ReconciliationPreview",
    "ShiftSnapshot",
]
