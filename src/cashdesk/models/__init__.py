"""Models module initialization"""

from cashdesk.models.tender import TenderType, TENDER_LABELS
from cashdesk.models.shift import (
    ShiftSalesSummary,
    ItemSold,
    ItemsSoldSummary,
)
from cashdesk.models.closure import (
    CashClosure,
    ClosureStatus,
    PhysicalCount,
    CLOSURE_TRANSITIONS,
)
from cashdesk.models.report import (
    AuthorizedUser,
    CashClosurePage,
    CashClosureReport,
    DailyClosureRow,
    DailyClosureSummary,
    UserClosureRow,
)

__all__ = [
    "TenderType",
    "TENDER_LABELS",
    "ShiftSalesSummary",
    "ItemSold",
    "ItemsSoldSummary",
    "CashClosure",
    "ClosureStatus",
    "PhysicalCount",
    "CLOSURE_TRANSITIONS",
    "AuthorizedUser",
    "CashClosurePage",
    "CashClosureReport",
    "DailyClosureRow",
    "DailyClosureSummary",
    "UserClosureRow",
]
