"""Closure listing and report models"""

import datetime as dt
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from cashdesk.models.closure import CashClosure
from cashdesk.utils.money import to_decimal


class CashClosurePage(BaseModel):
    """One page of the closure listing"""

    cash_closures: List[CashClosure] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 20
    total_pages: int = 0
    has_next: bool = False
    has_prev: bool = False


class UserClosureRow(BaseModel):
    """Per-operator aggregate in a closure report"""

    user_name: str
    closures_count: int = 0
    total_sales: Decimal = Decimal(0)
    total_differences: Decimal = Decimal(0)
    discrepancies_count: int = 0

    @field_validator("total_sales", "total_differences", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)


class DailyClosureRow(BaseModel):
    """Per-day aggregate in a closure report"""

    day: dt.date = Field(..., alias="date")
    closures_count: int = 0
    total_sales: Decimal = Decimal(0)
    total_differences: Decimal = Decimal(0)
    discrepancies_count: int = 0

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("total_sales", "total_differences", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)


class CashClosureReport(BaseModel):
    """Closure report over a period"""

    period_start: dt.date
    period_end: dt.date
    total_closures: int = 0
    total_sales: Decimal = Decimal(0)
    total_counted: Decimal = Decimal(0)
    total_differences: Decimal = Decimal(0)
    closures_with_discrepancies: int = 0
    average_difference: Decimal = Decimal(0)
    closures_by_user: List[UserClosureRow] = Field(default_factory=list)
    daily_summary: List[DailyClosureRow] = Field(default_factory=list)

    @field_validator(
        "total_sales",
        "total_counted",
        "total_differences",
        "average_difference",
        mode="before",
    )
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)


class DailyClosureSummary(BaseModel):
    """All closures of one day with their aggregates"""

    day: dt.date = Field(..., alias="date")
    total_closures: int = 0
    total_sales: Decimal = Decimal(0)
    total_counted: Decimal = Decimal(0)
    total_differences: Decimal = Decimal(0)
    discrepancies_count: int = 0
    average_difference: Decimal = Decimal(0)
    closures: List[CashClosure] = Field(default_factory=list)

    model_config = {
        "populate_by_name": True,
    }

    @field_validator(
        "total_sales",
        "total_counted",
        "total_differences",
        "average_difference",
        mode="before",
    )
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)


class AuthorizedUser(BaseModel):
    """Operator allowed to close a shift"""

    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None

    model_config = {
        "extra": "allow",
    }
