"""Shared fixtures"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from cashdesk.models import CashClosure, ClosureStatus, PhysicalCount, ShiftSalesSummary

SHIFT_START = "2026-10-19T06:00:00+00:00"


@pytest.fixture
def summary() -> ShiftSalesSummary:
    return ShiftSalesSummary(
        total_sales=Decimal("700000"),
        total_products_sold=12,
        total_memberships_sold=3,
        total_daily_access_sold=5,
        cash_sales=Decimal("500000"),
        nequi_sales=Decimal("200000"),
        sales_count=20,
    )


@pytest.fixture
def count() -> PhysicalCount:
    return PhysicalCount(
        shift_start=SHIFT_START,
        cash_counted=Decimal("498000"),
        nequi_counted=Decimal("200000"),
    )


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 10, 19, 18, 30, tzinfo=timezone.utc)


@pytest.fixture
def existing_closure() -> CashClosure:
    return CashClosure(
        id=41,
        user_id=7,
        shift_date=date(2026, 10, 19),
        shift_start=datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc),
        shift_end=datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
        total_sales=Decimal("300000"),
        cash_sales=Decimal("300000"),
        cash_counted=Decimal("300000"),
        status=ClosureStatus.PENDING,
        created_at=datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
    )
