"""
Cash closure API client
Typed wrappers around the ``/cash-closures`` endpoints
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from cashdesk.client.http_client import HttpClient, HttpRequestOptions
from cashdesk.client.normalizers import (
    normalize_closure,
    normalize_closure_page,
    normalize_daily_summary,
    normalize_items_sold,
    normalize_report,
    normalize_shift_summary,
    normalize_today_closure,
    normalize_users,
)
from cashdesk.config.cashdesk_config import CashdeskConfig
from cashdesk.models import (
    AuthorizedUser,
    CashClosure,
    CashClosurePage,
    CashClosureReport,
    ClosureStatus,
    DailyClosureSummary,
    ItemsSoldSummary,
    ShiftSalesSummary,
)

logger = logging.getLogger(__name__)

BASE_PATH = "/cash-closures"

Timestamp = Union[datetime, str]
Day = Union[date, str]


def _iso(value: Union[Timestamp, Day]) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _query(**params: Any) -> Dict[str, Any]:
    """Drop unset filters and serialize the rest"""
    query: Dict[str, Any] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        elif isinstance(value, ClosureStatus):
            value = value.wire_value
        query[key] = value
    return query


class CashClosureClient:
    """
    Client for the cash closure endpoints

    Example:
        >>> client = CashClosureClient.from_config(config)
        >>> summary = client.get_shift_summary("2026-10-19T06:00:00")
        >>> summary.total_sales
        Decimal('700000')
    """

    def __init__(self, http: HttpClient) -> None:
        self.http = http

    @classmethod
    def from_config(cls, config: CashdeskConfig) -> "CashClosureClient":
        return cls(HttpClient(config))

    def get_shift_summary(self, shift_start: Timestamp) -> ShiftSalesSummary:
        """Sales recorded since ``shift_start``"""
        response = self.http.get(
            f"{BASE_PATH}/shift-summary",
            HttpRequestOptions(params={"shift_start": _iso(shift_start)}),
        )
        return normalize_shift_summary(response.data)

    def get_shift_items(self, shift_start: Timestamp) -> ItemsSoldSummary:
        """Items sold since ``shift_start``"""
        response = self.http.get(
            f"{BASE_PATH}/shift-items",
            HttpRequestOptions(params={"shift_start": _iso(shift_start)}),
        )
        return normalize_items_sold(response.data)

    def get_today_closure(self) -> Optional[CashClosure]:
        """The current user's closure for today, or ``None``"""
        response = self.http.get(f"{BASE_PATH}/today")
        return normalize_today_closure(response.data)

    def create_closure(self, closure: CashClosure) -> CashClosure:
        """
        Create or update today's closure

        The store upserts on ``(user_id, shift_date)``.
        """
        response = self.http.post(f"{BASE_PATH}/", closure.to_payload())
        saved = normalize_closure(response.data)
        logger.info("Cash closure %s saved for %s", saved.id, saved.shift_date)
        return saved

    def list_closures(
        self,
        user_id: Optional[int] = None,
        start_date: Optional[Day] = None,
        end_date: Optional[Day] = None,
        status: Optional[Union[ClosureStatus, str]] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
    ) -> CashClosurePage:
        response = self.http.get(
            f"{BASE_PATH}/",
            HttpRequestOptions(params=_query(
                user_id=user_id,
                start_date=start_date,
                end_date=end_date,
                status=status,
                page=page,
                per_page=per_page,
            )),
        )
        return normalize_closure_page(response.data)

    def list_closure_reports(
        self,
        start_date: Optional[Day] = None,
        end_date: Optional[Day] = None,
        user_id: Optional[int] = None,
        status: Optional[Union[ClosureStatus, str]] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
    ) -> CashClosurePage:
        """Closure listing for the reports screen"""
        response = self.http.get(
            f"{BASE_PATH}/reports/list",
            HttpRequestOptions(params=_query(
                start_date=start_date,
                end_date=end_date,
                user_id=user_id,
                status=status,
                page=page,
                per_page=per_page,
            )),
        )
        return normalize_closure_page(response.data)

    def get_closure(self, closure_id: int) -> CashClosure:
        response = self.http.get(f"{BASE_PATH}/{closure_id}")
        return normalize_closure(response.data)

    def update_closure(
        self,
        closure_id: int,
        status: Optional[Union[ClosureStatus, str]] = None,
        notes: Optional[str] = None,
        discrepancy_notes: Optional[str] = None,
        reviewed_by: Optional[int] = None,
    ) -> CashClosure:
        """Update review fields of a closure"""
        body = _query(
            status=status,
            notes=notes,
            discrepancies_notes=discrepancy_notes,
            reviewed_by_id=reviewed_by,
        )
        response = self.http.put(f"{BASE_PATH}/{closure_id}", body)
        return normalize_closure(response.data)

    def get_report(
        self,
        start_date: Day,
        end_date: Day,
        user_id: Optional[int] = None,
    ) -> CashClosureReport:
        response = self.http.get(
            f"{BASE_PATH}/reports/summary",
            HttpRequestOptions(params=_query(
                start_date=start_date, end_date=end_date, user_id=user_id
            )),
        )
        return normalize_report(response.data)

    def get_daily_summary(self, day: Day) -> DailyClosureSummary:
        response = self.http.get(
            f"{BASE_PATH}/reports/daily-summary",
            HttpRequestOptions(params={"date": _iso(day)}),
        )
        return normalize_daily_summary(response.data)

    def get_authorized_users(self) -> List[AuthorizedUser]:
        """Operators allowed to close a shift"""
        response = self.http.get(f"{BASE_PATH}/authorized-users")
        return normalize_users(response.data)

    def download_pdf(
        self,
        closure_id: int,
        directory: Optional[Union[str, Path]] = None,
    ) -> Union[bytes, Path]:
        """
        Fetch the rendered PDF of a closure

        Args:
            closure_id: Closure to render
            directory: When given, the PDF is written there as
                ``cierre_caja_<id>.pdf`` and the path is returned

        Returns:
            PDF bytes, or the written file path
        """
        response = self.http.get(
            f"{BASE_PATH}/{closure_id}/pdf",
            HttpRequestOptions(raw=True),
        )
        content: bytes = response.data

        if directory is None:
            return content

        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / f"cierre_caja_{closure_id}.pdf"
        target.write_bytes(content)
        logger.info("Wrote closure PDF to %s", target)
        return target

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "CashClosureClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
