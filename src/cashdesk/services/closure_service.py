"""
Cash Closure Service
Runs a closure submission end to end: fetch, validate, reconcile, persist

The shift summary is fetched again for every submission. A closure is
never computed against a cached, missing or partial summary.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from cashdesk.client.audit import AuditLogWriter
from cashdesk.client.cash_closure_client import CashClosureClient, Timestamp
from cashdesk.client.http_client import HttpClient
from cashdesk.config.cashdesk_config import CashdeskConfig
from cashdesk.events import (
    CLOSURE_DISCREPANCY,
    CLOSURE_SAVED,
    SUMMARY_UNAVAILABLE,
    EventBus,
)
from cashdesk.exceptions import CashdeskError, PersistenceError, SummaryUnavailable
from cashdesk.models import (
    CashClosure,
    ClosureStatus,
    ItemsSoldSummary,
    PhysicalCount,
    ShiftSalesSummary,
)
from cashdesk.reconciliation import (
    CashClosureReconciler,
    DifferenceSet,
    parse_shift_start,
)

logger = logging.getLogger(__name__)


@dataclass
class ShiftSnapshot:
    """Sales summary and items sold fetched together for one shift"""
    shift_start: datetime
    summary: ShiftSalesSummary
    items: Optional[ItemsSoldSummary] = None
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class ReconciliationPreview:
    """What a submission would record, computed against fresh sales"""
    summary: ShiftSalesSummary
    differences: DifferenceSet
    notes: str = ""

    @property
    def has_discrepancy(self) -> bool:
        return self.differences.has_discrepancy


class CashClosureService:
    """
    Cash closure workflow

    Example:
        >>> service = CashClosureService.from_config(config, events=bus)
        >>> count = PhysicalCount(shift_start="2026-10-19T06:00:00", cash_counted=498000)
        >>> closure = service.submit(count, user_id=7)
        >>> closure.differences.total
        Decimal('-2000.00')
    """

    def __init__(
        self,
        client: CashClosureClient,
        reconciler: Optional[CashClosureReconciler] = None,
        events: Optional[EventBus] = None,
        config: Optional[CashdeskConfig] = None,
    ) -> None:
        self.client = client
        self.reconciler = reconciler or CashClosureReconciler()
        self.events = events or EventBus()
        self.config = config

    @classmethod
    def from_config(
        cls,
        config: CashdeskConfig,
        events: Optional[EventBus] = None,
    ) -> "CashClosureService":
        """Build the service and its HTTP stack from configuration"""
        http = HttpClient(config)
        if config.enable_audit_log and config.audit_log_path:
            http.set_audit_log_callback(AuditLogWriter(config.audit_log_path))
        return cls(CashClosureClient(http), events=events, config=config)

    def fetch_summary(self, shift_start: Timestamp) -> ShiftSalesSummary:
        """
        Fetch the sales summary for a shift

        Raises:
            SummaryUnavailable: On any transport, HTTP or payload failure
        """
        try:
            summary = self.client.get_shift_summary(shift_start)
        except CashdeskError as e:
            logger.warning("Shift summary unavailable for %s: %s", shift_start, e)
            self.events.publish(SUMMARY_UNAVAILABLE, e)
            raise SummaryUnavailable(
                f"Shift sales summary unavailable: {e}",
                status_code=e.status_code,
                cause=e,
            ) from e

        if not summary.is_consistent():
            logger.warning(
                "Shift summary total %s differs from tender breakdown %s",
                summary.total_sales, summary.tender_total(),
            )
        return summary

    def load_shift(self, shift_start: Timestamp) -> ShiftSnapshot:
        """
        Fetch the sales summary and the items sold concurrently

        Items sold are display data: if they fail the snapshot carries
        ``items=None``. A summary failure raises.

        Raises:
            SummaryUnavailable: If the summary cannot be fetched
        """
        start = parse_shift_start(shift_start)

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="cashdesk") as pool:
            summary_future = pool.submit(self.fetch_summary, start)
            items_future = pool.submit(self.client.get_shift_items, start)

            summary = summary_future.result()
            try:
                items: Optional[ItemsSoldSummary] = items_future.result()
            except CashdeskError as e:
                logger.warning("Items sold unavailable for %s: %s", start, e)
                items = None

        return ShiftSnapshot(shift_start=start, summary=summary, items=items)

    def preview(self, count: PhysicalCount) -> ReconciliationPreview:
        """
        Reconcile ``count`` against freshly fetched sales without saving

        Raises:
            ValidationError: If the count has no usable shift_start
            SummaryUnavailable: If the summary cannot be fetched
        """
        summary = self.fetch_summary(parse_shift_start(count.shift_start))
        return ReconciliationPreview(
            summary=summary,
            differences=self.reconciler.compute_differences(summary, count),
            notes=self.reconciler.discrepancy_notes(summary, count),
        )

    def submit(
        self,
        count: PhysicalCount,
        user_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> CashClosure:
        """
        Submit today's closure

        Validates locally, re-fetches sales, merges into today's closure if
        one exists and persists the result. ``count`` is never modified, so
        it can be resubmitted unchanged after any failure.

        Raises:
            ValidationError: If the count is invalid (nothing is sent)
            SummaryUnavailable: If sales cannot be fetched
            PersistenceError: If the closure store fails
        """
        self.reconciler.validate_submission_or_raise(count)
        summary = self.fetch_summary(parse_shift_start(count.shift_start))

        try:
            existing = self.client.get_today_closure()
        except CashdeskError as e:
            raise PersistenceError(
                f"Could not read today's closure: {e}",
                status_code=e.status_code,
                cause=e,
            ) from e

        submission = count
        if not (count.discrepancy_notes or "").strip():
            notes = self.reconciler.discrepancy_notes(summary, count)
            if notes:
                submission = count.model_copy(update={"discrepancy_notes": notes})

        closure = self.reconciler.upsert_closure(
            existing, summary, submission, user_id=user_id, now=now
        )

        try:
            saved = self.client.create_closure(closure)
        except CashdeskError as e:
            logger.error("Cash closure save failed: %s", e.get_description())
            raise PersistenceError(
                f"Cash closure could not be saved: {e}",
                status_code=e.status_code,
                cause=e,
                details=e.details,
            ) from e

        self.events.publish(CLOSURE_SAVED, saved)

        differences = saved.differences
        if differences.has_discrepancy:
            logger.info(
                "Closure %s saved with discrepancy %s", saved.id, differences.total
            )
            self.events.publish(CLOSURE_DISCREPANCY, saved)

        return saved

    def review(
        self,
        closure_id: int,
        status: Union[ClosureStatus, str],
        reviewer_id: int,
        notes: Optional[str] = None,
    ) -> CashClosure:
        """
        Record a reviewer decision on a pending closure

        Raises:
            ValidationError: If the status move is not allowed
            PersistenceError: If the closure store fails
        """
        current = self.client.get_closure(closure_id)
        reviewed = self.reconciler.transition(current, status, reviewer_id)

        try:
            return self.client.update_closure(
                closure_id,
                status=reviewed.status,
                notes=notes,
                reviewed_by=reviewer_id,
            )
        except CashdeskError as e:
            raise PersistenceError(
                f"Cash closure review could not be saved: {e}",
                status_code=e.status_code,
                cause=e,
            ) from e

    def download_pdf(
        self,
        closure_id: int,
        directory: Optional[Union[str, Path]] = None,
    ) -> Union[bytes, Path]:
        """Download a closure PDF, into ``pdf_output_dir`` when configured"""
        if directory is None and self.config is not None:
            directory = self.config.pdf_output_dir
        return self.client.download_pdf(closure_id, directory)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "CashClosureService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
