"""
Cash Closure Reconciler
Reconciles recorded shift sales against physically counted amounts

The reconciler is pure: it never performs I/O. Callers fetch a fresh
``ShiftSalesSummary`` for every submission and hand it in; a missing summary
is an error, never an implicit zero.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import List, Optional, Union

from cashdesk.exceptions import SummaryUnavailable, ValidationError
from cashdesk.models.closure import (
    CashClosure,
    ClosureStatus,
    PhysicalCount,
    SUMMARY_FIELDS,
)
from cashdesk.models.shift import ShiftSalesSummary
from cashdesk.models.tender import TenderType
from cashdesk.reconciliation.differences import DifferenceSet
from cashdesk.utils.money import (
    MINOR_UNIT,
    format_plain,
    money_difference,
    money_sum,
    quantize,
)

logger = logging.getLogger(__name__)


@dataclass
class SubmissionIssue:
    """A single reason a count cannot be submitted"""
    reason: str
    field: Optional[str] = None
    message: str = ""

    def to_error(self) -> ValidationError:
        return ValidationError(self.reason, self.field, message=self.message or None)


@dataclass
class ValidationResult:
    """Outcome of validating a physical count for submission"""
    valid: bool
    issues: List[SubmissionIssue] = field(default_factory=list)

    def first_error(self) -> Optional[ValidationError]:
        return self.issues[0].to_error() if self.issues else None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_shift_start(value: Union[datetime, str, None]) -> datetime:
    """
    Parse the shift start attached to a count

    Raises:
        ValidationError: ``missing_shift_start`` when absent or unparseable
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
    raise ValidationError(
        "missing_shift_start",
        "shift_start",
        message="A parseable shift_start timestamp is required",
    )


def compute_differences(summary: ShiftSalesSummary, count: PhysicalCount) -> DifferenceSet:
    """
    Compute ``counted - sales`` for every tender type

    Both amounts are taken at the minor unit, so every difference and the
    total are exact at any magnitude.
    """
    by_tender = {
        tender: money_difference(count.counted_for(tender), summary.sales_for(tender))
        for tender in TenderType
    }
    total = money_sum(by_tender.values())
    return DifferenceSet(by_tender=by_tender, total=total)


class CashClosureReconciler:
    """
    Computes discrepancies and builds closure records

    Example:
        >>> reconciler = CashClosureReconciler()
        >>> diff = reconciler.compute_differences(summary, count)
        >>> diff.total
        Decimal('-2000.00')
    """

    def compute_differences(
        self,
        summary: Optional[ShiftSalesSummary],
        count: PhysicalCount,
    ) -> DifferenceSet:
        """
        Compute per-tender and total differences

        Raises:
            SummaryUnavailable: If no summary is given
        """
        if summary is None:
            raise SummaryUnavailable("Cannot reconcile without a shift sales summary")
        return compute_differences(summary, count)

    def validate_submission(self, count: PhysicalCount) -> ValidationResult:
        """Collect every reason ``count`` cannot be submitted"""
        issues: List[SubmissionIssue] = []

        try:
            parse_shift_start(count.shift_start)
        except ValidationError as e:
            issues.append(SubmissionIssue(e.reason, None, str(e)))

        for tender in TenderType:
            amount = count.counted_for(tender)
            if not amount.is_finite():
                issues.append(SubmissionIssue(
                    "invalid_count",
                    tender.value,
                    f"{tender.counted_field} must be a finite number",
                ))
            elif amount < 0:
                issues.append(SubmissionIssue(
                    "negative_count",
                    tender.value,
                    f"{tender.counted_field} cannot be negative",
                ))

        return ValidationResult(valid=not issues, issues=issues)

    def validate_submission_or_raise(self, count: PhysicalCount) -> None:
        """
        Validate and raise the first failure

        Raises:
            ValidationError: If the count cannot be submitted
        """
        error = self.validate_submission(count).first_error()
        if error is not None:
            raise error

    def derive_status(self, differences: DifferenceSet) -> ClosureStatus:
        """
        Status for a freshly created closure

        Always ``PENDING``; reviewers decide on ``REVIEWED`` or
        ``DISCREPANCY`` outside of the reconciler.
        """
        return ClosureStatus.PENDING

    def discrepancy_notes(self, summary: ShiftSalesSummary, count: PhysicalCount) -> str:
        """
        Describe every tender off by more than one minor unit, e.g.
        ``CASH: Sistema $100000.00 vs Físico $95000.00 (Diferencia: $-5000.00)``
        """
        differences = compute_differences(summary, count)
        notes = []
        for tender, difference in differences.by_tender.items():
            if abs(difference) <= MINOR_UNIT:
                continue
            sign = "+" if difference >= 0 else ""
            notes.append(
                f"{tender.value.upper()}: Sistema {format_plain(summary.sales_for(tender))} "
                f"vs Físico {format_plain(count.counted_for(tender))} "
                f"(Diferencia: ${sign}{difference:.2f})"
            )
        return "; ".join(notes)

    def upsert_closure(
        self,
        existing: Optional[CashClosure],
        summary: Optional[ShiftSalesSummary],
        count: PhysicalCount,
        *,
        user_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> CashClosure:
        """
        Build the closure record to persist for this submission

        A new ``PENDING`` closure is created when there is no closure for the
        same ``(user_id, shift_date)``. ``shift_date`` is the day of submission
        (``now``), so a shift that started the evening before still closes
        into today's record. Otherwise the existing closure takes the
        current sales snapshot and the new count while keeping its id,
        creation time and review state.

        Args:
            existing: Today's closure, if the store has one
            summary: Freshly fetched sales summary for the shift
            count: Physical count to record
            user_id: Operator submitting the closure
            now: Clock override

        Raises:
            SummaryUnavailable: If no summary is given
            ValidationError: If the count is not submittable
        """
        if summary is None:
            raise SummaryUnavailable("Cannot build a closure without a shift sales summary")
        self.validate_submission_or_raise(count)

        now = now or _utcnow()
        shift_start = parse_shift_start(count.shift_start)
        shift_date = now.date()

        fields = {name: getattr(summary, name) for name in SUMMARY_FIELDS}
        for tender in TenderType:
            fields[tender.counted_field] = quantize(count.counted_for(tender))
        fields.update(
            shift_start=shift_start,
            shift_end=count.shift_end or now,
            notes=count.notes,
            discrepancy_notes=count.discrepancy_notes,
        )

        if existing is not None and self._is_same_closure(existing, user_id, shift_date):
            updated = existing.model_copy(update={**fields, "updated_at": now})
            logger.info(
                "Updating cash closure %s for %s (status %s)",
                existing.id, shift_date, existing.status.value,
            )
            return updated

        if existing is not None:
            logger.info(
                "Existing closure %s is for %s, not %s; creating a new one",
                existing.id, existing.shift_date, shift_date,
            )

        closure = CashClosure(
            user_id=user_id,
            shift_date=shift_date,
            created_at=now,
            **fields,
        )
        closure.status = self.derive_status(closure.differences)
        logger.info("Created pending cash closure for %s", shift_date)
        return closure

    def transition(
        self,
        closure: CashClosure,
        target: Union[ClosureStatus, str],
        reviewer_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> CashClosure:
        """
        Apply a reviewer decision

        Only ``PENDING -> REVIEWED`` and ``PENDING -> DISCREPANCY`` are valid.

        Raises:
            ValidationError: ``invalid_transition`` for any other move
        """
        try:
            target = ClosureStatus.parse(target)
        except ValueError as e:
            raise ValidationError("invalid_status", "status", message=str(e)) from e

        if not closure.status.can_transition_to(target):
            raise ValidationError(
                "invalid_transition",
                "status",
                message=f"Cannot move a {closure.status.value} closure to {target.value}",
            )

        now = now or _utcnow()
        return closure.model_copy(update={
            "status": target,
            "reviewed_by": reviewer_id,
            "reviewed_at": now,
            "updated_at": now,
        })

    def _is_same_closure(
        self, existing: CashClosure, user_id: Optional[int], shift_date: date
    ) -> bool:
        if existing.shift_date != shift_date:
            return False
        if user_id is None or existing.user_id is None:
            return True
        return existing.user_id == user_id
