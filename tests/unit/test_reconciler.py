"""
Reconciler Unit Tests
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cashdesk.exceptions import SummaryUnavailable, ValidationError
from cashdesk.models import (
    CashClosure,
    ClosureStatus,
    PhysicalCount,
    ShiftSalesSummary,
    TenderType,
)
from cashdesk.reconciliation import (
    CashClosureReconciler,
    compute_differences,
    parse_shift_start,
)

SHIFT_START = "2026-10-19T06:00:00+00:00"


@pytest.fixture
def reconciler() -> CashClosureReconciler:
    return CashClosureReconciler()


def matching_count(summary: ShiftSalesSummary) -> PhysicalCount:
    return PhysicalCount(
        shift_start=SHIFT_START,
        **{t.counted_field: summary.sales_for(t) for t in TenderType},
    )


class TestComputeDifferences:
    """Tests for compute_differences"""

    def test_zero_sum_identity(self, reconciler: CashClosureReconciler):
        """Should return all zeros when the count equals the sales"""
        summary = ShiftSalesSummary(
            total_sales=Decimal("1234567.89"),
            cash_sales=Decimal("1000000.00"),
            nequi_sales=Decimal("100000.50"),
            bancolombia_sales=Decimal("50000.39"),
            daviplata_sales=Decimal("40000"),
            card_sales=Decimal("30000"),
            transfer_sales=Decimal("14567.00"),
        )
        assert summary.is_consistent()

        diff = reconciler.compute_differences(summary, matching_count(summary))

        assert all(value == 0 for value in diff.by_tender.values())
        assert diff.total == 0
        assert diff.has_discrepancy is False

    def test_sign_convention(self, reconciler: CashClosureReconciler):
        """Should report shortages as negative and overages as positive"""
        summary = ShiftSalesSummary(
            total_sales=Decimal("150000"),
            cash_sales=Decimal("100000"),
            card_sales=Decimal("50000"),
        )
        count = PhysicalCount(
            shift_start=SHIFT_START,
            cash_counted=Decimal("95000"),
            card_counted=Decimal("50500"),
        )

        diff = reconciler.compute_differences(summary, count)

        assert diff[TenderType.CASH] == Decimal("-5000")
        assert diff["card"] == Decimal("500")
        assert diff.total == Decimal("-4500")

    def test_linearity(self, summary: ShiftSalesSummary):
        """Should move each difference by exactly the change in count"""
        count1 = PhysicalCount(
            cash_counted=Decimal("480000.25"),
            nequi_counted=Decimal("200000"),
            transfer_counted=Decimal("10"),
        )
        count2 = PhysicalCount(
            cash_counted=Decimal("510000.75"),
            nequi_counted=Decimal("150000"),
            daviplata_counted=Decimal("99.99"),
        )

        diff1 = compute_differences(summary, count1)
        diff2 = compute_differences(summary, count2)

        for tender in TenderType:
            delta = count2.counted_for(tender) - count1.counted_for(tender)
            assert diff1[tender] + delta == diff2[tender]

    def test_linearity_with_sub_cent_counts(self):
        """Should keep linearity when counts carry fractions of a cent"""
        summary = ShiftSalesSummary(total_sales=Decimal("10"), cash_sales=Decimal("10"))
        count1 = PhysicalCount(cash_counted=Decimal("10.004"))
        count2 = PhysicalCount(cash_counted=Decimal("10.006"))

        diff1 = compute_differences(summary, count1)
        diff2 = compute_differences(summary, count2)

        delta = count2.counted_for(TenderType.CASH) - count1.counted_for(TenderType.CASH)
        assert delta == Decimal("0.01")
        assert diff1[TenderType.CASH] + delta == diff2[TenderType.CASH]
        assert diff2[TenderType.CASH] == count2.cash_counted - summary.cash_sales

    def test_exact_for_large_counts(self, reconciler: CashClosureReconciler, summary: ShiftSalesSummary):
        """Should keep every digit of amounts wider than the default precision"""
        count = PhysicalCount(shift_start=SHIFT_START, cash_counted=Decimal("1E+27"))

        diff = reconciler.compute_differences(summary, count)

        assert diff[TenderType.CASH] == Decimal("999999999999999999999500000")
        assert diff.total == Decimal("999999999999999999999300000")
        assert diff[TenderType.CASH] == count.cash_counted - summary.cash_sales

    def test_total_is_sum_of_tenders(self, summary: ShiftSalesSummary, count: PhysicalCount):
        """Should compute total as the sum of the per-tender differences"""
        diff = compute_differences(summary, count)
        assert diff.total == sum(diff.by_tender.values(), Decimal(0))

    def test_absent_counts_are_zero(self, summary: ShiftSalesSummary):
        """Should treat uncounted tenders as zero, not as missing"""
        diff = compute_differences(summary, PhysicalCount(shift_start=SHIFT_START))

        assert diff[TenderType.CASH] == Decimal("-500000")
        assert diff[TenderType.NEQUI] == Decimal("-200000")
        assert diff.total == Decimal("-700000")

    def test_float_inputs_stay_exact(self):
        """Should not accumulate binary float error"""
        summary = ShiftSalesSummary(total_sales=0.3, cash_sales=0.1, nequi_sales=0.2)
        count = PhysicalCount(cash_counted=0.1, nequi_counted=0.2)

        diff = compute_differences(summary, count)

        assert diff.total == Decimal("0.00")

    def test_rounds_to_minor_unit(self):
        """Should round differences to two decimal places"""
        summary = ShiftSalesSummary(total_sales=Decimal("10"), cash_sales=Decimal("10"))
        count = PhysicalCount(cash_counted=Decimal("10.005"))

        diff = compute_differences(summary, count)

        assert diff[TenderType.CASH] == Decimal("0.01")
        assert str(diff.total) == "0.01"

    def test_missing_summary_raises(self, reconciler: CashClosureReconciler, count: PhysicalCount):
        """Should refuse to reconcile without a summary"""
        with pytest.raises(SummaryUnavailable):
            reconciler.compute_differences(None, count)

    def test_end_to_end_scenario(
        self,
        reconciler: CashClosureReconciler,
        summary: ShiftSalesSummary,
        count: PhysicalCount,
        now: datetime,
    ):
        """Should flag a discrepancy while the status stays pending"""
        diff = reconciler.compute_differences(summary, count)

        assert diff.as_dict() == {
            "cash": Decimal("-2000"),
            "nequi": Decimal("0"),
            "bancolombia": Decimal("0"),
            "daviplata": Decimal("0"),
            "card": Decimal("0"),
            "transfer": Decimal("0"),
            "total": Decimal("-2000"),
        }
        assert diff.has_discrepancy is True
        assert reconciler.derive_status(diff) == ClosureStatus.PENDING

        closure = reconciler.upsert_closure(None, summary, count, user_id=7, now=now)

        assert closure.status == ClosureStatus.PENDING
        assert closure.has_discrepancies is True
        assert closure.differences.total == Decimal("-2000")

    def test_offsetting_differences_still_discrepant(self):
        """Should flag per-tender variances even when the total is zero"""
        summary = ShiftSalesSummary(
            total_sales=Decimal("2000"), cash_sales=Decimal("1000"), card_sales=Decimal("1000")
        )
        count = PhysicalCount(cash_counted=Decimal("2000"))

        diff = compute_differences(summary, count)

        assert diff.total == 0
        assert diff.has_discrepancy is True
        assert set(diff.discrepant_tenders()) == {TenderType.CASH, TenderType.CARD}

    def test_to_wire(self, summary: ShiftSalesSummary, count: PhysicalCount):
        """Should expose closure-record field names"""
        wire = compute_differences(summary, count).to_wire()

        assert wire["cash_difference"] == Decimal("-2000")
        assert wire["transfer_difference"] == 0
        assert wire["total_differences"] == Decimal("-2000")


class TestValidateSubmission:
    """Tests for validate_submission"""

    def test_valid_count(self, reconciler: CashClosureReconciler, count: PhysicalCount):
        """Should accept a complete count"""
        result = reconciler.validate_submission(count)
        assert result.valid is True
        assert result.issues == []

    def test_negative_count_rejected(self, reconciler: CashClosureReconciler):
        """Should reject a negative counted amount"""
        count = PhysicalCount(shift_start=SHIFT_START, cash_counted=-1)

        with pytest.raises(ValidationError) as exc_info:
            reconciler.validate_submission_or_raise(count)

        assert exc_info.value.reason == "negative_count"
        assert exc_info.value.field == "cash"

    def test_missing_shift_start_rejected(self, reconciler: CashClosureReconciler):
        """Should reject a count without a shift start"""
        with pytest.raises(ValidationError) as exc_info:
            reconciler.validate_submission_or_raise(PhysicalCount())

        assert exc_info.value.reason == "missing_shift_start"
        assert exc_info.value.field is None

    @pytest.mark.parametrize("shift_start", ["", "   ", "yesterday", "2026-13-45T99:00"])
    def test_unparseable_shift_start_rejected(
        self, reconciler: CashClosureReconciler, shift_start: str
    ):
        """Should reject blank or unparseable shift starts"""
        result = reconciler.validate_submission(PhysicalCount(shift_start=shift_start))

        assert result.valid is False
        assert result.issues[0].reason == "missing_shift_start"

    def test_non_finite_count_rejected(self, reconciler: CashClosureReconciler):
        """Should reject infinite and NaN amounts"""
        count = PhysicalCount.model_construct(
            shift_start=SHIFT_START,
            card_counted=Decimal("Infinity"),
            nequi_counted=Decimal("NaN"),
        )

        result = reconciler.validate_submission(count)

        assert result.valid is False
        assert {(i.reason, i.field) for i in result.issues} == {
            ("invalid_count", "card"),
            ("invalid_count", "nequi"),
        }

    def test_collects_every_issue(self, reconciler: CashClosureReconciler):
        """Should report all failures, shift start first"""
        count = PhysicalCount(cash_counted=-5, transfer_counted=-1)

        result = reconciler.validate_submission(count)

        assert [i.reason for i in result.issues] == [
            "missing_shift_start",
            "negative_count",
            "negative_count",
        ]
        assert [i.field for i in result.issues[1:]] == ["cash", "transfer"]

    def test_no_upper_bound(self, reconciler: CashClosureReconciler):
        """Should accept counts far above recorded sales"""
        count = PhysicalCount(shift_start=SHIFT_START, cash_counted=Decimal("999999999999"))
        assert reconciler.validate_submission(count).valid is True

    def test_huge_count_can_be_closed(
        self,
        reconciler: CashClosureReconciler,
        summary: ShiftSalesSummary,
        now: datetime,
    ):
        """Should build a closure for a valid count of any magnitude"""
        count = PhysicalCount(shift_start=SHIFT_START, cash_counted=Decimal("1E+27"))
        assert reconciler.validate_submission(count).valid is True

        closure = reconciler.upsert_closure(None, summary, count, user_id=1, now=now)

        assert closure.cash_counted == Decimal("1E+27")
        assert closure.differences[TenderType.CASH] == Decimal("1E+27") - Decimal("500000")

    def test_zulu_timestamp_parsed(self):
        """Should parse ISO timestamps with a Z suffix"""
        parsed = parse_shift_start("2026-10-19T06:00:00.000Z")
        assert parsed == datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)


class TestUpsertClosure:
    """Tests for upsert_closure"""

    def test_creates_pending_closure(
        self,
        reconciler: CashClosureReconciler,
        summary: ShiftSalesSummary,
        count: PhysicalCount,
        now: datetime,
    ):
        """Should create a pending closure stamped with now"""
        closure = reconciler.upsert_closure(None, summary, count, user_id=7, now=now)

        assert closure.id is None
        assert closure.user_id == 7
        assert closure.shift_date == date(2026, 10, 19)
        assert closure.status == ClosureStatus.PENDING
        assert closure.created_at == now
        assert closure.shift_end == now
        assert closure.total_sales == Decimal("700000")
        assert closure.cash_counted == Decimal("498000.00")
        assert closure.total_memberships_sold == 3

    def test_updates_existing_closure(
        self,
        reconciler: CashClosureReconciler,
        summary: ShiftSalesSummary,
        count: PhysicalCount,
        existing_closure: CashClosure,
        now: datetime,
    ):
        """Should move sales and counts forward while keeping identity"""
        closure = reconciler.upsert_closure(
            existing_closure, summary, count, user_id=7, now=now
        )

        assert closure.id == existing_closure.id
        assert closure.created_at == existing_closure.created_at
        assert closure.updated_at == now
        assert closure.cash_sales == Decimal("500000")
        assert closure.nequi_sales == Decimal("200000")
        assert closure.cash_counted == Decimal("498000")
        assert closure.total_sales == Decimal("700000")
        assert existing_closure.cash_sales == Decimal("300000")

    def test_reviewed_status_is_sticky(
        self,
        reconciler: CashClosureReconciler,
        summary: ShiftSalesSummary,
        count: PhysicalCount,
        existing_closure: CashClosure,
        now: datetime,
    ):
        """Should not reset a reviewed closure to pending"""
        reviewed = existing_closure.model_copy(update={
            "status": ClosureStatus.REVIEWED,
            "reviewed_by": 2,
            "reviewed_at": now,
        })

        closure = reconciler.upsert_closure(reviewed, summary, count, user_id=7, now=now)

        assert closure.status == ClosureStatus.REVIEWED
        assert closure.reviewed_by == 2
        assert closure.reviewed_at == now

    def test_idempotent_for_unchanged_input(
        self,
        reconciler: CashClosureReconciler,
        summary: ShiftSalesSummary,
        count: PhysicalCount,
        existing_closure: CashClosure,
        now: datetime,
    ):
        """Should produce identical closures for identical input"""
        first = reconciler.upsert_closure(existing_closure, summary, count, user_id=7, now=now)
        second = reconciler.upsert_closure(existing_closure, summary, count, user_id=7, now=now)

        assert first.model_dump() == second.model_dump()

    def test_idempotent_ignoring_save_time(
        self,
        reconciler: CashClosureReconciler,
        summary: ShiftSalesSummary,
        count: PhysicalCount,
        existing_closure: CashClosure,
        now: datetime,
    ):
        """Should differ only in save-time metadata across calls"""
        metadata = {"updated_at", "shift_end"}
        first = reconciler.upsert_closure(existing_closure, summary, count, user_id=7, now=now)
        second = reconciler.upsert_closure(
            existing_closure, summary, count, user_id=7, now=now + timedelta(minutes=5)
        )

        assert first.model_dump(exclude=metadata) == second.model_dump(exclude=metadata)

    def test_other_day_creates_new_closure(
        self,
        reconciler: CashClosureReconciler,
        summary: ShiftSalesSummary,
        existing_closure: CashClosure,
        now: datetime,
    ):
        """Should not merge into a closure from another day"""
        count = PhysicalCount(shift_start="2026-10-20T06:00:00+00:00")
        tomorrow = now + timedelta(days=1)

        closure = reconciler.upsert_closure(
            existing_closure, summary, count, user_id=7, now=tomorrow
        )

        assert closure.id is None
        assert closure.shift_date == date(2026, 10, 20)
        assert closure.created_at == tomorrow

    def test_overnight_shift_closes_into_todays_closure(
        self,
        reconciler: CashClosureReconciler,
        summary: ShiftSalesSummary,
        existing_closure: CashClosure,
        now: datetime,
    ):
        """Should date the closure by submission day, not by shift start"""
        count = PhysicalCount(
            shift_start="2026-10-18T22:00:00+00:00",
            cash_counted=Decimal("500000"),
        )

        closure = reconciler.upsert_closure(existing_closure, summary, count, user_id=7, now=now)

        assert closure.id == 41
        assert closure.shift_date == date(2026, 10, 19)
        assert closure.shift_start == datetime(2026, 10, 18, 22, 0, tzinfo=timezone.utc)
        assert closure.updated_at == now

    def test_other_user_creates_new_closure(
        self,
        reconciler: CashClosureReconciler,
        summary: ShiftSalesSummary,
        count: PhysicalCount,
        existing_closure: CashClosure,
        now: datetime,
    ):
        """Should not merge into another operator's closure"""
        closure = reconciler.upsert_closure(existing_closure, summary, count, user_id=8, now=now)

        assert closure.id is None
        assert closure.user_id == 8

    def test_missing_summary_raises(
        self,
        reconciler: CashClosureReconciler,
        count: PhysicalCount,
        existing_closure: CashClosure,
    ):
        """Should never build a closure against a missing summary"""
        with pytest.raises(SummaryUnavailable):
            reconciler.upsert_closure(existing_closure, None, count, user_id=7)

    def test_invalid_count_raises(
        self, reconciler: CashClosureReconciler, summary: ShiftSalesSummary
    ):
        """Should validate the count before building"""
        count = PhysicalCount(shift_start=SHIFT_START, daviplata_counted=-10)

        with pytest.raises(ValidationError) as exc_info:
            reconciler.upsert_closure(None, summary, count)

        assert exc_info.value.field == "daviplata"


class TestTransition:
    """Tests for the review state machine"""

    @pytest.mark.parametrize("target", [ClosureStatus.REVIEWED, "discrepancy"])
    def test_pending_can_be_reviewed(
        self,
        reconciler: CashClosureReconciler,
        existing_closure: CashClosure,
        now: datetime,
        target,
    ):
        """Should allow pending closures to move to a terminal state"""
        closure = reconciler.transition(existing_closure, target, reviewer_id=2, now=now)

        assert closure.status == ClosureStatus.parse(target)
        assert closure.reviewed_by == 2
        assert closure.reviewed_at == now

    @pytest.mark.parametrize("start", [ClosureStatus.REVIEWED, ClosureStatus.DISCREPANCY])
    @pytest.mark.parametrize("target", list(ClosureStatus))
    def test_terminal_states_are_final(
        self,
        reconciler: CashClosureReconciler,
        existing_closure: CashClosure,
        start: ClosureStatus,
        target: ClosureStatus,
    ):
        """Should reject any move out of a terminal state"""
        closure = existing_closure.model_copy(update={"status": start})

        with pytest.raises(ValidationError) as exc_info:
            reconciler.transition(closure, target, reviewer_id=2)

        assert exc_info.value.reason == "invalid_transition"

    def test_unknown_status_rejected(
        self, reconciler: CashClosureReconciler, existing_closure: CashClosure
    ):
        """Should reject statuses outside the closed set"""
        with pytest.raises(ValidationError) as exc_info:
            reconciler.transition(existing_closure, "cancelled", reviewer_id=2)

        assert exc_info.value.reason == "invalid_status"


class TestDiscrepancyNotes:
    """Tests for discrepancy_notes"""

    def test_notes_for_shortage(
        self,
        reconciler: CashClosureReconciler,
        summary: ShiftSalesSummary,
        count: PhysicalCount,
    ):
        """Should describe each tender that does not reconcile"""
        notes = reconciler.discrepancy_notes(summary, count)

        assert notes == (
            "CASH: Sistema $500000.00 vs Físico $498000.00 (Diferencia: $-2000.00)"
        )

    def test_notes_join_tenders(self, reconciler: CashClosureReconciler):
        """Should join several tenders with a semicolon and mark overages"""
        summary = ShiftSalesSummary(
            total_sales=Decimal("300"), cash_sales=Decimal("100"), card_sales=Decimal("200")
        )
        count = PhysicalCount(cash_counted=Decimal("150"), card_counted=Decimal("190"))

        notes = reconciler.discrepancy_notes(summary, count)

        assert notes == (
            "CASH: Sistema $100.00 vs Físico $150.00 (Diferencia: $+50.00); "
            "CARD: Sistema $200.00 vs Físico $190.00 (Diferencia: $-10.00)"
        )

    def test_no_notes_when_reconciled(
        self, reconciler: CashClosureReconciler, summary: ShiftSalesSummary
    ):
        """Should return an empty string when everything reconciles"""
        assert reconciler.discrepancy_notes(summary, matching_count(summary)) == ""

    @pytest.mark.parametrize("counted,noted", [
        (Decimal("100.01"), False),
        (Decimal("99.99"), False),
        (Decimal("100.02"), True),
        (Decimal("99.98"), True),
    ])
    def test_minor_unit_tolerance(
        self, reconciler: CashClosureReconciler, counted: Decimal, noted: bool
    ):
        """Should only note tenders off by more than one cent"""
        summary = ShiftSalesSummary(total_sales=Decimal("100"), cash_sales=Decimal("100"))
        count = PhysicalCount(shift_start=SHIFT_START, cash_counted=counted)

        notes = reconciler.discrepancy_notes(summary, count)

        assert notes.startswith("CASH: ") is noted
        if not noted:
            assert notes == ""
