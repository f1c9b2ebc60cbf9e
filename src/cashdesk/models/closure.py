"""Cash closure models"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from cashdesk.models.shift import ShiftSalesSummary
from cashdesk.models.tender import TenderType
from cashdesk.utils.money import money_sum, to_money

if TYPE_CHECKING:
    from cashdesk.reconciliation.differences import DifferenceSet


class ClosureStatus(str, Enum):
    """Cash closure review status"""
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    DISCREPANCY = "DISCREPANCY"

    @classmethod
    def parse(cls, value: Any) -> "ClosureStatus":
        """Parse a wire status case-insensitively"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ValueError(f"Unknown closure status: {value!r}")

    def can_transition_to(self, target: "ClosureStatus") -> bool:
        return target in CLOSURE_TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return not CLOSURE_TRANSITIONS[self]

    @property
    def wire_value(self) -> str:
        """Lower-case spelling the backend stores"""
        return self.value.lower()


CLOSURE_TRANSITIONS = {
    ClosureStatus.PENDING: frozenset({ClosureStatus.REVIEWED, ClosureStatus.DISCREPANCY}),
    ClosureStatus.REVIEWED: frozenset(),
    ClosureStatus.DISCREPANCY: frozenset(),
}

SALES_FIELDS = tuple(t.sales_field for t in TenderType)
COUNTED_FIELDS = tuple(t.counted_field for t in TenderType)
SUMMARY_FIELDS = (
    "total_sales",
    "total_products_sold",
    "total_memberships_sold",
    "total_daily_access_sold",
) + SALES_FIELDS

# Fields the closure store assigns; never part of a submission body
SERVER_FIELDS = frozenset({
    "id",
    "user_id",
    "user_name",
    "status",
    "created_at",
    "updated_at",
    "reviewed_by",
    "reviewed_at",
})


def to_wire(value: Any) -> Any:
    """Convert a python value into a JSON-compatible one"""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(v) for v in value]
    return value


class PhysicalCount(BaseModel):
    """
    Amounts physically counted by the operator at closing time

    Missing amounts count as zero. Signs are not checked here: a count may
    come from any caller and is validated by the reconciler before use.
    """

    cash_counted: Decimal = Field(Decimal(0), allow_inf_nan=True, description="Cash counted")
    nequi_counted: Decimal = Field(Decimal(0), allow_inf_nan=True, description="Nequi counted")
    bancolombia_counted: Decimal = Field(Decimal(0), allow_inf_nan=True, description="Bancolombia counted")
    daviplata_counted: Decimal = Field(Decimal(0), allow_inf_nan=True, description="Daviplata counted")
    card_counted: Decimal = Field(Decimal(0), allow_inf_nan=True, description="Card vouchers counted")
    transfer_counted: Decimal = Field(Decimal(0), allow_inf_nan=True, description="Transfers confirmed")
    notes: Optional[str] = Field(None, description="Free-text notes")
    discrepancy_notes: Optional[str] = Field(
        None, alias="discrepancies_notes", description="Explanation of variances"
    )
    shift_start: Optional[Union[datetime, str]] = Field(
        None, description="Start of the shift being closed (ISO 8601)"
    )
    shift_end: Optional[datetime] = Field(None, description="End of the shift")

    model_config = {
        "validate_assignment": True,
        "populate_by_name": True,
    }

    @field_validator(*COUNTED_FIELDS, mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_money(v)

    def counted_for(self, tender: TenderType) -> Decimal:
        """Counted amount for one tender type"""
        return getattr(self, tender.counted_field)

    def tender_counts(self) -> Dict[TenderType, Decimal]:
        return {tender: self.counted_for(tender) for tender in TenderType}

    def total_counted(self) -> Decimal:
        return money_sum(self.tender_counts().values())


class CashClosure(BaseModel):
    """
    A persisted cash closure

    Combines a sales snapshot with the operator's physical count. There is
    at most one closure per ``(user_id, shift_date)``.
    """

    id: Optional[int] = Field(None, description="Closure ID assigned by the store")
    user_id: Optional[int] = Field(None, description="Operator who closed the shift")
    user_name: Optional[str] = Field(None, description="Operator display name")
    shift_date: date = Field(..., description="Calendar day of the shift")
    shift_start: datetime = Field(..., description="Shift start timestamp")
    shift_end: Optional[datetime] = Field(None, description="Shift end timestamp")

    # Sales snapshot
    total_sales: Decimal = Field(Decimal(0), description="Total sales")
    total_products_sold: int = Field(0, description="Product units sold")
    total_memberships_sold: int = Field(0, description="Memberships sold")
    total_daily_access_sold: int = Field(0, description="Day passes sold")
    cash_sales: Decimal = Decimal(0)
    nequi_sales: Decimal = Decimal(0)
    bancolombia_sales: Decimal = Decimal(0)
    daviplata_sales: Decimal = Decimal(0)
    card_sales: Decimal = Decimal(0)
    transfer_sales: Decimal = Decimal(0)

    # Physical count
    cash_counted: Decimal = Decimal(0)
    nequi_counted: Decimal = Decimal(0)
    bancolombia_counted: Decimal = Decimal(0)
    daviplata_counted: Decimal = Decimal(0)
    card_counted: Decimal = Decimal(0)
    transfer_counted: Decimal = Decimal(0)

    notes: Optional[str] = None
    discrepancy_notes: Optional[str] = Field(None, alias="discrepancies_notes")

    # Review state and metadata
    status: ClosureStatus = Field(ClosureStatus.PENDING, description="Review status")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    reviewed_by: Optional[int] = Field(None, alias="reviewed_by_id")
    reviewed_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("total_sales", *SALES_FIELDS, *COUNTED_FIELDS, mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_money(v)

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v: Any) -> ClosureStatus:
        return ClosureStatus.parse(v)

    @property
    def key(self) -> Tuple[Optional[int], date]:
        """Identity of the closure in the store"""
        return (self.user_id, self.shift_date)

    def summary(self) -> ShiftSalesSummary:
        """The sales snapshot stored on this closure"""
        return ShiftSalesSummary(**{name: getattr(self, name) for name in SUMMARY_FIELDS})

    def count(self) -> PhysicalCount:
        """The physical count stored on this closure"""
        values: Dict[str, Any] = {name: getattr(self, name) for name in COUNTED_FIELDS}
        return PhysicalCount(
            **values,
            notes=self.notes,
            discrepancy_notes=self.discrepancy_notes,
            shift_start=self.shift_start,
            shift_end=self.shift_end,
        )

    @property
    def differences(self) -> "DifferenceSet":
        from cashdesk.reconciliation.reconciler import compute_differences

        return compute_differences(self.summary(), self.count())

    @property
    def total_counted(self) -> Decimal:
        return self.count().total_counted()

    @property
    def has_discrepancies(self) -> bool:
        return self.differences.has_discrepancy

    def to_payload(self) -> Dict[str, Any]:
        """Submission body: the closure minus server-assigned fields"""
        data = self.model_dump(by_alias=True, exclude=set(SERVER_FIELDS))
        return to_wire(data)
