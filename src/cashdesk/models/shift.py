"""Shift sales models"""

from decimal import Decimal
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator

from cashdesk.models.tender import TenderType
from cashdesk.utils.money import money_sum, to_decimal, to_money


class ShiftSalesSummary(BaseModel):
    """
    Sales recorded by the system since a shift started

    Snapshot returned by the shift aggregator. ``total_sales`` is the
    aggregator's own figure and is never re-derived here.
    """

    total_sales: Decimal = Field(..., ge=0, description="Total sales of the shift")
    total_products_sold: int = Field(0, ge=0, description="Product units sold")
    total_memberships_sold: int = Field(0, ge=0, description="Memberships sold")
    total_daily_access_sold: int = Field(0, ge=0, description="Day passes sold")
    cash_sales: Decimal = Field(Decimal(0), ge=0, description="Cash sales")
    nequi_sales: Decimal = Field(Decimal(0), ge=0, description="Nequi sales")
    bancolombia_sales: Decimal = Field(Decimal(0), ge=0, description="Bancolombia sales")
    daviplata_sales: Decimal = Field(Decimal(0), ge=0, description="Daviplata sales")
    card_sales: Decimal = Field(Decimal(0), ge=0, description="Card sales")
    transfer_sales: Decimal = Field(Decimal(0), ge=0, description="Bank transfer sales")
    sales_count: int = Field(0, ge=0, description="Number of sales in the shift")

    model_config = {
        "frozen": True,
    }

    @field_validator(
        "total_sales",
        "cash_sales",
        "nequi_sales",
        "bancolombia_sales",
        "daviplata_sales",
        "card_sales",
        "transfer_sales",
        mode="before",
    )
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_money(v)

    def sales_for(self, tender: TenderType) -> Decimal:
        """Recorded sales for one tender type"""
        return getattr(self, tender.sales_field)

    def tender_sales(self) -> Dict[TenderType, Decimal]:
        return {tender: self.sales_for(tender) for tender in TenderType}

    def tender_total(self) -> Decimal:
        """Sum of the per-tender sales"""
        return money_sum(self.tender_sales().values())

    def is_consistent(self) -> bool:
        """Check the aggregator's total matches its per-tender breakdown"""
        return self.total_sales == self.tender_total()


class ItemSold(BaseModel):
    """A product sold during the shift"""

    product_id: int = Field(..., description="Product ID")
    product_name: str = Field(..., description="Product name")
    quantity_sold: int = Field(..., ge=0, description="Units sold")
    unit_price: Decimal = Field(..., description="Unit price")
    remaining_stock: int = Field(0, description="Stock left after the shift")

    model_config = {
        "frozen": True,
    }

    @field_validator("unit_price", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity_sold


class ItemsSoldSummary(BaseModel):
    """Items sold report for a shift (display and audit only)"""

    items_sold: List[ItemSold] = Field(default_factory=list, description="Items sold")
    total_items_sold: int = Field(0, ge=0, description="Total units sold")
    total_products_sold: int = Field(0, ge=0, description="Distinct products sold")

    model_config = {
        "frozen": True,
    }
