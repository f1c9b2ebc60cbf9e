"""Tender type model"""

from enum import Enum


class TenderType(str, Enum):
    """Payment method a sale was settled with"""

    CASH = "cash"
    NEQUI = "nequi"
    BANCOLOMBIA = "bancolombia"
    DAVIPLATA = "daviplata"
    CARD = "card"
    TRANSFER = "transfer"

    @property
    def sales_field(self) -> str:
        return f"{self.value}_sales"

    @property
    def counted_field(self) -> str:
        return f"{self.value}_counted"

    @property
    def difference_field(self) -> str:
        return f"{self.value}_difference"

    @property
    def label(self) -> str:
        return TENDER_LABELS[self]


TENDER_LABELS = {
    TenderType.CASH: "Efectivo",
    TenderType.NEQUI: "Nequi",
    TenderType.BANCOLOMBIA: "Bancolombia",
    TenderType.DAVIPLATA: "Daviplata",
    TenderType.CARD: "Tarjeta",
    TenderType.TRANSFER: "Transferencia",
}
