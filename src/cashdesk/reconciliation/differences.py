"""Reconciliation difference set"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Mapping, Union

from cashdesk.models.tender import TenderType


@dataclass(frozen=True)
class DifferenceSet:
    """
    Signed variance per tender type: counted minus recorded sales

    Positive values are overages, negative values are shortages.
    """
    by_tender: Mapping[TenderType, Decimal]
    total: Decimal

    def __getitem__(self, key: Union[TenderType, str]) -> Decimal:
        if isinstance(key, str) and key == "total":
            return self.total
        return self.by_tender[TenderType(key)]

    @property
    def has_discrepancy(self) -> bool:
        """True when any tender, or the total, does not reconcile"""
        return self.total != 0 or any(v != 0 for v in self.by_tender.values())

    def discrepant_tenders(self) -> Dict[TenderType, Decimal]:
        return {t: v for t, v in self.by_tender.items() if v != 0}

    def as_dict(self) -> Dict[str, Decimal]:
        """``{"cash": ..., ..., "total": ...}``"""
        result = {tender.value: self.by_tender[tender] for tender in TenderType}
        result["total"] = self.total
        return result

    def to_wire(self) -> Dict[str, Decimal]:
        """Closure-record field names: ``cash_difference``, ``total_differences``"""
        result = {tender.difference_field: self.by_tender[tender] for tender in TenderType}
        result["total_differences"] = self.total
        return result
