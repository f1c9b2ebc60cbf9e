"""Reconciliation module initialization"""

from cashdesk.reconciliation.differences import DifferenceSet
from cashdesk.reconciliation.reconciler import (
    CashClosureReconciler,
    SubmissionIssue,
    ValidationResult,
    compute_differences,
    parse_shift_start,
)

__all__ = [
    "CashClosureReconciler",
    "DifferenceSet",
    "SubmissionIssue",
    "ValidationResult",
    "compute_differences",
    "parse_shift_start",
]
